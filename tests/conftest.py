import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from epicalib.params import SEIRParams, SIRParams
from epicalib.utils.data_utils import ObservationSeries


@pytest.fixture
def seir_params():
    return SEIRParams(beta=0.35, sigma=0.3, gamma=1 / 14, N=5_000_000, rho=0.5)


@pytest.fixture
def sir_params():
    return SIRParams(beta=1.5, mu_IR=0.5, eta=0.2, N=50_000, rho=0.5, k=10.0)


@pytest.fixture
def scenario_series():
    return ObservationSeries(time=np.array([0, 1, 2, 3]), cases=np.array([10, 20, 15, 5]), name="obs")
