"""
===========================================================
measurement.py
Author: Veronica Scerra
Last Updated: 2026-10-14
===========================================================

Description:
    Observation models linking latent incidence (transitions
    accumulated over one reporting window) to reported counts.

    Each model works in both directions with the same family:
      - sample(incidence, rng): synthetic reported counts
      - logpmf(observed, incidence): log-density of real counts

    BinomialMeasurement:          cases ~ Binomial(H, rho)
    NegativeBinomialMeasurement:  cases ~ NegBin(mean = rho*H, size = k)

Notes:
    - H = 0 or rho = 0 gives a point mass at zero: 0 is drawn,
      logpmf is 0 for an observed 0 and -inf otherwise.
    - Inputs may be scalars or arrays; outputs follow numpy
      broadcasting.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from scipy.stats import binom, nbinom

from .params import Params, SIRParams


def _point_mass_logpmf(observed: np.ndarray) -> np.ndarray:
    return np.where(observed == 0, 0.0, -np.inf)


@dataclass(frozen=True)
class BinomialMeasurement:
    rho: float

    def mean(self, incidence):
        return self.rho * np.asarray(incidence, dtype=float)

    def sample(self, incidence, rng: np.random.Generator):
        H = np.maximum(np.asarray(incidence, dtype=np.int64), 0)
        if self.rho <= 0:
            return np.zeros_like(H)
        return rng.binomial(H, min(self.rho, 1.0))

    def logpmf(self, observed, incidence):
        y = np.asarray(observed, dtype=float)
        H = np.asarray(incidence, dtype=float)
        degenerate = (H <= 0) | (self.rho <= 0)
        with np.errstate(divide="ignore", invalid="ignore"):
            ll = binom.logpmf(y, np.maximum(H, 0), min(max(self.rho, 0.0), 1.0))
        return np.where(degenerate, _point_mass_logpmf(y), ll)


@dataclass(frozen=True)
class NegativeBinomialMeasurement:
    rho: float
    k: float    # size; variance = mu + mu^2 / k

    def mean(self, incidence):
        return self.rho * np.asarray(incidence, dtype=float)

    def _success_prob(self, mu):
        return self.k / (self.k + mu)

    def sample(self, incidence, rng: np.random.Generator):
        mu = np.maximum(self.mean(incidence), 0.0)
        positive = mu > 0
        # p = 1 for mu = 0 keeps numpy happy; those entries are zeroed anyway
        p = np.where(positive, self._success_prob(np.where(positive, mu, 1.0)), 1.0)
        draws = rng.negative_binomial(self.k, p)
        return np.where(positive, draws, 0)

    def logpmf(self, observed, incidence):
        y = np.asarray(observed, dtype=float)
        mu = self.mean(incidence)
        degenerate = mu <= 0
        safe_mu = np.where(degenerate, 1.0, mu)
        with np.errstate(divide="ignore", invalid="ignore"):
            ll = nbinom.logpmf(y, self.k, self._success_prob(safe_mu))
        return np.where(degenerate, _point_mass_logpmf(y), ll)


def measurement_for(params: Params):
    """Observation family that goes with a parameter type"""
    if isinstance(params, SIRParams):
        return NegativeBinomialMeasurement(rho=params.rho, k=params.k)
    return BinomialMeasurement(rho=params.rho)
