"""Tests for epicalib.measurement: binomial and negative binomial reporting."""

import numpy as np
import pytest
from scipy.stats import binom, nbinom

from epicalib.measurement import BinomialMeasurement, NegativeBinomialMeasurement, measurement_for
from epicalib.sampler import make_rng


class TestBinomialMeasurement:
    def test_full_reporting_returns_incidence(self):
        m = BinomialMeasurement(rho=1.0)
        np.testing.assert_array_equal(m.sample(np.array([0, 5, 40]), make_rng(0)), [0, 5, 40])

    def test_cases_never_exceed_incidence(self):
        m = BinomialMeasurement(rho=0.4)
        H = np.array([0, 1, 10, 100, 1000])
        rng = make_rng(1)
        for _ in range(50):
            assert (m.sample(H, rng) <= H).all()

    def test_zero_rho_draws_zero(self):
        m = BinomialMeasurement(rho=0.0)
        np.testing.assert_array_equal(m.sample(np.array([3, 30]), make_rng(0)), [0, 0])

    def test_degenerate_logpmf(self):
        m = BinomialMeasurement(rho=0.5)
        assert m.logpmf(0, 0) == 0.0
        assert m.logpmf(3, 0) == -np.inf
        assert BinomialMeasurement(rho=0.0).logpmf(0, 10) == 0.0
        assert BinomialMeasurement(rho=0.0).logpmf(1, 10) == -np.inf

    def test_logpmf_matches_scipy(self):
        m = BinomialMeasurement(rho=0.3)
        y = np.array([0, 4, 12])
        H = np.array([10, 20, 40])
        np.testing.assert_allclose(m.logpmf(y, H), binom.logpmf(y, H, 0.3))

    def test_more_cases_than_incidence_impossible(self):
        assert BinomialMeasurement(rho=0.5).logpmf(11, 10) == -np.inf

    def test_mean(self):
        np.testing.assert_allclose(BinomialMeasurement(rho=0.25).mean([4, 8]), [1.0, 2.0])


class TestNegativeBinomialMeasurement:
    def test_sample_mean(self):
        m = NegativeBinomialMeasurement(rho=0.5, k=10.0)
        draws = m.sample(np.full(4000, 1000), make_rng(2))
        assert abs(draws.mean() - 500.0) < 15.0

    def test_zero_mean_draws_zero(self):
        m = NegativeBinomialMeasurement(rho=0.5, k=10.0)
        np.testing.assert_array_equal(m.sample(np.array([0, 0]), make_rng(0)), [0, 0])

    def test_logpmf_matches_scipy(self):
        m = NegativeBinomialMeasurement(rho=0.5, k=4.0)
        y = np.array([0, 7, 30])
        H = np.array([10, 20, 40])
        mu = 0.5 * H
        np.testing.assert_allclose(m.logpmf(y, H), nbinom.logpmf(y, 4.0, 4.0 / (4.0 + mu)))

    def test_degenerate_logpmf(self):
        m = NegativeBinomialMeasurement(rho=0.5, k=4.0)
        np.testing.assert_array_equal(m.logpmf(np.array([0, 2]), np.array([0, 0])), [0.0, -np.inf])


class TestMeasurementFor:
    def test_seir_uses_binomial(self, seir_params):
        m = measurement_for(seir_params)
        assert isinstance(m, BinomialMeasurement)
        assert m.rho == 0.5

    def test_sir_uses_negative_binomial(self, sir_params):
        m = measurement_for(sir_params)
        assert isinstance(m, NegativeBinomialMeasurement)
        assert m.k == pytest.approx(10.0)
