"""Tests for epicalib.fitting.optimizers: Nelder-Mead, annealing, calibrate()."""

import numpy as np
import pytest

from epicalib.config import AnnealingSchedule, CalibrationConfig
from epicalib.fitting.objective import CostEvaluator
from epicalib.fitting.optimizers import (
    CalibrationResult,
    annealing_temperature,
    calibrate,
    fit_global,
    fit_local,
    iterations_until_temperature,
)
from epicalib.fitting.trace import OptimizationTrace


def _evaluator(series, params, free=("beta", "rho"), **kwargs):
    kwargs.setdefault("seed", 42)
    kwargs.setdefault("dt", 0.5)
    return CostEvaluator(series, params, free=list(free), trace=OptimizationTrace(), **kwargs)


class TestLocalSearch:
    def test_zero_budget_returns_guess(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        with pytest.warns(RuntimeWarning, match="budget"):
            result = fit_local(ev, max_evaluations=0)
        assert result.params == seir_params
        assert result.converged is False
        assert result.n_evaluations == 0
        assert ev.n_evaluations == 0
        assert len(ev.trace) == 0

    def test_zero_budget_with_explicit_guess(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        guess = seir_params.replace(beta=0.5)
        with pytest.warns(RuntimeWarning):
            result = fit_local(ev, initial_guess=guess, max_evaluations=0)
        assert result.params is guess

    def test_exhausted_budget_flags_non_convergence(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params, free=("beta",))
        with pytest.warns(RuntimeWarning, match="did not converge"):
            result = fit_local(ev, max_evaluations=3)
        assert result.converged is False
        assert result.strategy == "local"

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_trace_matches_evaluations(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        result = fit_local(ev, max_evaluations=25)
        assert isinstance(result, CalibrationResult)
        assert len(ev.trace) == result.n_evaluations == ev.n_evaluations
        assert result.n_evaluations > 0

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_never_worse_than_start(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        start_cost = ev(ev.initial_vector)
        result = fit_local(ev, max_evaluations=40)
        assert result.cost <= start_cost


class TestAnnealingSchedule:
    def test_starts_at_initial_temperature(self):
        assert annealing_temperature(0, 5230.0) == pytest.approx(5230.0)

    def test_monotone_cooling(self):
        temps = [annealing_temperature(i, 5230.0) for i in range(50)]
        assert all(a > b for a, b in zip(temps, temps[1:]))

    @pytest.mark.parametrize("stop", [4000.0, 100.0, 1.0, 0.05])
    def test_iteration_cap_matches_stop_temperature(self, stop):
        n = iterations_until_temperature(stop, 5230.0)
        assert annealing_temperature(n - 1, 5230.0) >= stop
        assert annealing_temperature(n, 5230.0) < stop

    def test_bad_stop_temperature(self):
        with pytest.raises(ValueError):
            iterations_until_temperature(0.0, 5230.0)


class TestGlobalSearch:
    def test_candidates_inside_box(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        bounds = [(0.1, 0.6), (0.2, 0.9)]
        with pytest.warns(RuntimeWarning):
            result = fit_global(ev, bounds=bounds, max_evaluations=60, seed=1)
        assert len(ev.trace) > 0
        for rec in ev.trace:
            assert 0.1 <= rec.params["beta"] <= 0.6
            assert 0.2 <= rec.params["rho"] <= 0.9
        assert 0.1 <= result.params.beta <= 0.6
        assert 0.2 <= result.params.rho <= 0.9

    def test_budget_exhaustion_not_converged(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        with pytest.warns(RuntimeWarning, match="stop_temp"):
            result = fit_global(ev, bounds=[(0.1, 0.6), (0.2, 0.9)], max_evaluations=30, seed=1)
        assert result.converged is False
        assert result.n_evaluations == len(ev.trace)

    def test_reaching_stop_temperature_converges(self, scenario_series, seir_params):
        ev = _evaluator(scenario_series, seir_params)
        result = fit_global(ev, bounds=[(0.1, 0.6), (0.2, 0.9)], max_evaluations=1000,
                            initial_temp=100.0, stop_temp=50.0, seed=1)
        assert result.converged is True
        assert result.strategy == "global"

    def test_reproducible_with_seed(self, scenario_series, seir_params):
        kwargs = dict(bounds=[(0.1, 0.6), (0.2, 0.9)], max_evaluations=1000,
                      initial_temp=100.0, stop_temp=20.0, seed=5)
        a = fit_global(_evaluator(scenario_series, seir_params), **kwargs)
        b = fit_global(_evaluator(scenario_series, seir_params), **kwargs)
        assert a.params == b.params
        assert a.cost == b.cost

    def test_bounds_length_mismatch(self, scenario_series, seir_params):
        with pytest.raises(ValueError, match="one bound per free parameter"):
            fit_global(_evaluator(scenario_series, seir_params), bounds=[(0.1, 0.6)])

    def test_inverted_bounds(self, scenario_series, seir_params):
        with pytest.raises(ValueError):
            fit_global(_evaluator(scenario_series, seir_params), bounds=[(0.6, 0.1), (0.2, 0.9)])

    def test_zero_budget(self, scenario_series, seir_params):
        with pytest.warns(RuntimeWarning):
            result = fit_global(_evaluator(scenario_series, seir_params),
                                bounds=[(0.1, 0.6), (0.2, 0.9)], max_evaluations=0)
        assert result.params == seir_params
        assert not result.converged


@pytest.mark.filterwarnings("ignore::RuntimeWarning")
class TestCalibrate:
    def test_local_end_to_end(self, scenario_series):
        config = CalibrationConfig(free=["beta", "rho"], max_evaluations=20, dt=0.5)
        result = calibrate(scenario_series, config)
        assert result.trace.frozen
        assert len(result.trace) == result.n_evaluations
        assert result.simulated is not None
        scenario_series.check_aligned(result.simulated)

    def test_global_end_to_end(self, scenario_series):
        config = CalibrationConfig(
            strategy="global", free=["beta", "rho"], max_evaluations=1000, dt=0.5,
            annealing=AnnealingSchedule(initial_temp=100.0, stop_temp=50.0),
        )
        result = calibrate(scenario_series, config)
        assert result.converged
        assert 0.01 <= result.params.beta <= 2.0
        assert len(result.simulated) == len(scenario_series)

    def test_zero_budget_end_to_end(self, scenario_series):
        config = CalibrationConfig(max_evaluations=0)
        result = calibrate(scenario_series, config)
        assert result.params == config.base_params()
        assert not result.converged
        assert len(result.trace) == 0
        assert set(result.metrics) == {"SSE", "MAE", "RMSE", "R2"}
        assert result.metrics["SSE"] == pytest.approx(
            float(np.sum((scenario_series.cases - result.simulated.cases) ** 2)))

    def test_sir_model(self):
        from epicalib.utils.data_utils import ObservationSeries

        series = ObservationSeries(time=np.arange(0, 6), cases=[1, 3, 8, 20, 35, 30])
        config = CalibrationConfig(
            model="sir",
            initial_guess={"beta": 1.2, "mu_IR": 0.4, "eta": 0.9, "N": 10_000, "rho": 0.5, "k": 5.0},
            free=["beta", "mu_IR"],
            objective="nll",
            max_evaluations=15,
            dt=0.5,
        )
        result = calibrate(series, config)
        assert result.params.__class__.__name__ == "SIRParams"
        assert result.n_evaluations == len(result.trace)
