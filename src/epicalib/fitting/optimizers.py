"""
===========================================================
optimizers.py
Author: Veronica Scerra
Last Updated: 2026-10-17
===========================================================

Description:
    Calibrate stochastic model parameters to an observed weekly
    case series by minimizing a CostEvaluator:
      1) fit_local: Nelder-Mead simplex from a hand-chosen start,
         unconstrained (the evaluator's penalty is the only guard)
      2) fit_global: simulated annealing (scipy dual_annealing,
         no local polishing) inside a box
      3) calibrate: config-driven end-to-end run returning the
         final parameters, an aligned simulated series and the
         optimization trace

Example Usage:
    from epicalib.config import CalibrationConfig
    from epicalib.fitting.optimizers import calibrate
    result = calibrate(series, CalibrationConfig(strategy="global"))
    result.params, result.converged, result.trace.to_dataframe()

Notes:
    - Both strategies minimize; the evaluator's objective is
      lower-is-better for SSE and NLL alike.
    - The objective is noisy unless common random numbers are
      used; raise n_replicates to average it down.
    - Exhausting a budget is not an error: the result carries
      converged=False and a RuntimeWarning is emitted.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import math
import warnings
import numpy as np
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from scipy.optimize import dual_annealing, minimize

from ..config import CalibrationConfig
from ..exceptions import InfeasibleParametersError, InvalidParametersError
from ..params import Params, pack
from ..stochastic import simulate_observations
from ..utils.data_utils import ObservationSeries
from .objective import CostEvaluator, calculate_model_metrics
from .trace import OptimizationTrace

# scipy's default reannealing ratio
_RESTART_TEMP_RATIO = 2e-5


@dataclass
class CalibrationResult:
    params: Params
    cost: float
    converged: bool
    n_evaluations: int
    message: str
    strategy: str
    trace: Optional[OptimizationTrace] = None
    simulated: Optional[ObservationSeries] = None
    metrics: Optional[Dict[str, float]] = None

    @property
    def R0(self) -> float:
        return self.params.R0


def _message_text(message) -> str:
    if isinstance(message, (list, tuple)):
        return "; ".join(str(m) for m in message)
    return str(message)


def _unevaluated(evaluator: CostEvaluator, guess: Params, strategy: str) -> CalibrationResult:
    msg = "evaluation budget is zero; initial guess returned unevaluated"
    warnings.warn(msg, RuntimeWarning)
    return CalibrationResult(params=guess, cost=math.nan, converged=False, n_evaluations=0,
                             message=msg, strategy=strategy, trace=evaluator.trace)


def fit_local(
        evaluator: CostEvaluator,
        initial_guess: Optional[Params] = None,
        max_evaluations: int = 500,
        max_iterations: Optional[int] = None,
        xatol: float = 1e-4,
        fatol: float = 1e-4,
        disp: bool = False,
) -> CalibrationResult:
    """Nelder-Mead search over the evaluator's free parameters.

    Parameters:
    evaluator: CostEvaluator. Objective (and trace hook)
    initial_guess: Params, optional. Defaults to evaluator.base_params
    max_evaluations: int. Objective evaluation budget; 0 returns the guess
    max_iterations: int, optional. Simplex iteration budget
    xatol, fatol: float. Simplex convergence tolerances

    Returns:
    CalibrationResult with converged=True only if the tolerances were met
    """
    guess = initial_guess if initial_guess is not None else evaluator.base_params
    if max_evaluations <= 0 or max_iterations == 0:
        return _unevaluated(evaluator, guess, "local")

    x0 = pack(guess, evaluator.free)
    start = evaluator.n_evaluations
    options = {"maxfev": int(max_evaluations), "xatol": xatol, "fatol": fatol, "disp": disp}
    if max_iterations is not None:
        options["maxiter"] = int(max_iterations)
    res = minimize(evaluator, x0=x0, method="Nelder-Mead", options=options)

    result = CalibrationResult(
        params=evaluator.params_from_vector(res.x),
        cost=float(res.fun),
        converged=bool(res.success),
        n_evaluations=evaluator.n_evaluations - start,
        message=_message_text(res.message),
        strategy="local",
        trace=evaluator.trace,
    )
    if not result.converged:
        warnings.warn(f"Nelder-Mead did not converge: {result.message}", RuntimeWarning)
    return result


def annealing_temperature(iteration: int, initial_temp: float, visit: float = 2.62) -> float:
    """Visiting temperature of dual_annealing at a given iteration (0-based)"""
    s = float(iteration) + 2.0
    t1 = np.exp((visit - 1) * np.log(2.0)) - 1.0
    t2 = np.exp((visit - 1) * np.log(s)) - 1.0
    return float(initial_temp * t1 / t2)


def iterations_until_temperature(stop_temp: float, initial_temp: float, visit: float = 2.62) -> int:
    """Number of annealing iterations run while the temperature is >= stop_temp"""
    if stop_temp <= 0:
        raise ValueError("stop_temp must be positive")
    t1 = np.exp((visit - 1) * np.log(2.0)) - 1.0
    x = (initial_temp * t1 / stop_temp + 1.0) ** (1.0 / (visit - 1)) - 2.0
    return max(int(np.floor(x)) + 1, 1)


def fit_global(
        evaluator: CostEvaluator,
        bounds: Sequence[Tuple[float, float]],
        max_evaluations: int = 1000,
        initial_temp: float = 5230.0,
        stop_temp: float = 1.0,
        visit: float = 2.62,
        accept: float = -5.0,
        seed: Optional[int] = None,
        initial_guess: Optional[Params] = None,
        disp: bool = False,
) -> CalibrationResult:
    """Simulated annealing inside a box.

    Every candidate handed to the evaluator lies within `bounds` (one
    (lower, upper) pair per free parameter). The search stops when the
    temperature falls below `stop_temp` (converged) or when
    `max_evaluations` objective calls have been spent (not converged).
    """
    bounds = [(float(lo), float(hi)) for lo, hi in bounds]
    if len(bounds) != len(evaluator.free):
        raise ValueError(f"need one bound per free parameter ({len(evaluator.free)}), got {len(bounds)}")
    lower = np.array([b[0] for b in bounds])
    upper = np.array([b[1] for b in bounds])
    if np.any(lower >= upper):
        raise ValueError("bounds must satisfy lower < upper")
    guess = initial_guess if initial_guess is not None else evaluator.base_params
    if max_evaluations <= 0:
        return _unevaluated(evaluator, guess, "global")

    x0 = pack(guess, evaluator.free)
    if np.any(x0 < lower) or np.any(x0 > upper):
        x0 = None
    maxiter = iterations_until_temperature(stop_temp, initial_temp, visit)
    restart_ratio = min(_RESTART_TEMP_RATIO, 0.5 * stop_temp / initial_temp)

    start = evaluator.n_evaluations
    res = dual_annealing(
        evaluator,
        bounds=bounds,
        maxiter=maxiter,
        initial_temp=initial_temp,
        restart_temp_ratio=restart_ratio,
        visit=visit,
        accept=accept,
        maxfun=int(max_evaluations),
        seed=seed,
        no_local_search=True,
        x0=x0,
    )
    message = _message_text(res.message)
    converged = "iteration" in message.lower() and "function call" not in message.lower()
    result = CalibrationResult(
        params=evaluator.params_from_vector(res.x),
        cost=float(res.fun),
        converged=converged,
        n_evaluations=evaluator.n_evaluations - start,
        message=message,
        strategy="global",
        trace=evaluator.trace,
    )
    if disp:
        print(f"dual_annealing: {message} (cost={result.cost:.4g}, nfev={result.n_evaluations})")
    if not converged:
        warnings.warn(f"annealing stopped before reaching stop_temp={stop_temp}: {message}", RuntimeWarning)
    return result


def build_evaluator(series: ObservationSeries, config: CalibrationConfig,
                    trace: Optional[OptimizationTrace] = None) -> CostEvaluator:
    return CostEvaluator(
        series,
        base_params=config.base_params(),
        free=config.free,
        objective=config.objective,
        dt=config.dt,
        n_replicates=config.n_replicates,
        seed=config.seed,
        common_random_numbers=config.common_random_numbers,
        trace=trace,
        accumulate=config.accumulate,
    )


def calibrate(series: ObservationSeries, config: Optional[CalibrationConfig] = None) -> CalibrationResult:
    """Fit the model to `series` with the strategy named in `config`.

    The returned result carries the final parameters, the frozen trace and
    one simulated series on the observed grid (None when the final
    parameters are infeasible, which the unconstrained local search allows).
    """
    config = config or CalibrationConfig()
    trace = OptimizationTrace()
    evaluator = build_evaluator(series, config, trace)

    if config.strategy == "local":
        result = fit_local(evaluator, max_evaluations=config.max_evaluations,
                           max_iterations=config.max_iterations,
                           xatol=config.xatol, fatol=config.fatol, disp=config.disp)
    else:
        a = config.annealing
        result = fit_global(evaluator, bounds=config.free_bounds(),
                            max_evaluations=config.max_evaluations,
                            initial_temp=a.initial_temp, stop_temp=a.stop_temp,
                            visit=a.visit, accept=a.accept, seed=config.seed, disp=config.disp)
    trace.freeze()

    try:
        result.simulated = simulate_observations(
            result.params, series.time, dt=config.dt, seed=config.seed, accumulate=config.accumulate
        )
        result.metrics = calculate_model_metrics(series.cases, result.simulated.cases)
    except (InvalidParametersError, InfeasibleParametersError) as e:
        warnings.warn(f"final parameters are infeasible, no simulated series: {e}")
    return result
