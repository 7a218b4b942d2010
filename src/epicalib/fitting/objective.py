"""
===========================================================
objective.py
Author: Veronica Scerra
Last Updated: 2026-10-16
===========================================================

Description:
    Cost evaluator scoring a candidate parameter vector
    against an observed weekly case series by simulating the
    stochastic model over the observed time grid.

    objective="sse": sum of squared residuals between observed
                     and simulated reported cases
    objective="nll": negative log-likelihood of the observed
                     cases given simulated incidence, under the
                     measurement model matching the parameters

    Lower is better for both. Infeasible candidates (rates or
    probabilities out of domain, negative compartments) score
    INFEASIBLE_COST instead of raising, so optimizers keep
    exploring.

Notes:
    - Costs are averaged over `n_replicates` independent
      simulations to tame the Monte Carlo noise.
    - common_random_numbers=True reuses the same replicate
      streams (spawned from `seed`) for every evaluation, so
      identical parameters give identical costs. Otherwise one
      generator seeded once is consumed sequentially: the whole
      run is reproducible but each call is a fresh noisy sample.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import fields
from typing import Dict, List, Literal, Optional, Sequence

from ..exceptions import InfeasibleParametersError, MalformedSeriesError
from ..measurement import measurement_for
from ..params import Params, is_feasible, pack, unpack
from ..sampler import make_rng, spawn_rngs
from ..stochastic import CompartmentModel, simulate
from ..utils.data_utils import ObservationSeries
from .trace import OptimizationTrace

ObjectiveType = Literal["sse", "nll"]

INFEASIBLE_COST = 1e10


def _sse(y_obs: np.ndarray, y_sim: np.ndarray) -> float:
    return float(np.sum((y_obs.astype(float) - y_sim.astype(float)) ** 2))


class CostEvaluator:
    """Callable objective f(theta) -> float for scipy optimizers.

    Parameters:
    series: ObservationSeries. Observed weekly cases (validated, immutable)
    base_params: SEIRParams or SIRParams. Starting point; also supplies the
        values of every parameter that is not free
    free: list of parameter names making up theta, in order
    objective: "sse" or "nll"
    dt: float. Simulator micro-step size
    n_replicates: int. Simulations averaged per evaluation
    seed: int, optional. Master seed
    common_random_numbers: bool. See module notes
    trace: OptimizationTrace, optional. Receives one record per evaluation
    """

    def __init__(
            self,
            series: ObservationSeries,
            base_params: Params,
            free: Sequence[str],
            objective: ObjectiveType = "sse",
            dt: float = 1.0,
            n_replicates: int = 1,
            seed: Optional[int] = None,
            common_random_numbers: bool = True,
            trace: Optional[OptimizationTrace] = None,
            t0: Optional[float] = None,
            accumulate: str = "IR",
            model: Optional[CompartmentModel] = None,
    ):
        if not isinstance(series, ObservationSeries):
            raise MalformedSeriesError("series must be an ObservationSeries")
        base_params.validate()
        names = {f.name for f in fields(base_params)}
        unknown = [name for name in free if name not in names]
        if unknown:
            raise ValueError(f"unknown free parameters: {unknown}")
        if len(set(free)) != len(free) or len(free) == 0:
            raise ValueError("free must list at least one distinct parameter name")
        if objective not in ("sse", "nll"):
            raise ValueError("objective must be 'sse' or 'nll'")
        if n_replicates < 1:
            raise ValueError(f"n_replicates must be >= 1, got {n_replicates}")

        self.series = series
        self.base_params = base_params
        self.free: List[str] = list(free)
        self.objective = objective
        self.dt = float(dt)
        self.n_replicates = int(n_replicates)
        self.seed = seed
        self.common_random_numbers = common_random_numbers
        self.trace = trace
        self.n_evaluations = 0
        self._sim_kwargs = {"t0": t0, "accumulate": accumulate, "model": model}
        self._rng = make_rng(seed)

    @property
    def initial_vector(self) -> np.ndarray:
        return pack(self.base_params, self.free)

    def params_from_vector(self, theta) -> Params:
        return unpack(np.asarray(theta, dtype=float), self.free, self.base_params)

    def _replicate_rngs(self) -> List[np.random.Generator]:
        if self.common_random_numbers:
            return spawn_rngs(self.seed, self.n_replicates)
        return [self._rng] * self.n_replicates

    def _score_one(self, params: Params, rng: np.random.Generator) -> float:
        out = simulate(params, self.series.time, dt=self.dt, rng=rng,
                       observe=(self.objective == "sse"), **self._sim_kwargs)
        y_obs = self.series.cases
        if self.objective == "sse":
            simulated = ObservationSeries(time=self.series.time, cases=out["cases"])
            self.series.check_aligned(simulated)
            return _sse(y_obs, simulated.cases)
        if len(out["incidence"]) != len(y_obs):
            raise MalformedSeriesError("simulated incidence is not aligned with the observations")
        ll = float(np.sum(measurement_for(params).logpmf(y_obs, out["incidence"])))
        return -ll if np.isfinite(ll) else INFEASIBLE_COST

    def score(self, params: Params) -> float:
        """Cost of one parameter object (mean over replicates)"""
        if not is_feasible(params):
            return INFEASIBLE_COST
        costs = []
        for rng in self._replicate_rngs():
            try:
                costs.append(self._score_one(params, rng))
            except InfeasibleParametersError:
                return INFEASIBLE_COST
        return float(min(np.mean(costs), INFEASIBLE_COST))

    def __call__(self, theta) -> float:
        theta = np.asarray(theta, dtype=float)
        cost = self.score(self.params_from_vector(theta))
        self.n_evaluations += 1
        if self.trace is not None:
            self.trace.record(dict(zip(self.free, theta)), cost)
        return cost


def calculate_model_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray
) -> Dict[str, float]:
    """Goodness-of-fit of a simulated series against the observations.
    Parameters:
    y_true : ndarray. Observed cases
    y_pred : ndarray. Simulated cases on the same grid

    Returns:
    metrics : dict with SSE, MAE, RMSE and R2
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    residuals = y_true - y_pred
    ss_res = float(np.sum(residuals**2))
    ss_tot = float(np.sum((y_true - np.mean(y_true))**2))
    return {
        'SSE': ss_res,
        'MAE': float(np.mean(np.abs(residuals))),
        'RMSE': float(np.sqrt(np.mean(residuals**2))),
        'R2': 1 - (ss_res / ss_tot) if ss_tot > 0 else 0.0,
    }
