"""
===========================================================
stochastic.py
Author: Veronica Scerra
Last Updated: 2026-10-15
===========================================================

Description:
    Discrete-time stochastic SEIR (and SIR) simulator using
    Euler-multinomial transitions.

    Each reporting interval (t_{k-1}, t_k] is split into equal
    micro-steps of size <= dt. Per micro-step:
        dSE ~ Bin(S, 1 - exp(-beta*I/N * h))
        dEI ~ Bin(E, 1 - exp(-sigma * h))
        dIR ~ Bin(I, 1 - exp(-gamma * h))
        S -= dSE; E += dSE - dEI; I += dEI - dIR; R += dIR
    One flow (I->R by default) is accumulated over the interval
    and reset at each reporting time; that count is what the
    measurement model sees.

API:
    iter_trajectory(params, times, dt, rng) -> lazy TrajectoryPoints
    simulate(params, times, dt, seed)       -> dict(t,S,E,I,R,incidence[,cases])
    simulate_observations(...)              -> ObservationSeries

Notes:
    - The step and initializer are plain functions bundled in a
      CompartmentModel, so a different model is swapped in by
      passing another CompartmentModel.
    - Counts are kept integral; S+E+I+R is conserved exactly.
    - Reproducing a path requires reseeding the generator the
      same way.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import math
import warnings
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, NamedTuple, Optional, Sequence, Tuple

from .exceptions import InfeasibleParametersError, MalformedSeriesError
from .measurement import measurement_for
from .params import Params, SEIRParams, SIRParams
from .sampler import euler_binomial, make_rng
from .utils.data_utils import ObservationSeries


@dataclass(frozen=True)
class CompartmentState:
    S: int
    E: int
    I: int
    R: int

    @property
    def total(self) -> int:
        return self.S + self.E + self.I + self.R

    def as_array(self) -> np.ndarray:
        return np.array([self.S, self.E, self.I, self.R], dtype=np.int64)

    def is_valid(self) -> bool:
        return min(self.S, self.E, self.I, self.R) >= 0


class TrajectoryPoint(NamedTuple):
    time: float
    state: CompartmentState
    incidence: int      # accumulated flow over the interval ending at `time`


Flows = Dict[str, int]
StepFn = Callable[[CompartmentState, Params, float, np.random.Generator], Tuple[CompartmentState, Flows]]
InitFn = Callable[[Params], CompartmentState]


class CompartmentModel(NamedTuple):
    init: InitFn
    step: StepFn
    flows: Tuple[str, ...]


def _population(params: Params) -> int:
    N = int(round(params.N))
    if N < 1:
        raise InfeasibleParametersError(f"population rounds to {N}; need at least one individual")
    if N > np.iinfo(np.int64).max:
        raise InfeasibleParametersError(f"population {params.N:g} does not fit in a 64-bit count")
    return N


def seir_init(params: SEIRParams) -> CompartmentState:
    """S0 = N-1, E0 = 0, I0 = 1, R0 = 0"""
    N = _population(params)
    return CompartmentState(S=N - 1, E=0, I=1, R=0)


def seir_step(state: CompartmentState, params: SEIRParams, dt: float,
              rng: np.random.Generator) -> Tuple[CompartmentState, Flows]:
    foi = params.beta * state.I / params.N      # force of infection
    dSE = euler_binomial(state.S, foi, dt, rng)
    dEI = euler_binomial(state.E, params.sigma, dt, rng)
    dIR = euler_binomial(state.I, params.gamma, dt, rng)
    new = CompartmentState(
        S=state.S - dSE,
        E=state.E + dSE - dEI,
        I=state.I + dEI - dIR,
        R=state.R + dIR,
    )
    return new, {"SE": dSE, "EI": dEI, "IR": dIR}


def sir_init(params: SIRParams) -> CompartmentState:
    """S0 = round(eta*N) (at most N-1), I0 = 1, R0 = the rest"""
    N = _population(params)
    S0 = min(int(round(params.eta * N)), N - 1)
    return CompartmentState(S=S0, E=0, I=1, R=N - S0 - 1)


def sir_step(state: CompartmentState, params: SIRParams, dt: float,
             rng: np.random.Generator) -> Tuple[CompartmentState, Flows]:
    foi = params.beta * state.I / params.N
    dSI = euler_binomial(state.S, foi, dt, rng)
    dIR = euler_binomial(state.I, params.mu_IR, dt, rng)
    new = CompartmentState(
        S=state.S - dSI,
        E=0,
        I=state.I + dSI - dIR,
        R=state.R + dIR,
    )
    return new, {"SI": dSI, "IR": dIR}


SEIR_MODEL = CompartmentModel(init=seir_init, step=seir_step, flows=("SE", "EI", "IR"))
SIR_MODEL = CompartmentModel(init=sir_init, step=sir_step, flows=("SI", "IR"))


def model_for(params: Params) -> CompartmentModel:
    return SIR_MODEL if isinstance(params, SIRParams) else SEIR_MODEL


def _check_times(times: Sequence[float]) -> np.ndarray:
    times = np.asarray(times, dtype=float)
    if times.ndim != 1 or len(times) == 0:
        raise MalformedSeriesError("times must be a non-empty 1-D sequence")
    if np.any(np.diff(times) <= 0):
        raise MalformedSeriesError("times must be strictly increasing")
    return times


def default_t0(times: np.ndarray) -> float:
    """One reporting interval before the first reporting time"""
    step = times[1] - times[0] if len(times) > 1 else 1.0
    return float(times[0] - step)


def _adjust_initial_state(state: CompartmentState, N: int) -> CompartmentState:
    if state.total != N:
        warnings.warn(
            f"Initial conditions sum to {state.total}, "
            f"but population is {N}. Adjusting S."
        )
        state = CompartmentState(S=N - state.E - state.I - state.R, E=state.E, I=state.I, R=state.R)
    if not state.is_valid():
        raise InfeasibleParametersError(f"initial state has a negative compartment: {state}")
    return state


def iter_trajectory(
        params: Params,
        times: Sequence[float],
        dt: float,
        rng: np.random.Generator,
        t0: Optional[float] = None,
        model: Optional[CompartmentModel] = None,
        initial_state: Optional[CompartmentState] = None,
        accumulate: str = "IR",
) -> Iterator[TrajectoryPoint]:
    """Advance the compartments and yield one TrajectoryPoint per reporting time.

    Parameters:
    params: SEIRParams or SIRParams. Validated before the first step
    times: reporting times, strictly increasing
    dt: float. Maximum micro-step size (> 0)
    rng: numpy Generator consumed sequentially
    t0: float, optional. Start time; defaults to one interval before times[0]
    model: CompartmentModel, optional. Defaults to the one matching `params`
    initial_state: CompartmentState, optional. Overrides model.init(params)
    accumulate: str. Flow summed into `incidence` over each interval
    """
    params.validate()
    if not (dt > 0 and math.isfinite(dt)):
        raise ValueError(f"step size dt must be positive, got {dt}")
    times = _check_times(times)
    model = model or model_for(params)
    if accumulate not in model.flows:
        raise ValueError(f"accumulate must be one of {model.flows}, got {accumulate!r}")
    t = default_t0(times) if t0 is None else float(t0)
    if t > times[0]:
        raise ValueError(f"t0={t} is after the first reporting time {times[0]}")

    state = model.init(params)
    if initial_state is not None:
        state = _adjust_initial_state(initial_state, _population(params))

    for t_next in times:
        interval = t_next - t
        n_steps = int(math.ceil(interval / dt - 1e-9)) if interval > 0 else 0
        h = interval / n_steps if n_steps else 0.0
        acc = 0
        for _ in range(n_steps):
            state, flows = model.step(state, params, h, rng)
            if not state.is_valid():
                raise InfeasibleParametersError(f"negative compartment at t={t_next}: {state}")
            acc += flows[accumulate]
        t = t_next
        yield TrajectoryPoint(float(t_next), state, acc)


def simulate(
        params: Params,
        times: Sequence[float],
        dt: float = 1.0,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        observe: bool = True,
        **kwargs,
) -> Dict[str, np.ndarray]:
    """Run one stochastic path and collect it into arrays.

    Returns dict with t, S, E, I, R, incidence and, when `observe`,
    `cases` drawn from the measurement model matching `params`.
    Pass either `seed` or an existing `rng`.
    """
    rng = rng if rng is not None else make_rng(seed)
    points = list(iter_trajectory(params, times, dt, rng, **kwargs))
    states = np.array([p.state.as_array() for p in points], dtype=np.int64)
    out = {
        "t": np.array([p.time for p in points]),
        "S": states[:, 0],
        "E": states[:, 1],
        "I": states[:, 2],
        "R": states[:, 3],
        "incidence": np.array([p.incidence for p in points], dtype=np.int64),
    }
    if observe:
        out["cases"] = np.asarray(measurement_for(params).sample(out["incidence"], rng), dtype=np.int64)
    return out


def simulate_observations(
        params: Params,
        times: Sequence[int],
        dt: float = 1.0,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        **kwargs,
) -> ObservationSeries:
    """One simulated reported-case series on the given week grid"""
    out = simulate(params, times, dt=dt, seed=seed, rng=rng, observe=True, **kwargs)
    return ObservationSeries(time=np.asarray(times), cases=out["cases"], name="simulated")
