"""
===========================================================
sampler.py
Author: Veronica Scerra
Last Updated: 2026-10-12
===========================================================

Description:
    Euler-multinomial transition draws for discrete-time
    stochastic compartmental models, plus seeded random
    streams.

    A continuous hazard `rate` acting for a step `dt` on `n`
    individuals becomes Binomial(n, 1 - exp(-rate*dt)). The
    draw can never exceed `n`, and the process converges to
    the continuous-time Markov jump process as dt -> 0.

Notes:
    - Every draw comes from an explicit numpy Generator; there is
      no hidden global random state.
    - spawn_rngs(seed, n)[i] is the stream for logical call i, so
      replicate i sees the same stream regardless of how many
      replicates are requested.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from typing import List, Optional, Sequence

from .exceptions import InfeasibleParametersError


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def spawn_rngs(seed: Optional[int], n: int) -> List[np.random.Generator]:
    """Independent child streams of one master seed (SeedSequence spawning)"""
    ss = np.random.SeedSequence(seed)
    return [np.random.Generator(np.random.PCG64(child)) for child in ss.spawn(n)]


def transition_probability(rate: float, dt: float) -> float:
    """Probability that an individual leaves within dt given a constant hazard"""
    if not np.isfinite(rate) or rate < 0:
        raise InfeasibleParametersError(f"transition rate must be finite and non-negative, got {rate}")
    return float(-np.expm1(-rate * dt))


def euler_binomial(n: int, rate: float, dt: float, rng: np.random.Generator) -> int:
    """Number of the `n` individuals that exit during `dt`"""
    p = transition_probability(rate, dt)
    if n <= 0 or p == 0.0:
        return 0
    return int(rng.binomial(int(n), p))


def euler_multinomial(n: int, rates: Sequence[float], dt: float, rng: np.random.Generator) -> np.ndarray:
    """Competing exits from one compartment.

    The total exit probability comes from the summed hazard; exits are
    then split between destinations in proportion to their rates. The
    returned counts sum to at most `n`.
    """
    rates = np.asarray(rates, dtype=float)
    total = float(rates.sum())
    if np.any(~np.isfinite(rates)) or np.any(rates < 0):
        raise InfeasibleParametersError(f"transition rates must be finite and non-negative, got {rates}")
    out = np.zeros(len(rates), dtype=np.int64)
    n_exit = euler_binomial(n, total, dt, rng)
    if n_exit == 0:
        return out
    out[:] = rng.multinomial(n_exit, rates / total)
    return out
