"""
===========================================================
params.py
Author: Veronica Scerra
Last Updated: 2026-10-12
===========================================================

Description:
    Parameter containers for the stochastic SEIR model and the
    simpler two-compartment (SIR) variant, with validation and
    helpers to flatten named parameters into the float vectors
    scipy optimizers work on.

Notes:
    - beta: contact rate (per time unit)
    - sigma: E->I rate  [1/sigma = incubation period]
    - gamma: I->R rate  [1/gamma = infectious period]
    - mu_IR: I->R removal rate of the SIR variant
    - eta: initial susceptible fraction of the SIR variant
    - rho: reporting probability, in (0, 1]
    - k: negative binomial size (overdispersion) of the SIR variant
-----------------------------------------------------------
License: MIT
===========================================================
"""

from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass, asdict, fields, replace as _replace
from typing import Dict, Sequence, Union

from .exceptions import InvalidParametersError


@dataclass(frozen=True)
class SEIRParams:
    beta: float     # contact rate
    sigma: float    # 1/incubation
    gamma: float    # 1/infectious duration
    N: float        # population size
    rho: float = 1.0    # reporting probability

    @property
    def R0(self) -> float:
        return self.beta / self.gamma if self.gamma > 0 else np.inf

    def validate(self) -> "SEIRParams":
        """Raise InvalidParametersError unless every field is in its domain"""
        _check_rate("beta", self.beta)
        _check_rate("sigma", self.sigma)
        _check_rate("gamma", self.gamma)
        _check_population(self.N)
        _check_probability("rho", self.rho)
        return self

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def replace(self, **changes) -> "SEIRParams":
        return _replace(self, **changes)


@dataclass(frozen=True)
class SIRParams:
    beta: float     # contact rate
    mu_IR: float    # removal rate
    eta: float      # initial susceptible fraction
    N: float        # population size
    rho: float = 1.0    # reporting probability
    k: float = 10.0     # negative binomial size

    @property
    def R0(self) -> float:
        return self.beta / self.mu_IR if self.mu_IR > 0 else np.inf

    def validate(self) -> "SIRParams":
        _check_rate("beta", self.beta)
        _check_rate("mu_IR", self.mu_IR)
        _check_population(self.N)
        _check_probability("eta", self.eta)
        _check_probability("rho", self.rho)
        if not (math.isfinite(self.k) and self.k > 0):
            raise InvalidParametersError(f"overdispersion k must be positive, got {self.k}")
        return self

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def replace(self, **changes) -> "SIRParams":
        return _replace(self, **changes)


Params = Union[SEIRParams, SIRParams]

PARAM_TYPES = {"seir": SEIRParams, "sir": SIRParams}


def _check_rate(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidParametersError(f"rate {name} must be finite and non-negative, got {value}")


def _check_population(N: float) -> None:
    # N sits in the denominator of the force of infection
    if not math.isfinite(N) or N <= 0:
        raise InvalidParametersError(f"population N must be positive, got {N}")


def _check_probability(name: str, value: float) -> None:
    if not math.isfinite(value) or not (0.0 < value <= 1.0):
        raise InvalidParametersError(f"{name} must lie in (0, 1], got {value}")


def make_params(model: str, values: Dict[str, float]) -> Params:
    """Build and validate a parameter object for `model` ("seir" or "sir")"""
    try:
        cls = PARAM_TYPES[model]
    except KeyError:
        raise ValueError(f"model must be one of {sorted(PARAM_TYPES)}, got {model!r}") from None
    names = {f.name for f in fields(cls)}
    unknown = set(values) - names
    if unknown:
        raise ValueError(f"unknown {model} parameters: {sorted(unknown)}")
    return cls(**{k: float(v) for k, v in values.items()}).validate()


def is_feasible(params: Params) -> bool:
    try:
        params.validate()
    except InvalidParametersError:
        return False
    return True


def pack(params: Params, free: Sequence[str]) -> np.ndarray:
    """Vector of the free parameter values, in `free` order"""
    d = params.as_dict()
    return np.array([d[name] for name in free], dtype=float)


def unpack(theta: np.ndarray, free: Sequence[str], base: Params) -> Params:
    """Merge a free-parameter vector back into `base`. No validation here;
    the optimizers may propose out-of-domain values."""
    if len(theta) != len(free):
        raise ValueError(f"theta has {len(theta)} values for {len(free)} free parameters")
    return base.replace(**{name: float(v) for name, v in zip(free, theta)})
