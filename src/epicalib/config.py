"""
===========================================================
config.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Calibration configuration. A CalibrationConfig holds
    everything the calibration core needs besides the observed
    series: starting guess, which parameters are free, box
    bounds for the global search, step size, budgets,
    annealing schedule, seeding and the weekly
    negative-difference policy.

Example Usage:
    It can be built in code, from a dict, or from a YAML file:

    strategy: global
    initial_guess: {beta: 0.35, sigma: 0.3, gamma: 0.0714, N: 5000000, rho: 0.5}
    free: [beta, rho]
    bounds: {beta: [0.05, 1.5], rho: [0.05, 1.0]}
    annealing: {initial_temp: 5230, stop_temp: 1.0}
    negative_policy: floor
-----------------------------------------------------------
License: MIT
===========================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .params import Params, make_params

STRATEGIES = ("local", "global")
OBJECTIVES = ("sse", "nll")
NEGATIVE_POLICIES = ("floor", "drop", "keep")


@dataclass
class AnnealingSchedule:
    """Simulated-annealing schedule (generalized visiting distribution)."""
    initial_temp: float = 5230.0
    stop_temp: float = 1.0       # search ends once the temperature drops below this
    visit: float = 2.62          # visiting distribution shape, in (1, 3]
    accept: float = -5.0         # acceptance shape, in (-1e4, -5]


@dataclass
class CalibrationConfig:
    model: str = "seir"
    initial_guess: Dict[str, float] = field(default_factory=lambda: {
        "beta": 0.35, "sigma": 0.3, "gamma": 1 / 14, "N": 5_000_000, "rho": 0.5,
    })
    free: List[str] = field(default_factory=lambda: ["beta", "sigma", "gamma", "rho"])
    bounds: Dict[str, Tuple[float, float]] = field(default_factory=lambda: {
        "beta": (0.01, 2.0),
        "sigma": (0.01, 1.0),
        "gamma": (0.01, 1.0),
        "rho": (0.01, 1.0),
    })
    strategy: str = "local"
    objective: str = "sse"
    dt: float = 0.1
    max_evaluations: int = 500
    max_iterations: Optional[int] = None   # Nelder-Mead iterations; None lets scipy pick
    xatol: float = 1e-4
    fatol: float = 1e-4
    annealing: AnnealingSchedule = field(default_factory=AnnealingSchedule)
    n_replicates: int = 1
    seed: Optional[int] = 42
    common_random_numbers: bool = True
    accumulate: str = "IR"
    negative_policy: Optional[str] = None  # read by dataio.loaders.load_calibration_series
    disp: bool = False

    def __post_init__(self):
        self.bounds = {k: (float(v[0]), float(v[1])) for k, v in self.bounds.items()}
        self.validate()

    def validate(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got {self.strategy!r}")
        if self.objective not in OBJECTIVES:
            raise ValueError(f"objective must be one of {OBJECTIVES}, got {self.objective!r}")
        if self.negative_policy is not None and self.negative_policy not in NEGATIVE_POLICIES:
            raise ValueError(f"negative_policy must be one of {NEGATIVE_POLICIES}, got {self.negative_policy!r}")
        missing = [name for name in self.free if name not in self.initial_guess]
        if missing:
            raise ValueError(f"free parameters without an initial guess: {missing}")
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.max_evaluations < 0:
            raise ValueError("max_evaluations must be non-negative")
        if self.n_replicates < 1:
            raise ValueError("n_replicates must be >= 1")
        if self.strategy == "global":
            for name in self.free:
                if name not in self.bounds:
                    raise ValueError(f"global search needs bounds for {name!r}")
                lo, hi = self.bounds[name]
                if not lo < hi:
                    raise ValueError(f"bounds for {name!r} must satisfy lower < upper, got {(lo, hi)}")
        a = self.annealing
        if not 0 < a.stop_temp < a.initial_temp:
            raise ValueError("annealing needs 0 < stop_temp < initial_temp")

    def base_params(self) -> Params:
        """Validated parameter object for the initial guess"""
        return make_params(self.model, self.initial_guess)

    def free_bounds(self) -> List[Tuple[float, float]]:
        return [self.bounds[name] for name in self.free]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown configuration keys: {sorted(unknown)}")
        data = dict(data)
        if "annealing" in data and isinstance(data["annealing"], dict):
            sched_known = {f.name for f in fields(AnnealingSchedule)}
            bad = set(data["annealing"]) - sched_known
            if bad:
                raise ValueError(f"unknown annealing keys: {sorted(bad)}")
            data["annealing"] = AnnealingSchedule(**data["annealing"])
        return cls(**data)


def load_config(path: Union[str, Path]) -> CalibrationConfig:
    """Read a CalibrationConfig from a YAML file (empty file -> defaults)"""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return CalibrationConfig.from_dict(data)
