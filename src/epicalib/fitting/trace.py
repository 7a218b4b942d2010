"""
===========================================================
trace.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Optimization trace: one record per objective evaluation.

Notes:
    - Passed by reference into the cost evaluator, read by the
      caller once the optimizer has returned (diagnostic plots,
      convergence tables).
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import math
import numpy as np
import pandas as pd
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class TraceRecord:
    iteration: int
    params: Mapping[str, float]
    cost: float


class OptimizationTrace:
    """Append-only log of (iteration, parameter snapshot, cost)"""

    def __init__(self):
        self._records: List[TraceRecord] = []
        self._frozen = False

    def record(self, params: Mapping[str, float], cost: float) -> TraceRecord:
        if self._frozen:
            raise RuntimeError("trace is frozen; no further records accepted")
        rec = TraceRecord(
            iteration=len(self._records),
            params=MappingProxyType({k: float(v) for k, v in params.items()}),
            cost=float(cost),
        )
        self._records.append(rec)
        return rec

    def freeze(self) -> "OptimizationTrace":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def records(self) -> Tuple[TraceRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self.records)

    def best(self) -> Optional[TraceRecord]:
        finite = [r for r in self._records if math.isfinite(r.cost)]
        if not finite:
            return None
        return min(finite, key=lambda r: r.cost)

    def to_dataframe(self) -> pd.DataFrame:
        """Tidy table: iteration, cost, one column per parameter"""
        rows = [{"iteration": r.iteration, "cost": r.cost, **r.params} for r in self._records]
        if not rows:
            return pd.DataFrame(columns=["iteration", "cost"])
        df = pd.DataFrame.from_records(rows)
        df["best_cost"] = np.minimum.accumulate(df["cost"].to_numpy())
        return df
