"""
===========================================================
data_utils.py
Author: Veronica Scerra
Last Updated: 2026-10-14
===========================================================
Observation series container

Ordered (week index, reported cases) pairs, either loaded
from surveillance data or produced by one simulator +
measurement model run. Validated on construction so that
malformed input fails before any simulation or optimizer
call.
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from dataclasses import dataclass

from ..exceptions import MalformedSeriesError


@dataclass(frozen=True)
class ObservationSeries:
    """
    Reported case counts on an integer time grid.

    Attributes:
    -----------
    time: np.ndarray
        Integer time indices (weeks), strictly increasing
    cases: np.ndarray
        Reported cases per time index. Negative values are kept if
        the caller chose to pass data revisions through.
    name: str
        Label used in summaries and plots
    """
    time: np.ndarray
    cases: np.ndarray
    name: str = ""

    def __post_init__(self):
        time = np.asarray(self.time)
        cases = np.asarray(self.cases)
        if time.ndim != 1 or cases.ndim != 1:
            raise MalformedSeriesError("time and cases must be 1-D")
        if len(time) != len(cases):
            raise MalformedSeriesError(
                f"time and cases must have equal lengths ({len(time)} != {len(cases)})"
            )
        if len(time) == 0:
            raise MalformedSeriesError("observation series is empty")
        if not np.all(np.equal(np.mod(time, 1), 0)):
            raise MalformedSeriesError("time indices must be integers")
        if np.any(np.diff(time) <= 0):
            raise MalformedSeriesError("time indices must be strictly increasing")
        if not np.all(np.isfinite(cases)):
            raise MalformedSeriesError("case counts must be finite")
        if not np.all(np.equal(np.mod(cases, 1), 0)):
            raise MalformedSeriesError("case counts must be integers")
        # frozen dataclass: normalise dtypes through object.__setattr__
        object.__setattr__(self, "time", time.astype(np.int64))
        object.__setattr__(self, "cases", cases.astype(np.int64))

    def __len__(self) -> int:
        return len(self.time)

    def check_aligned(self, other: "ObservationSeries") -> None:
        """Raise MalformedSeriesError unless both series share one time grid"""
        if len(self) != len(other) or not np.array_equal(self.time, other.time):
            raise MalformedSeriesError(
                f"series are not aligned: {len(self)} vs {len(other)} points"
            )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, time_col: str = "week", value_col: str = "cases",
                       name: str = "") -> "ObservationSeries":
        return cls(time=df[time_col].to_numpy(), cases=df[value_col].to_numpy(), name=name)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({"week": self.time, "cases": self.cases})

    def summary(self) -> str:
        peak_idx = int(np.argmax(self.cases))
        return f"""
            Series: {self.name or '(unnamed)'}
            {'='*50}
            Weeks: {self.time[0]}..{self.time[-1]} ({len(self)} points)
            Total cases: {self.cases.sum():.0f}
            Peak: {self.cases[peak_idx]:.0f} cases (week {self.time[peak_idx]})
            """
