"""
===========================================================
loaders.py
Author: Veronica Scerra
Last Updated: 2026-10-16
===========================================================

Description:
    Loaders for cumulative confirmed-case time series in the
    wide county-level layout (one row per county, one column
    per date, e.g. time_series_covid19_confirmed_US.csv), and
    weekly aggregation into new-cases-per-week for calibration.

Notes:
    - `source` is anything pandas.read_csv accepts (path, URL,
      buffer) or an already loaded DataFrame.
    - Weekly differencing can go negative when the cumulative
      series is revised downwards. What to do with those weeks
      is a required argument: "floor" (clip at 0), "drop"
      (remove the week) or "keep" (pass through as-is).
-----------------------------------------------------------
License: MIT
===========================================================
"""

from __future__ import annotations
import re
import warnings
import numpy as np
import pandas as pd
from typing import Optional, Union

from epicalib.config import NEGATIVE_POLICIES, CalibrationConfig
from epicalib.utils.data_utils import ObservationSeries

DATE_COLUMN = re.compile(r"^\d{1,2}/\d{1,2}/\d{2}$")


def load_confirmed_timeseries(
        source: Union[str, pd.DataFrame],
        state: str,
        state_col: str = "Province_State",
        start: Optional[str] = None,        # e.g. "2020-03-01"
        end: Optional[str] = None,
        ) -> pd.DataFrame:
    """
    Sum county rows of one state and return a tidy daily cumulative series.

    Return columns:
        date (datetime64[ns])
        cumulative (float)      # confirmed cases to date
    """
    df = source if isinstance(source, pd.DataFrame) else pd.read_csv(source)
    if state_col not in df.columns:
        raise KeyError(f"Expected column '{state_col}' not found. Available: {list(df.columns)}")
    date_cols = [c for c in df.columns if DATE_COLUMN.match(str(c))]
    if not date_cols:
        raise KeyError("No date columns (M/D/YY) found")

    rows = df.loc[df[state_col] == state, date_cols]
    if rows.empty:
        raise KeyError(f"State '{state}' not found in column '{state_col}'")

    out = pd.DataFrame({
        "date": pd.to_datetime(date_cols, format="%m/%d/%y"),
        "cumulative": rows.sum(axis=0).to_numpy(dtype=float),
    }).sort_values("date").reset_index(drop=True)

    if start:
        out = out[out["date"] >= pd.to_datetime(start)]
    if end:
        out = out[out["date"] <= pd.to_datetime(end)]
    return out.reset_index(drop=True)


def weekly_new_cases(
        daily: pd.DataFrame,
        negative_policy: str,
        date_col: str = "date",
        value_col: str = "cumulative",
        anchor: str = "W-SUN",
        ) -> pd.DataFrame:
    """
    Aggregate a daily cumulative series to weekly new cases.

    The cumulative count at the end of each week is differenced, so the
    first (incomplete reference) week is dropped.

    Return columns:
        date (week end), week (int, weeks since the first kept week end), cases (int)
    """
    if negative_policy not in NEGATIVE_POLICIES:
        raise ValueError(f"negative_policy must be one of {NEGATIVE_POLICIES}, got {negative_policy!r}")

    cum = (
        daily.set_index(pd.to_datetime(daily[date_col]))[value_col]
        .astype(float)
        .sort_index()
        .resample(anchor)
        .last()
        .ffill()
    )
    new = cum.diff().iloc[1:]

    negative = new < 0
    if negative.any():
        warnings.warn(
            f"{int(negative.sum())} week(s) with negative new cases "
            f"(data revisions); applying policy '{negative_policy}'"
        )
        if negative_policy == "floor":
            new = new.clip(lower=0)
        elif negative_policy == "drop":
            new = new[~negative]

    out = pd.DataFrame({"date": new.index, "cases": np.rint(new.to_numpy()).astype(int)})
    if out.empty:
        return out.assign(week=pd.Series(dtype=int))[["date", "week", "cases"]]
    first = cum.index[1]
    out["week"] = ((out["date"] - first).dt.days // 7).astype(int)
    return out[["date", "week", "cases"]].reset_index(drop=True)


def to_observation_series(weekly: pd.DataFrame, name: str = "") -> ObservationSeries:
    return ObservationSeries.from_dataframe(weekly, time_col="week", value_col="cases", name=name)


def load_weekly_series(source, state: str, negative_policy: str, **kwargs) -> ObservationSeries:
    """CSV -> state daily cumulative -> weekly new cases -> ObservationSeries"""
    daily = load_confirmed_timeseries(source, state, **kwargs)
    return to_observation_series(weekly_new_cases(daily, negative_policy), name=state)


def load_calibration_series(source, state: str, config: CalibrationConfig, **kwargs) -> ObservationSeries:
    """load_weekly_series with the negative-difference policy taken from
    `config`. The config must name one; there is no default."""
    if config.negative_policy is None:
        raise ValueError(
            f"config.negative_policy is not set; choose one of {NEGATIVE_POLICIES}"
        )
    return load_weekly_series(source, state, config.negative_policy, **kwargs)
