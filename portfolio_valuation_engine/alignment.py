"""
Series alignment.

Merges irregularly sampled price series (different trading calendars,
different intervals) onto one ascending calendar-date axis and carries each
series' last known close forward across that axis.

Contract notes:
- Epoch timestamps are truncated to the calendar date of the configured
  timezone; intraday time is dropped.
- The axis is the sorted union of every date observed in any input series,
  FX included. Empty series contribute no dates.
- A null close does not update the carried value. Several prints on one date
  resolve to the last non-null one.
- No backward fill and no interpolation: dates before a series' first valid
  print stay NaN, which downstream code treats as zero exposure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from portfolio_valuation_engine.data_objects import PriceSeries

logger = logging.getLogger(__name__)

AXIS_NAME = "date"


def _resolve_tz(tz: Optional[str]) -> str:
    if tz:
        return tz
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS

    return ANALYSIS_DEFAULTS["timezone"]


def to_calendar_dates(timestamps: Sequence[int], tz: Optional[str] = None) -> pd.DatetimeIndex:
    """Map epoch seconds to naive calendar dates in ``tz``."""
    if len(timestamps) == 0:
        return pd.DatetimeIndex([], name=AXIS_NAME)
    stamps = pd.to_datetime(np.asarray(timestamps, dtype="int64"), unit="s", utc=True)
    local = stamps.tz_convert(_resolve_tz(tz)).tz_localize(None).normalize()
    return pd.DatetimeIndex(local, name=AXIS_NAME)


def build_unified_axis(
    series_list: Iterable[Optional[PriceSeries]],
    tz: Optional[str] = None,
) -> pd.DatetimeIndex:
    """Return the sorted set-union of calendar dates across all series."""
    tz = _resolve_tz(tz)
    dates: set[pd.Timestamp] = set()
    for series in series_list:
        if series is None or series.is_empty:
            continue
        dates.update(to_calendar_dates(series.timestamps, tz))
    return pd.DatetimeIndex(sorted(dates), name=AXIS_NAME)


def forward_fill(
    series: Optional[PriceSeries],
    axis: pd.DatetimeIndex,
    tz: Optional[str] = None,
) -> pd.Series:
    """
    Effective price of ``series`` on every axis date.

    The value on a date is the most recent valid close at or before that
    date; dates before the first valid close are NaN.
    """
    name = series.symbol if series is not None else None
    if series is None or series.is_empty or len(axis) == 0:
        return pd.Series(np.nan, index=axis, name=name, dtype=float)

    observed = pd.Series(
        series.closes,
        index=to_calendar_dates(series.timestamps, tz),
        name=name,
        dtype=float,
    ).dropna()
    if observed.empty:
        return pd.Series(np.nan, index=axis, name=name, dtype=float)

    observed = observed[~observed.index.duplicated(keep="last")]
    return observed.reindex(axis, method="ffill").rename(name)


def min_observation_count(series_list: Iterable[Optional[PriceSeries]]) -> int:
    """Shortest raw length across ``series_list`` (missing series count as 0)."""
    counts = [len(s) if s is not None else 0 for s in series_list]
    return min(counts) if counts else 0


@dataclass(frozen=True)
class AlignedFrame:
    """Output of ``align_series``: axis plus forward-filled prices."""

    axis: pd.DatetimeIndex
    prices: pd.DataFrame
    fx: Optional[pd.Series] = None

    @property
    def is_empty(self) -> bool:
        return len(self.axis) == 0


def align_series(
    series: Union[Sequence[PriceSeries], Mapping[str, Optional[PriceSeries]]],
    fx_series: Optional[PriceSeries] = None,
    tz: Optional[str] = None,
) -> AlignedFrame:
    """
    Align asset series (and an optional FX series) on one unified axis.

    ``series`` is either a sequence of ``PriceSeries`` (columns named by
    symbol) or a ``{column: PriceSeries | None}`` mapping; a None entry
    yields an all-NaN column. Columns keep input order. ``fx`` is the
    forward-filled FX close, or None when no FX series was given.
    """
    tz = _resolve_tz(tz)
    if isinstance(series, Mapping):
        named = dict(series)
    else:
        named = {s.symbol: s for s in series}
    axis = build_unified_axis([*named.values(), fx_series], tz)
    columns = {name: forward_fill(s, axis, tz) for name, s in named.items()}
    prices = pd.DataFrame(columns, index=axis, dtype=float)
    fx = forward_fill(fx_series, axis, tz) if fx_series is not None else None
    logger.debug(
        "aligned %d series (+fx=%s) onto %d dates",
        len(named),
        fx_series is not None,
        len(axis),
    )
    return AlignedFrame(axis=axis, prices=prices, fx=fx)
