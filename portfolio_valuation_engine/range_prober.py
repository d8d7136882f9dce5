"""
Adaptive range prober for preset-portfolio scoring.

Tries lookback ranges in priority order (``10y`` → ``5y`` → ``3y`` → ``1y``
by default) and scores the first one with enough history:

1) every asset needs at least ``min_raw_observations`` raw prints;
2) all series are trimmed to the latest common start timestamp;
3) the shortest trimmed series needs ``min_aligned_observations`` prints;
4) prices are aligned on the unified axis, normalised to 1.0 at each asset's
   first aligned print and combined as ``Σ weight × normalised price``;
5) CAGR uses the actual elapsed calendar days / 365.25, not the nominal
   range length, because the trimming in (2) shortens the window by a
   different amount for every preset.

Insufficient data is never an error: a rejected range moves on to the next
candidate, and exhausting all candidates yields ``PresetScore.not_available()``.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Callable, List, Optional, Sequence

import pandas as pd

from portfolio_valuation_engine.alignment import align_series, min_observation_count
from portfolio_valuation_engine.data_objects import PresetItem, PriceSeries
from portfolio_valuation_engine.performance_metrics_engine import cagr, max_drawdown
from portfolio_valuation_engine.results import PresetScore

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25

HistoryLoader = Callable[[str, str], Optional[PriceSeries]]


def _thresholds(min_raw: Optional[int], min_aligned: Optional[int]) -> tuple[int, int]:
    from portfolio_valuation_engine.config import DATA_QUALITY_THRESHOLDS

    if min_raw is None:
        min_raw = int(DATA_QUALITY_THRESHOLDS["min_raw_observations"])
    if min_aligned is None:
        min_aligned = int(DATA_QUALITY_THRESHOLDS["min_aligned_observations"])
    return min_raw, min_aligned


def elapsed_years(axis: pd.DatetimeIndex) -> float:
    if len(axis) < 2:
        return 0.0
    return (axis[-1] - axis[0]).days / DAYS_PER_YEAR


def combine_weighted(
    items: Sequence[PresetItem],
    series_list: Sequence[PriceSeries],
    tz: Optional[str] = None,
) -> Optional[pd.Series]:
    """
    Weighted sum of prices normalised to 1.0 at each asset's first print.

    Before an asset's first print its normalised price is 1.0 (held at cost).
    Returns None when an asset has no positive starting price.
    """
    frame = align_series({item.symbol: series for item, series in zip(items, series_list)}, tz=tz)
    total = pd.Series(0.0, index=frame.axis, name="preset_value")
    for item in items:
        prices = frame.prices[item.symbol]
        valid = prices.dropna()
        if valid.empty or valid.iloc[0] <= 0:
            logger.debug("%s has no positive starting price", item.symbol)
            return None
        normalized = (prices / valid.iloc[0]).fillna(1.0)
        total = total + item.weight * normalized
    return total


def score_window(
    items: Sequence[PresetItem],
    series_list: Sequence[Optional[PriceSeries]],
    range_key: str,
    *,
    min_raw: Optional[int] = None,
    min_aligned: Optional[int] = None,
    tz: Optional[str] = None,
) -> Optional[PresetScore]:
    """Score one candidate range, or return None when it must be rejected."""
    if len(items) != len(series_list):
        raise ValueError("items and series_list must have the same length")
    min_raw, min_aligned = _thresholds(min_raw, min_aligned)

    if not items:
        return None
    if any(s is None or s.is_empty or len(s) < min_raw for s in series_list):
        logger.debug("%s rejected: fewer than %d raw observations", range_key, min_raw)
        return None

    latest_start = max(s.first_timestamp for s in series_list)
    trimmed = [s.since(latest_start) for s in series_list]
    common_length = min_observation_count(trimmed)
    if common_length < min_aligned:
        logger.debug(
            "%s rejected: %d aligned observations < %d", range_key, common_length, min_aligned
        )
        return None

    values = combine_weighted(items, trimmed, tz)
    if values is None or values.empty:
        return None

    years = elapsed_years(values.index)
    return PresetScore(
        range=range_key,
        return_pct=cagr(values, years),
        max_drawdown_pct=max_drawdown(values),
        years=round(years, 4),
        observations=common_length,
    )


def fetch_window(
    items: Sequence[PresetItem],
    range_key: str,
    history_loader: HistoryLoader,
    executor: Optional[Executor] = None,
) -> List[Optional[PriceSeries]]:
    """Load every item's history for ``range_key``; all fetches complete before returning."""
    symbols = [item.symbol for item in items]
    if executor is None:
        return [history_loader(symbol, range_key) for symbol in symbols]
    return list(executor.map(lambda symbol: history_loader(symbol, range_key), symbols))


def probe_preset(
    items: Sequence[PresetItem],
    history_loader: HistoryLoader,
    ranges: Optional[Sequence[str]] = None,
    *,
    executor: Optional[Executor] = None,
    min_raw: Optional[int] = None,
    min_aligned: Optional[int] = None,
    tz: Optional[str] = None,
) -> PresetScore:
    """Return the score of the first candidate range with sufficient data."""
    if ranges is None:
        from portfolio_valuation_engine.config import PRESET_DEFAULTS

        ranges = PRESET_DEFAULTS["ranges"]

    for range_key in ranges:
        try:
            series_list = fetch_window(items, range_key, history_loader, executor)
        except Exception as exc:
            logger.warning("history fetch failed for range %s: %s", range_key, exc)
            continue
        score = score_window(
            items,
            series_list,
            range_key,
            min_raw=min_raw,
            min_aligned=min_aligned,
            tz=tz,
        )
        if score is not None:
            return score

    logger.info("no range satisfied the data floor for %s", [i.symbol for i in items])
    return PresetScore.not_available()
