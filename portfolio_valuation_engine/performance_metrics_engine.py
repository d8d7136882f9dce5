"""Shared performance-metrics computation engine.

Called by:
- ``portfolio_analysis.analyze_portfolio`` (user portfolio flow).
- ``range_prober.score_window`` (CAGR/drawdown on synthetic preset series).

Contract notes:
- Inputs are valuation series (one value per axis date, axis order).
- Degenerate arithmetic never propagates NaN/inf: ``total_return`` returns
  None for a zero start value, ``cagr`` returns 0 for non-positive endpoints
  or durations, ``max_drawdown`` skips points whose running peak is <= 0.
- Everything here is pure; inputs are never mutated.
"""

from __future__ import annotations

import math
from typing import Literal, Optional, Sequence, Union

import numpy as np
import pandas as pd

from portfolio_valuation_engine.results import Composition, PerformanceReport
from portfolio_valuation_engine.valuation import PortfolioValuation

ValuesLike = Union[pd.Series, Sequence[float], np.ndarray]


def _as_array(values: ValuesLike) -> np.ndarray:
    return np.asarray(values, dtype=float)


def years_for_range(range_key: Optional[str]) -> float:
    """Nominal duration of an analysis range (``"5y"`` -> 5.0).

    Unknown ranges fall back to ``ANALYSIS_DEFAULTS["default_years"]``.
    """
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS, RANGE_YEARS

    key = (range_key or "").strip().lower()
    return float(RANGE_YEARS.get(key, ANALYSIS_DEFAULTS["default_years"]))


def total_return(values: ValuesLike) -> Optional[float]:
    """``(last - first) / first × 100``; None when empty or ``first == 0``."""
    arr = _as_array(values)
    if arr.size == 0:
        return None
    first, last = float(arr[0]), float(arr[-1])
    if first == 0 or not math.isfinite(first) or not math.isfinite(last):
        return None
    return (last - first) / first * 100.0


def cagr(values: ValuesLike, years: float) -> float:
    """Compound annual growth rate in percent.

    Computed only when both endpoints are positive and ``years > 0``;
    otherwise 0.
    """
    arr = _as_array(values)
    if arr.size == 0 or not years or years <= 0:
        return 0.0
    first, last = float(arr[0]), float(arr[-1])
    if not (first > 0 and last > 0):
        return 0.0
    return (math.pow(last / first, 1.0 / years) - 1.0) * 100.0


def max_drawdown(values: ValuesLike) -> float:
    """Largest peak-to-trough decline in percent (always <= 0).

    The running peak starts at the first value. Points whose running peak is
    not positive cannot define a relative decline and are skipped.
    """
    series = pd.Series(_as_array(values))
    if series.empty:
        return 0.0
    running_max = series.expanding().max()
    valid = running_max > 0
    if not valid.any():
        return 0.0
    drawdown = (series[valid] - running_max[valid]) / running_max[valid]
    worst = float(drawdown.min())
    return min(worst, 0.0) * 100.0


def composition_snapshot(
    valuation: PortfolioValuation,
    at: Literal["start", "end"] = "start",
) -> Composition:
    """
    Per-holding value at the first or last axis date.

    A holding with no price by that date reports 0. Labels are holding
    names, falling back to symbols.
    """
    if at not in ("start", "end"):
        raise ValueError(f"at must be 'start' or 'end', got {at!r}")
    labels = [h.label for h in valuation.holdings]
    if valuation.is_empty or valuation.holding_values.empty:
        return [(label, 0.0) for label in labels]
    row = valuation.holding_values.iloc[0 if at == "start" else -1]
    return [(label, float(value)) for label, value in zip(labels, row.to_numpy(dtype=float))]


def compute_performance_metrics(
    valuation: PortfolioValuation,
    analysis_range: Optional[str] = None,
    *,
    years: Optional[float] = None,
) -> PerformanceReport:
    """Assemble a ``PerformanceReport`` for one valuation.

    ``years`` overrides the nominal range lookup; the user-portfolio flow
    leaves it unset so CAGR uses ``years_for_range(analysis_range)``.
    """
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS

    currency = ANALYSIS_DEFAULTS["reporting_currency"]
    values = valuation.values
    if years is None:
        years = years_for_range(analysis_range)
    warnings: list[str] = []

    if values.empty:
        warnings.append("No price observations were available; all metrics reported as 0")
        return PerformanceReport(
            total_return_pct=0.0,
            cagr_pct=0.0,
            max_drawdown_pct=0.0,
            start_composition=composition_snapshot(valuation, "start"),
            end_composition=composition_snapshot(valuation, "end"),
            analysis_range=analysis_range,
            years=years,
            warnings=warnings,
            reporting_currency=currency,
        )

    start_value = float(values.iloc[0])
    end_value = float(values.iloc[-1])

    ret = total_return(values)
    if ret is None:
        warnings.append("Portfolio value was 0 on the first date; total return reported as 0")
        ret = 0.0
    if not (start_value > 0 and end_value > 0):
        warnings.append("Start or end value is not positive; CAGR reported as 0")

    return PerformanceReport(
        total_return_pct=ret,
        cagr_pct=cagr(values, years),
        max_drawdown_pct=max_drawdown(values),
        start_composition=composition_snapshot(valuation, "start"),
        end_composition=composition_snapshot(valuation, "end"),
        analysis_range=analysis_range,
        years=years,
        start_date=values.index[0].date().isoformat(),
        end_date=values.index[-1].date().isoformat(),
        start_value=start_value,
        end_value=end_value,
        observations=len(values),
        warnings=warnings,
        reporting_currency=currency,
    )
