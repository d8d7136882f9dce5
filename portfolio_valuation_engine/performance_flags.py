"""Performance-level interpretive flags for display-oriented responses."""

from __future__ import annotations

from typing import Any, Optional

from portfolio_valuation_engine._vendor import _to_float
from portfolio_valuation_engine.results import PerformanceReport


def investment_projection(total_return_pct: float, investment: float) -> float:
    """Final value of ``investment`` after ``total_return_pct`` percent."""
    return investment * (1.0 + total_return_pct / 100.0)


def generate_performance_flags(
    report: PerformanceReport,
    *,
    investment: Optional[float] = None,
) -> list[dict[str, Any]]:
    """Generate display flags from a performance report."""
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS, DATA_QUALITY_THRESHOLDS

    flags: list[dict[str, Any]] = []
    total_return = _to_float(report.total_return_pct)
    cagr = _to_float(report.cagr_pct)
    max_drawdown = _to_float(report.max_drawdown_pct)
    deep_drawdown = float(DATA_QUALITY_THRESHOLDS["deep_drawdown_pct"])
    short_history = int(DATA_QUALITY_THRESHOLDS["short_history_points"])

    if report.warnings:
        flags.append(
            {
                "type": "degenerate_data",
                "severity": "warning",
                "message": "; ".join(report.warnings),
            }
        )

    if 0 < report.observations < short_history:
        flags.append(
            {
                "type": "short_history",
                "severity": "info",
                "message": f"Only {report.observations} observations in the {report.analysis_range or 'selected'} range",
                "observations": report.observations,
            }
        )

    if total_return is not None and total_return < 0:
        flags.append(
            {
                "type": "negative_total_return",
                "severity": "warning",
                "message": f"Portfolio is down {abs(total_return):.1f}% total",
                "total_return_pct": round(total_return, 2),
            }
        )

    if max_drawdown is not None and max_drawdown < deep_drawdown:
        flags.append(
            {
                "type": "deep_drawdown",
                "severity": "warning",
                "message": f"Max drawdown of {abs(max_drawdown):.1f}% experienced",
                "max_drawdown_pct": round(max_drawdown, 2),
            }
        )

    if cagr is not None and cagr > 0:
        flags.append(
            {
                "type": "positive_cagr",
                "severity": "success",
                "message": f"Compounded {cagr:.2f}% per year",
                "cagr_pct": round(cagr, 2),
            }
        )

    if total_return is not None and report.observations:
        if investment is None:
            investment = float(ANALYSIS_DEFAULTS["projection_investment"])
        final_value = investment_projection(total_return, investment)
        flags.append(
            {
                "type": "investment_projection",
                "severity": "info",
                "message": (
                    f"{investment:,.0f} invested at the start of the range "
                    f"would be worth {final_value:,.0f}"
                ),
                "investment": investment,
                "final_value": round(final_value, 2),
            }
        )

    return flags
