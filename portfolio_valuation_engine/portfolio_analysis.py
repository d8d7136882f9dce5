"""
Core portfolio performance analysis business logic.

Called by:
    - ``run_analysis.py`` (CLI)
    - any service wrapper exposing portfolio analysis

Primary flow:
    1) Fetch the FX history and every holding's history concurrently.
    2) Wait for all fetches; failed holdings become all-null series.
    3) Build the valuation series (alignment → currency → accumulation).
    4) Compute the performance report and display flags.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Mapping, Optional, Tuple

from portfolio_valuation_engine._logging import (
    log_errors,
    log_operation,
    log_portfolio_operation,
    log_timing,
    portfolio_logger,
)
from portfolio_valuation_engine.data_loader import fetch_history
from portfolio_valuation_engine.data_objects import Holding, PriceSeries
from portfolio_valuation_engine.exceptions import (
    EmptyPortfolioError,
    MissingFXSeriesError,
    NoUsableSeriesError,
)
from portfolio_valuation_engine.performance_flags import generate_performance_flags
from portfolio_valuation_engine.performance_metrics_engine import compute_performance_metrics
from portfolio_valuation_engine.results import PerformanceReport, PortfolioAnalysisResult
from portfolio_valuation_engine.valuation import PortfolioValuation, build_valuation_series

HistoryLoader = Callable[[str, str], Optional[PriceSeries]]


def _safe_load(loader: HistoryLoader, symbol: str, analysis_range: str) -> Optional[PriceSeries]:
    try:
        return loader(symbol, analysis_range)
    except Exception as exc:
        portfolio_logger.warning("history fetch failed for %s: %s", symbol, exc)
        return None


def run_valuation_pipeline(
    holdings: Iterable[Holding],
    price_series: Mapping[str, Optional[PriceSeries]],
    fx_series: Optional[PriceSeries],
    analysis_range: Optional[str] = None,
) -> Tuple[PortfolioValuation, PerformanceReport]:
    """Pure valuation + metrics over already-fetched series."""
    valuation = build_valuation_series(tuple(holdings), price_series, fx_series)
    return valuation, compute_performance_metrics(valuation, analysis_range)


@log_errors("high")
@log_operation("portfolio_analysis")
@log_timing(15.0)
def analyze_portfolio(
    holdings: Iterable[Holding],
    analysis_range: Optional[str] = None,
    *,
    history_loader: Optional[HistoryLoader] = None,
    fx_symbol: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> PortfolioAnalysisResult:
    """
    Analyse a portfolio over ``analysis_range`` (``"5y"`` by default).

    Parameters
    ----------
    holdings : Iterable[Holding]
        A ``Portfolio`` or any iterable of holdings.
    analysis_range : str, optional
        Lookback range key (``10y``, ``7y``, ``5y``, ``3y``, ``1y``, ``6mo``).
    history_loader : callable, optional
        ``(symbol, range) -> PriceSeries | None``; defaults to
        ``data_loader.fetch_history``.

    Raises
    ------
    EmptyPortfolioError
        If there are no holdings.
    MissingFXSeriesError
        If the FX history cannot be fetched.
    NoUsableSeriesError
        If no holding has any usable price history.
    """
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS, FETCH_DEFAULTS

    holdings = tuple(holdings)
    if not holdings:
        raise EmptyPortfolioError("No holdings to analyse")

    analysis_range = analysis_range or ANALYSIS_DEFAULTS["default_range"]
    loader = history_loader or fetch_history
    fx_symbol = fx_symbol or ANALYSIS_DEFAULTS["fx_symbol"]
    workers = max_workers or int(FETCH_DEFAULTS["max_workers"])

    with ThreadPoolExecutor(max_workers=workers) as pool:
        fx_future = pool.submit(_safe_load, loader, fx_symbol, analysis_range)
        futures = {h.symbol: pool.submit(_safe_load, loader, h.symbol, analysis_range) for h in holdings}
        fx_series = fx_future.result()
        price_series = {symbol: future.result() for symbol, future in futures.items()}

    if fx_series is None:
        raise MissingFXSeriesError(f"Could not load exchange-rate history ({fx_symbol})")

    failed = [s for s, series in price_series.items() if series is None or series.valid_count == 0]
    if not any(series is not None and series.valid_count for series in price_series.values()):
        raise NoUsableSeriesError(failed)
    if failed:
        log_portfolio_operation(
            "portfolio_analysis_missing_series",
            {"symbols": failed, "range": analysis_range},
        )

    valuation, report = run_valuation_pipeline(holdings, price_series, fx_series, analysis_range)
    return PortfolioAnalysisResult(
        report=report,
        value_points=valuation.value_points(),
        flags=generate_performance_flags(report),
        failed_symbols=failed,
    )
