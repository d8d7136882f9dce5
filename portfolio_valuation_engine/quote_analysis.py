"""
Live-quote flows: ticker search and current holdings valuation.

Called by:
    - ``run_analysis.py`` (``--search`` / ``--holdings``)

Primary flow (``portfolio_snapshot``):
    1) Fetch the FX quote and every holding's quote concurrently.
    2) A failed quote falls back to the last good one (``data_loader``);
       with neither, the holding is unpriced and valued at 0.
    3) Value each holding with ``holding_market_value`` at the live FX rate,
       or ``QUOTE_DEFAULTS["fallback_fx_rate"]`` when the FX quote is missing.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional

from portfolio_valuation_engine._logging import (
    log_errors,
    log_operation,
    log_portfolio_operation,
    log_timing,
    portfolio_logger,
)
from portfolio_valuation_engine._ticker import apply_exchange_suffix
from portfolio_valuation_engine.data_loader import fetch_quote
from portfolio_valuation_engine.data_objects import Holding, Quote
from portfolio_valuation_engine.exceptions import SymbolNotFoundError
from portfolio_valuation_engine.market_overview import price_change
from portfolio_valuation_engine.portfolio_config import holding_market_value
from portfolio_valuation_engine.results import HoldingSnapshot, PortfolioSnapshot, SymbolSearchResult

QuoteLoader = Callable[[str, str, str], Optional[Quote]]


def _safe_quote(loader: QuoteLoader, symbol: str, range_key: str, interval: str) -> Optional[Quote]:
    try:
        return loader(symbol, range_key, interval)
    except Exception as exc:
        portfolio_logger.warning("quote fetch failed for %s: %s", symbol, exc)
        return None


def _usable_price(quote: Optional[Quote]) -> Optional[float]:
    if quote is None or quote.current_price is None:
        return None
    price = float(quote.current_price)
    return price if math.isfinite(price) and price > 0 else None


@log_errors("medium")
@log_operation("symbol_search")
def search_symbol(
    code: str,
    suffix: Optional[str] = None,
    range_key: Optional[str] = None,
    interval: Optional[str] = None,
    *,
    quote_loader: Optional[QuoteLoader] = None,
) -> SymbolSearchResult:
    """
    Look up ``code`` (with an optional market ``suffix`` such as ``.KS``).

    Raises
    ------
    ValueError
        If ``code`` is blank.
    SymbolNotFoundError
        If the provider has no price history for the symbol.
    """
    from portfolio_valuation_engine.config import QUOTE_DEFAULTS

    symbol = apply_exchange_suffix(code, suffix)
    if not symbol:
        raise ValueError("Search code cannot be empty")
    range_key = range_key or QUOTE_DEFAULTS["search_range"]
    interval = interval or QUOTE_DEFAULTS["search_interval"]

    quote = (quote_loader or fetch_quote)(symbol, range_key, interval)
    if quote is None or not quote.bars:
        raise SymbolNotFoundError(f"No price data found for {symbol}")
    return SymbolSearchResult(
        quote=quote,
        change=price_change(quote.current_price, quote.prev_close),
        range=range_key,
        interval=interval,
    )


@log_errors("high")
@log_operation("portfolio_snapshot")
@log_timing(10.0)
def portfolio_snapshot(
    holdings: Iterable[Holding],
    quote_loader: Optional[QuoteLoader] = None,
    *,
    max_workers: Optional[int] = None,
) -> PortfolioSnapshot:
    """Value the current holdings at their latest quotes."""
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS, FETCH_DEFAULTS, QUOTE_DEFAULTS

    holdings = tuple(holdings)
    loader = quote_loader or fetch_quote
    workers = max_workers or int(FETCH_DEFAULTS["max_workers"])
    symbols = list(dict.fromkeys(h.symbol for h in holdings))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        fx_future = pool.submit(
            _safe_quote,
            loader,
            ANALYSIS_DEFAULTS["fx_symbol"],
            QUOTE_DEFAULTS["fx_range"],
            QUOTE_DEFAULTS["fx_interval"],
        )
        futures = {
            s: pool.submit(
                _safe_quote, loader, s, QUOTE_DEFAULTS["holdings_range"], QUOTE_DEFAULTS["holdings_interval"]
            )
            for s in symbols
        }
        fx_rate = _usable_price(fx_future.result())
        prices = {s: _usable_price(f.result()) for s, f in futures.items()}

    fx_is_fallback = fx_rate is None
    if fx_is_fallback:
        fx_rate = float(QUOTE_DEFAULTS["fallback_fx_rate"])

    rows = [
        HoldingSnapshot(h, prices[h.symbol], holding_market_value(h, prices[h.symbol], fx_rate))
        for h in holdings
    ]
    snapshot = PortfolioSnapshot(
        rows=rows,
        fx_rate=fx_rate,
        fx_is_fallback=fx_is_fallback,
        reporting_currency=ANALYSIS_DEFAULTS["reporting_currency"],
    )
    if snapshot.unpriced_symbols or fx_is_fallback:
        log_portfolio_operation(
            "portfolio_snapshot_degraded",
            {"unpriced": snapshot.unpriced_symbols, "fx_fallback": fx_is_fallback},
        )
    return snapshot
