"""
Market overview - index snapshots and price-change display helpers.

Pure ``price_change`` plus a thin fetch wrapper over ``data_loader``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from portfolio_valuation_engine.data_loader import fetch_quote
from portfolio_valuation_engine.data_objects import Quote


@dataclass(frozen=True)
class MarketIndex:
    id: str
    symbol: str
    name: str
    range: str = "5y"
    interval: str = "1mo"


MARKET_INDICES: Tuple[MarketIndex, ...] = (
    MarketIndex("kospi", "^KS11", "KOSPI"),
    MarketIndex("kosdaq", "^KQ11", "KOSDAQ"),
    MarketIndex("nasdaq", "^IXIC", "NASDAQ"),
    MarketIndex("sp500", "^GSPC", "S&P 500"),
)


def price_change(current: Optional[float], prev_close: Optional[float]) -> Optional[Dict[str, float]]:
    """Absolute and percent change versus the previous close.

    Returns None when either input is missing or ``prev_close`` is not
    positive.
    """
    if current is None or prev_close is None or prev_close <= 0:
        return None
    diff = current - prev_close
    return {
        "current": current,
        "diff": diff,
        "percent": diff / prev_close * 100.0,
        "is_up": diff >= 0,
    }


def format_change(change: Optional[Dict[str, float]]) -> str:
    if change is None:
        return "--"
    sign = "+" if change["is_up"] else ""
    return f"{change['current']:,.2f} ({sign}{change['percent']:.2f}%)"


def fetch_market_overview(
    indices: Tuple[MarketIndex, ...] = MARKET_INDICES,
    quote_loader: Optional[Callable[[MarketIndex], Optional[Quote]]] = None,
) -> List[Dict[str, object]]:
    """Latest price and change for each index (``change`` is None on failure)."""
    loader = quote_loader or (lambda idx: fetch_quote(idx.symbol, idx.range, idx.interval))
    rows = []
    for index in indices:
        quote = loader(index)
        change = price_change(quote.current_price, quote.prev_close) if quote is not None else None
        rows.append({"id": index.id, "name": index.name, "symbol": index.symbol, "change": change})
    return rows
