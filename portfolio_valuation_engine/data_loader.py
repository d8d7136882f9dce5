# File: data_loader.py
"""
Data loading and caching utilities for portfolio valuation.

This module sits between the provider and the analytics core:
- fetch_chart: raw chart ``result`` objects with an in-memory read-through cache
- fetch_history: historical closes for a lookback range as ``PriceSeries``
- fetch_quote: display snapshot (latest price, previous close, bars)

Caching model:
- Successful fetches are cached per (symbol, range, interval) in a bounded
  LRU (``FETCH_DEFAULTS["cache_max_entries"]``); failures are not cached, so
  the next call retries.
- Concurrent requests for the same key share a single provider call.
- When a quote fetch fails, the last good quote for that symbol is returned
  instead (stale data is preferred over no data for display).

The analytics core never sees the cache: it receives fully materialised
series and does not distinguish fresh from cached inputs.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from portfolio_valuation_engine._logging import log_errors, portfolio_logger
from portfolio_valuation_engine.data_objects import PriceSeries, Quote
from portfolio_valuation_engine.providers import get_price_provider

# ── internals ──────────────────────────────────────────────────────────
_CacheKey = Tuple[str, str, str]

_chart_cache: "OrderedDict[_CacheKey, Dict[str, Any]]" = OrderedDict()
_inflight_locks: Dict[_CacheKey, threading.Lock] = {}
_last_good_quotes: Dict[str, Quote] = {}
_cache_lock = threading.Lock()


def interval_for_range(range_key: str) -> str:
    """Sampling interval used for a historical range (``10y`` → ``1mo``)."""
    from portfolio_valuation_engine.config import RANGE_INTERVALS

    return RANGE_INTERVALS.get((range_key or "").lower(), "1d")


def clear_history_cache() -> None:
    with _cache_lock:
        _chart_cache.clear()
        _inflight_locks.clear()
        _last_good_quotes.clear()


def get_cache_stats() -> Dict[str, int]:
    with _cache_lock:
        return {"charts": len(_chart_cache), "quotes": len(_last_good_quotes)}


def _cache_get(key: _CacheKey) -> Optional[Dict[str, Any]]:
    with _cache_lock:
        cached = _chart_cache.get(key)
        if cached is not None:
            _chart_cache.move_to_end(key)
    if cached is not None:
        portfolio_logger.debug("[cache hit] %s-%s-%s", *key)
    return cached


def _cache_put(key: _CacheKey, payload: Dict[str, Any]) -> None:
    from portfolio_valuation_engine.config import FETCH_DEFAULTS

    limit = max(int(FETCH_DEFAULTS["cache_max_entries"]), 1)
    with _cache_lock:
        _chart_cache[key] = payload
        _chart_cache.move_to_end(key)
        while len(_chart_cache) > limit:
            _chart_cache.popitem(last=False)


# ── public API ────────────────────────────────────────────────────────
def fetch_chart(
    symbol: str,
    range_key: str,
    interval: str,
    timeout: Optional[float] = None,
) -> Optional[Dict[str, Any]]:
    """
    Return the chart payload for ``symbol``, from cache when available.

    Concurrent callers asking for the same key share one provider call: the
    first one fetches while the others wait on the key lock and then read
    the cache.
    """
    key = (symbol, range_key, interval)
    cached = _cache_get(key)
    if cached is not None:
        return cached

    with _cache_lock:
        key_lock = _inflight_locks.setdefault(key, threading.Lock())
    try:
        with key_lock:
            cached = _cache_get(key)
            if cached is not None:
                return cached
            payload = get_price_provider().fetch_chart(symbol, range_key, interval, timeout)
            if payload:
                _cache_put(key, payload)
            return payload
    finally:
        with _cache_lock:
            if _inflight_locks.get(key) is key_lock and not key_lock.locked():
                del _inflight_locks[key]


@log_errors("medium")
def fetch_history(symbol: str, range_key: str, timeout: Optional[float] = None) -> Optional[PriceSeries]:
    """
    Historical closes for ``symbol`` over ``range_key``.

    The interval follows ``interval_for_range``. Returns None when the
    symbol could not be fetched at all; callers decide whether that means
    "treat as all-null" (portfolio analysis) or "reject this range"
    (preset probing).
    """
    payload = fetch_chart(symbol, range_key, interval_for_range(range_key), timeout)
    if not payload:
        return None
    return PriceSeries.from_chart_payload(symbol, payload)


def fetch_quote(symbol: str, range_key: str = "1d", interval: str = "5m") -> Optional[Quote]:
    """
    Display snapshot for ``symbol``; falls back to the last good quote when
    the provider fails.
    """
    payload = fetch_chart(symbol, range_key, interval)
    if not payload:
        with _cache_lock:
            stale = _last_good_quotes.get(symbol)
        if stale is not None:
            portfolio_logger.info("[network failed] returning cached quote for %s", symbol)
            return stale
        portfolio_logger.error("Failed to fetch quote for %s", symbol)
        return None

    quote = Quote.from_chart_payload(symbol, payload)
    with _cache_lock:
        _last_good_quotes[symbol] = quote
    return quote
