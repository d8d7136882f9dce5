"""Minimal symbol/currency helpers."""

from __future__ import annotations

from typing import Iterable, Optional


def normalize_symbol(symbol: Optional[str]) -> str:
    if not symbol:
        return ""
    return str(symbol).strip().upper()


def is_domestic_symbol(symbol: str, domestic_suffixes: Optional[Iterable[str]] = None) -> bool:
    """True when ``symbol`` carries a domestic-market suffix (``.KS``/``.KQ``).

    Symbols without a recognised suffix are treated as foreign, including
    domestic listings that were entered without their suffix.
    """
    if domestic_suffixes is None:
        from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS

        domestic_suffixes = ANALYSIS_DEFAULTS["domestic_suffixes"]
    sym = normalize_symbol(symbol)
    return any(sym.endswith(str(suffix).upper()) for suffix in domestic_suffixes)


def apply_exchange_suffix(code: Optional[str], suffix: Optional[str]) -> str:
    """Append a market suffix (e.g. ``.KS``) to a bare code.

    Codes that already contain a dot are returned unchanged.
    """
    sym = normalize_symbol(code)
    if not sym:
        return ""
    if suffix and "." not in sym:
        sym += suffix.upper()
    return sym
