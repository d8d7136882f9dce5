"""Currency normalisation onto the reporting currency.

Domestic holdings pass through unchanged; foreign holdings are multiplied by
the forward-filled FX rate of the same axis date. Until the first real FX
print, a configured fallback rate stands in.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from portfolio_valuation_engine.alignment import forward_fill
from portfolio_valuation_engine.data_objects import CurrencyClass, PriceSeries


def _fallback_rate(fallback: Optional[float]) -> float:
    if fallback is not None:
        return float(fallback)
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS

    return float(ANALYSIS_DEFAULTS["fallback_fx_rate"])


def align_fx_rates(
    fx_series: Optional[PriceSeries],
    axis: pd.DatetimeIndex,
    fallback: Optional[float] = None,
    tz: Optional[str] = None,
) -> pd.Series:
    """FX rate for every axis date, using ``fallback`` before the first print."""
    return fill_fx_rates(forward_fill(fx_series, axis, tz), axis, fallback)


def fill_fx_rates(
    fx: Optional[pd.Series],
    axis: pd.DatetimeIndex,
    fallback: Optional[float] = None,
) -> pd.Series:
    """Complete an already forward-filled FX column with the fallback rate."""
    rate = _fallback_rate(fallback)
    if fx is None:
        return pd.Series(rate, index=axis, name="fx_rate", dtype=float)
    return fx.reindex(axis).fillna(rate).rename("fx_rate")


def fx_multiplier(currency_class: CurrencyClass, fx_rate: float) -> float:
    if currency_class is CurrencyClass.DOMESTIC:
        return 1.0
    return float(fx_rate)


def normalize_unit_price(
    price: Optional[float],
    currency_class: CurrencyClass,
    fx_rate: float,
) -> float:
    """Value of one unit in the reporting currency; a missing price is 0."""
    if price is None or pd.isna(price):
        return 0.0
    return float(price) * fx_multiplier(currency_class, fx_rate)


def normalize_price_series(
    prices: pd.Series,
    currency_class: CurrencyClass,
    fx_rates: pd.Series,
) -> pd.Series:
    """Vectorised ``normalize_unit_price`` over an aligned price column."""
    filled = prices.astype(float).fillna(0.0)
    if currency_class is CurrencyClass.DOMESTIC:
        return filled
    rates = fx_rates.reindex(prices.index).astype(float)
    return pd.Series(
        np.asarray(filled, dtype=float) * np.asarray(rates, dtype=float),
        index=prices.index,
        name=prices.name,
    )
