"""
Portfolio valuation accumulator.

For every date of the unified axis:

    value(date) = Σ quantity × price(h, date) × fx_multiplier(h, date)

where ``price`` is the forward-filled close and ``fx_multiplier`` is 1 for
domestic holdings and the forward-filled FX rate for foreign ones.

Holdings whose history starts after the axis start contribute 0 until their
first print; holdings with no usable history at all contribute 0 throughout.
Neither case raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import pandas as pd

from portfolio_valuation_engine.alignment import align_series
from portfolio_valuation_engine.currency import fill_fx_rates, normalize_price_series
from portfolio_valuation_engine.data_objects import Holding, PriceSeries

logger = logging.getLogger(__name__)

VALUE_SERIES_NAME = "portfolio_value"


@dataclass(frozen=True)
class PortfolioValuation:
    """
    Aligned inputs and the resulting valuation series.

    - axis: unified calendar-date axis
    - prices: forward-filled local prices, one column per holding (NaN before
      the first print)
    - fx_rates: FX rate per axis date (fallback before the first FX print)
    - holding_values: quantity × normalised price per holding and date
    - values: the ValuationSeries, the row sum of ``holding_values``
    """

    holdings: tuple[Holding, ...]
    axis: pd.DatetimeIndex
    prices: pd.DataFrame
    fx_rates: pd.Series
    holding_values: pd.DataFrame
    values: pd.Series

    @property
    def is_empty(self) -> bool:
        return len(self.axis) == 0

    def value_points(self) -> list[tuple[str, float]]:
        """``(YYYY-MM-DD, value)`` pairs in axis order, for charting."""
        return [(d.date().isoformat(), float(v)) for d, v in self.values.items()]


def build_valuation_series(
    holdings: Sequence[Holding],
    price_series: Mapping[str, Optional[PriceSeries]],
    fx_series: Optional[PriceSeries] = None,
    *,
    fallback_fx: Optional[float] = None,
    tz: Optional[str] = None,
) -> PortfolioValuation:
    """
    Value ``holdings`` on every date observed in their series and the FX series.

    Args:
        holdings: positions to value; order is preserved in the outputs.
        price_series: symbol -> PriceSeries. A missing key or an empty series
            is treated as an all-null history.
        fx_series: foreign -> reporting currency rate history.
        fallback_fx: FX rate used before the first FX print (defaults to
            ``ANALYSIS_DEFAULTS["fallback_fx_rate"]``).
        tz: timezone used to truncate timestamps to dates.

    Returns:
        PortfolioValuation with ``values`` aligned 1:1 to the axis.
    """
    holdings = tuple(holdings)
    frame = align_series({h.symbol: price_series.get(h.symbol) for h in holdings}, fx_series, tz)
    axis = frame.axis
    fx_rates = fill_fx_rates(frame.fx, axis, fallback_fx)

    price_columns = []
    value_columns = []
    for holding in holdings:
        prices = frame.prices[holding.symbol].rename(holding.symbol)
        normalized = normalize_price_series(prices, holding.currency_class, fx_rates)
        price_columns.append(prices)
        value_columns.append((normalized * holding.quantity).rename(holding.symbol))
        series = price_series.get(holding.symbol)
        if series is None or series.valid_count == 0:
            logger.debug("%s has no usable history; valued at 0", holding.symbol)

    if price_columns:
        prices_df = pd.concat(price_columns, axis=1)
        values_df = pd.concat(value_columns, axis=1)
    else:
        prices_df = pd.DataFrame(index=axis, dtype=float)
        values_df = pd.DataFrame(index=axis, dtype=float)

    values = values_df.sum(axis=1).astype(float).rename(VALUE_SERIES_NAME)
    values.index.name = axis.name

    return PortfolioValuation(
        holdings=holdings,
        axis=axis,
        prices=prices_df,
        fx_rates=fx_rates,
        holding_values=values_df,
        values=values,
    )
