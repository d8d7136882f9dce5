"""Portfolio configuration and editing utilities.

Contract notes:
- ``Portfolio`` is the editable container behind the holdings list; the
  analytics core only ever receives its immutable ``Holding`` tuples.
- ``load_portfolio_config`` / ``save_portfolio_config`` persist a portfolio
  as YAML::

      analysis_range: 5y
      holdings:
        - symbol: 005930.KS
          name: Samsung Electronics
          quantity: 10
        - symbol: SPY
          quantity: 2.5
        - code: "035720"    # bare code plus market suffix
          suffix: .KQ
          quantity: 3
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import yaml

from portfolio_valuation_engine._logging import log_errors, log_operation, log_timing
from portfolio_valuation_engine._ticker import apply_exchange_suffix, normalize_symbol
from portfolio_valuation_engine.currency import normalize_unit_price
from portfolio_valuation_engine.data_objects import CurrencyClass, Holding
from portfolio_valuation_engine.exceptions import DuplicateHoldingError, UnknownHoldingError

_CURRENCY_LABELS = {CurrencyClass.DOMESTIC: "KRW", CurrencyClass.FOREIGN: "USD"}


class Portfolio:
    """Holdings keyed by symbol, iterated in symbol order."""

    def __init__(self, holdings: Optional[list[Holding]] = None):
        self._holdings: Dict[str, Holding] = {}
        for holding in holdings or []:
            self.add(holding)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and normalize_symbol(symbol) in self._holdings

    def __iter__(self) -> Iterator[Holding]:
        return iter(self.holdings)

    def __len__(self) -> int:
        return len(self._holdings)

    @property
    def holdings(self) -> tuple[Holding, ...]:
        return tuple(self._holdings[s] for s in sorted(self._holdings))

    def get(self, symbol: str) -> Holding:
        try:
            return self._holdings[normalize_symbol(symbol)]
        except KeyError:
            raise UnknownHoldingError(f"{symbol} is not in the portfolio") from None

    def add(self, holding: Holding) -> Holding:
        if holding.symbol in self._holdings:
            raise DuplicateHoldingError(f"{holding.symbol} is already in the portfolio")
        self._holdings[holding.symbol] = holding
        return holding

    def remove(self, symbol: str) -> Holding:
        holding = self.get(symbol)
        del self._holdings[holding.symbol]
        return holding

    def set_quantity(self, symbol: str, quantity: float) -> Holding:
        updated = self.get(symbol).with_quantity(quantity)
        self._holdings[updated.symbol] = updated
        return updated

    def clear(self) -> None:
        self._holdings.clear()

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """``{symbol: {symbol, name, currency, quantity}}``."""
        return {
            h.symbol: {
                "symbol": h.symbol,
                "name": h.label,
                "currency": _CURRENCY_LABELS[h.currency_class],
                "quantity": h.quantity,
            }
            for h in self.holdings
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, Any]]) -> "Portfolio":
        holdings = []
        for key, row in (data or {}).items():
            row = row or {}
            holdings.append(
                Holding.from_symbol(
                    row.get("symbol") or key,
                    row.get("quantity", 1),
                    row.get("name"),
                )
            )
        return cls(holdings)


def holding_market_value(holding: Holding, price: Optional[float], fx_rate: float) -> float:
    """Current value of one holding in the reporting currency (0 without a price)."""
    return normalize_unit_price(price, holding.currency_class, fx_rate) * holding.quantity


@log_errors("high")
@log_operation("config_loading")
@log_timing(0.5)
def load_portfolio_config(filepath: Union[str, Path] = "portfolio.yaml") -> Dict[str, Any]:
    """
    Load a portfolio YAML file.

    Returns a dict with ``portfolio`` (a ``Portfolio``) and
    ``analysis_range`` (None when the file does not set one).
    """
    with open(Path(filepath), "r") as f:
        cfg_raw = yaml.safe_load(f) or {}

    rows = cfg_raw.get("holdings") or []
    if not isinstance(rows, list):
        raise ValueError(f"{filepath}: 'holdings' must be a list")

    portfolio = Portfolio()
    for row in rows:
        symbol = None
        if isinstance(row, dict):
            symbol = row.get("symbol") or apply_exchange_suffix(row.get("code"), row.get("suffix"))
        if not symbol:
            raise ValueError(f"{filepath}: every holding needs a 'symbol' ({row!r})")
        portfolio.add(Holding.from_symbol(symbol, row.get("quantity", 1), row.get("name")))

    return {"portfolio": portfolio, "analysis_range": cfg_raw.get("analysis_range")}


def save_portfolio_config(
    portfolio: Portfolio,
    filepath: Union[str, Path],
    analysis_range: Optional[str] = None,
) -> Path:
    payload: Dict[str, Any] = {}
    if analysis_range:
        payload["analysis_range"] = analysis_range
    payload["holdings"] = [
        {"symbol": h.symbol, "name": h.label, "quantity": h.quantity} for h in portfolio.holdings
    ]
    path = Path(filepath)
    with open(path, "w") as f:
        yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)
    return path
