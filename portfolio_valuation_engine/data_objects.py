"""
Core Data Objects Module

Immutable input records consumed by the valuation engine.

Classes:
- PriceSeries: ascending (timestamp, close) observations for one symbol
- CurrencyClass: domestic vs foreign quotation currency
- Holding: one portfolio position (symbol, quantity, currency class)

The analytics core never mutates these objects; all of them are frozen
dataclasses validated in ``__post_init__``.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from portfolio_valuation_engine._ticker import is_domestic_symbol, normalize_symbol


def _clean_close(value: Any) -> Optional[float]:
    """Coerce a raw close to float, mapping null/NaN/non-numeric to None."""
    if value is None:
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


@dataclass(frozen=True)
class PriceSeries:
    """
    Ordered close prices for one symbol.

    Parameters:
    - symbol: ticker as requested from the data source
    - timestamps: epoch seconds, ascending
    - closes: close price per timestamp; ``None`` marks a missing print

    Example:
        series = PriceSeries.from_pairs("SPY", [(1704153600, 472.6), (1704240000, None)])
        len(series)          # 2
        series.valid_count   # 1
    """

    symbol: str
    timestamps: Tuple[int, ...] = ()
    closes: Tuple[Optional[float], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        timestamps = tuple(int(t) for t in self.timestamps)
        closes = tuple(_clean_close(c) for c in self.closes)
        if len(timestamps) != len(closes):
            raise ValueError(
                f"{self.symbol}: timestamps and closes must have the same length "
                f"({len(timestamps)} != {len(closes)})"
            )
        if any(later < earlier for earlier, later in zip(timestamps, timestamps[1:])):
            raise ValueError(f"{self.symbol}: timestamps must be ascending")
        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "closes", closes)

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def is_empty(self) -> bool:
        return not self.timestamps

    @property
    def first_timestamp(self) -> Optional[int]:
        return self.timestamps[0] if self.timestamps else None

    @property
    def valid_count(self) -> int:
        return sum(1 for c in self.closes if c is not None)

    def pairs(self) -> list[tuple[int, Optional[float]]]:
        return list(zip(self.timestamps, self.closes))

    def since(self, start_timestamp: int) -> "PriceSeries":
        """Return the observations at or after ``start_timestamp``."""
        idx = next(
            (i for i, t in enumerate(self.timestamps) if t >= start_timestamp),
            len(self.timestamps),
        )
        return PriceSeries(self.symbol, self.timestamps[idx:], self.closes[idx:])

    @classmethod
    def empty(cls, symbol: str) -> "PriceSeries":
        return cls(symbol)

    @classmethod
    def from_pairs(
        cls, symbol: str, pairs: Iterable[Tuple[int, Optional[float]]]
    ) -> "PriceSeries":
        pairs = list(pairs)
        return cls(
            symbol,
            tuple(t for t, _ in pairs),
            tuple(c for _, c in pairs),
        )

    @classmethod
    def from_chart_payload(cls, symbol: str, payload: Optional[Mapping[str, Any]]) -> "PriceSeries":
        """
        Build a series from a chart-API ``result`` object.

        The payload carries ``timestamp`` (epoch seconds) and a parallel
        ``indicators.quote[0].close`` array. A missing payload or missing
        arrays yield an empty series; a close array shorter than the
        timestamps is padded with ``None``.
        """
        if not payload:
            return cls.empty(symbol)
        timestamps = list(payload.get("timestamp") or [])
        quotes = ((payload.get("indicators") or {}).get("quote") or [{}])
        closes = list((quotes[0] or {}).get("close") or [])
        if len(closes) < len(timestamps):
            closes.extend([None] * (len(timestamps) - len(closes)))
        return cls(symbol, tuple(timestamps), tuple(closes[: len(timestamps)]))


class CurrencyClass(enum.Enum):
    """Quotation currency of a holding relative to the reporting currency."""

    DOMESTIC = "domestic"
    FOREIGN = "foreign"

    @classmethod
    def for_symbol(cls, symbol: str, domestic_suffixes: Optional[Sequence[str]] = None) -> "CurrencyClass":
        if is_domestic_symbol(symbol, domestic_suffixes):
            return cls.DOMESTIC
        return cls.FOREIGN


@dataclass(frozen=True)
class Holding:
    """
    One portfolio position.

    ``currency_class`` is attached at ingestion time; use ``from_symbol`` to
    derive it from the market-suffix convention.
    """

    symbol: str
    quantity: float
    currency_class: CurrencyClass = CurrencyClass.FOREIGN
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        symbol = normalize_symbol(self.symbol)
        if not symbol:
            raise ValueError("Holding symbol cannot be empty")
        try:
            quantity = float(self.quantity)
        except (TypeError, ValueError):
            raise ValueError(f"{symbol}: quantity must be numeric, got {self.quantity!r}")
        if not math.isfinite(quantity) or quantity < 0:
            raise ValueError(f"{symbol}: quantity must be a finite number >= 0, got {self.quantity!r}")
        if not isinstance(self.currency_class, CurrencyClass):
            object.__setattr__(self, "currency_class", CurrencyClass(self.currency_class))
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "quantity", quantity)

    @property
    def label(self) -> str:
        return self.name or self.symbol

    @property
    def is_domestic(self) -> bool:
        return self.currency_class is CurrencyClass.DOMESTIC

    def with_quantity(self, quantity: float) -> "Holding":
        return Holding(self.symbol, quantity, self.currency_class, self.name)

    @classmethod
    def from_symbol(cls, symbol: str, quantity: float = 1.0, name: Optional[str] = None) -> "Holding":
        return cls(symbol, quantity, CurrencyClass.for_symbol(symbol), name)


@dataclass(frozen=True)
class OHLCBar:
    time: int
    open: float
    high: Optional[float]
    low: Optional[float]
    close: float


@dataclass(frozen=True)
class Quote:
    """
    Snapshot of one symbol for display: latest price, previous close and the
    bars of the requested window (bars with a null open or close dropped).
    """

    symbol: str
    name: str
    current_price: Optional[float]
    prev_close: Optional[float]
    bars: Tuple[OHLCBar, ...] = ()

    @property
    def prices(self) -> list[float]:
        return [bar.close for bar in self.bars]

    @property
    def timestamps(self) -> list[int]:
        return [bar.time for bar in self.bars]

    @property
    def last_updated(self) -> Optional[int]:
        return self.bars[-1].time if self.bars else None

    @classmethod
    def from_chart_payload(cls, symbol: str, payload: Mapping[str, Any]) -> "Quote":
        timestamps = list(payload.get("timestamp") or [])
        quotes = ((payload.get("indicators") or {}).get("quote") or [{}])
        quote = quotes[0] or {}

        def column(key: str) -> list:
            values = list(quote.get(key) or [])
            return values + [None] * (len(timestamps) - len(values))

        opens, highs, lows, closes = (column(k) for k in ("open", "high", "low", "close"))
        bars = []
        for i, t in enumerate(timestamps):
            o, c = _clean_close(opens[i]), _clean_close(closes[i])
            if o is None or c is None:
                continue
            bars.append(OHLCBar(int(t), o, _clean_close(highs[i]), _clean_close(lows[i]), c))

        meta = payload.get("meta") or {}
        return cls(
            symbol=normalize_symbol(symbol),
            name=meta.get("shortName") or meta.get("longName") or normalize_symbol(symbol),
            current_price=_clean_close(meta.get("regularMarketPrice")),
            prev_close=_clean_close(meta.get("chartPreviousClose")),
            bars=tuple(bars),
        )


@dataclass(frozen=True)
class PresetItem:
    """One asset of a preset model portfolio and its target weight."""

    symbol: str
    weight: float
    name: Optional[str] = None

    def __post_init__(self):
        symbol = normalize_symbol(self.symbol)
        if not symbol:
            raise ValueError("Preset item symbol cannot be empty")
        weight = float(self.weight)
        if not math.isfinite(weight) or weight < 0:
            raise ValueError(f"{symbol}: weight must be a finite number >= 0, got {self.weight!r}")
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "weight", weight)


@dataclass(frozen=True)
class PresetPortfolio:
    """A named model portfolio whose item weights sum to ~1.0."""

    id: str
    name: str
    items: Tuple[PresetItem, ...]
    desc: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValueError("Preset id cannot be empty")
        if not self.items:
            raise ValueError(f"Preset {self.id!r} has no items")
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def total_weight(self) -> float:
        return sum(item.weight for item in self.items)

    @property
    def symbols(self) -> list[str]:
        return [item.symbol for item in self.items]
