"""Result objects returned by the analytics and orchestration layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from portfolio_valuation_engine._vendor import make_json_safe
from portfolio_valuation_engine.data_objects import Holding, Quote

Composition = List[Tuple[str, float]]

NOT_AVAILABLE_RANGE = "N/A"


@dataclass
class PerformanceReport:
    """
    Statistics derived from one valuation series.

    Percent fields are already scaled by 100 (``12.5`` means 12.5%).
    ``total_return_pct`` is 0 with a warning when the first value is 0;
    ``cagr_pct`` is 0 whenever the first or last value is not positive.
    """

    total_return_pct: float
    cagr_pct: float
    max_drawdown_pct: float
    start_composition: Composition = field(default_factory=list)
    end_composition: Composition = field(default_factory=list)
    analysis_range: Optional[str] = None
    years: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    start_value: float = 0.0
    end_value: float = 0.0
    observations: int = 0
    warnings: List[str] = field(default_factory=list)
    reporting_currency: Optional[str] = None

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_return_pct": round(self.total_return_pct, 2),
            "cagr_pct": round(self.cagr_pct, 2),
            "max_drawdown_pct": round(self.max_drawdown_pct, 2),
        }

    def to_api_response(self) -> Dict[str, Any]:
        return make_json_safe(
            {
                "analysis_period": {
                    "range": self.analysis_range,
                    "years": self.years,
                    "start_date": self.start_date,
                    "end_date": self.end_date,
                    "observations": self.observations,
                },
                "returns": {
                    "total_return_pct": round(self.total_return_pct, 2),
                    "cagr_pct": round(self.cagr_pct, 2),
                    "start_value": self.start_value,
                    "end_value": self.end_value,
                    "currency": self.reporting_currency,
                },
                "risk": {
                    "max_drawdown_pct": round(self.max_drawdown_pct, 2),
                },
                "composition": {
                    "start": [{"label": label, "value": value} for label, value in self.start_composition],
                    "end": [{"label": label, "value": value} for label, value in self.end_composition],
                },
                "warnings": list(self.warnings),
            }
        )

    def to_cli_report(self) -> str:
        lines = [
            "Portfolio Performance",
            "=" * 40,
            f"Range:          {self.analysis_range or '-'} ({self.start_date or '-'} → {self.end_date or '-'})",
            f"Total return:   {self.total_return_pct:.2f}%",
            f"CAGR:           {self.cagr_pct:.2f}%",
            f"Max drawdown:   {self.max_drawdown_pct:.2f}%",
            "",
            f"Composition (start → end, {self.reporting_currency or '-'})",
        ]
        end_values = [value for _, value in self.end_composition]
        for i, (label, start_value) in enumerate(self.start_composition):
            end_value = end_values[i] if i < len(end_values) else 0.0
            lines.append(f"  {label:<32} {start_value:>16,.0f} → {end_value:>16,.0f}")
        for warning in self.warnings:
            lines.append(f"⚠️  {warning}")
        return "\n".join(lines)


@dataclass
class PresetScore:
    """Prober outcome for one preset: CAGR and max drawdown over ``range``."""

    range: str
    return_pct: float = 0.0
    max_drawdown_pct: float = 0.0
    years: Optional[float] = None
    observations: int = 0

    @property
    def is_available(self) -> bool:
        return self.range != NOT_AVAILABLE_RANGE

    @classmethod
    def not_available(cls) -> "PresetScore":
        return cls(range=NOT_AVAILABLE_RANGE)

    def to_api_response(self) -> Dict[str, Any]:
        return {
            "range": self.range,
            "return": f"{self.return_pct:.2f}",
            "mdd": f"{self.max_drawdown_pct:.2f}",
        }


@dataclass
class PortfolioAnalysisResult:
    """Valuation series, performance report and flags for one analysis run."""

    report: PerformanceReport
    value_points: List[Tuple[str, float]]
    flags: List[Dict[str, Any]] = field(default_factory=list)
    failed_symbols: List[str] = field(default_factory=list)
    analysis_date: datetime = field(default_factory=datetime.now)

    def to_api_response(self) -> Dict[str, Any]:
        payload = self.report.to_api_response()
        payload.update(
            {
                "valuation_series": [{"date": d, "value": v} for d, v in self.value_points],
                "flags": self.flags,
                "failed_symbols": list(self.failed_symbols),
                "analysis_date": self.analysis_date.isoformat(timespec="seconds"),
            }
        )
        return make_json_safe(payload)

    def to_cli_report(self) -> str:
        lines = [self.report.to_cli_report()]
        if self.failed_symbols:
            lines.append(f"⚠️  No price history for: {', '.join(self.failed_symbols)}")
        for flag in self.flags:
            lines.append(f"[{flag.get('severity', 'info')}] {flag.get('message', '')}")
        return "\n".join(lines)


@dataclass
class SymbolSearchResult:
    """Quote for a searched symbol plus its change versus the previous close."""

    quote: Quote
    change: Optional[Dict[str, Any]] = None
    range: Optional[str] = None
    interval: Optional[str] = None

    def to_api_response(self) -> Dict[str, Any]:
        return make_json_safe(
            {
                "symbol": self.quote.symbol,
                "name": self.quote.name,
                "range": self.range,
                "interval": self.interval,
                "current_price": self.quote.current_price,
                "prev_close": self.quote.prev_close,
                "change": self.change,
                "last_updated": self.quote.last_updated,
                "history": [{"time": t, "close": c} for t, c in zip(self.quote.timestamps, self.quote.prices)],
            }
        )

    def to_cli_report(self) -> str:
        price = self.quote.current_price
        lines = [f"{self.quote.name} ({self.quote.symbol})"]
        lines.append(f"Price:      {price:,.2f}" if price is not None else "Price:      --")
        if self.change is not None:
            sign = "+" if self.change["is_up"] else ""
            lines.append(f"Change:     {sign}{self.change['diff']:,.2f} ({sign}{self.change['percent']:.2f}%)")
        lines.append(f"History:    {len(self.quote.bars)} bars ({self.range or '-'}, {self.interval or '-'})")
        return "\n".join(lines)


@dataclass
class HoldingSnapshot:
    """One holding valued at its latest quote; ``price`` is None when unpriced."""

    holding: Holding
    price: Optional[float]
    market_value: float

    @property
    def is_priced(self) -> bool:
        return self.price is not None


@dataclass
class PortfolioSnapshot:
    """Current value of every holding in the reporting currency."""

    rows: List[HoldingSnapshot]
    fx_rate: float
    fx_is_fallback: bool = False
    reporting_currency: Optional[str] = None
    as_of: datetime = field(default_factory=datetime.now)

    @property
    def total_value(self) -> float:
        return sum(row.market_value for row in self.rows)

    @property
    def unpriced_symbols(self) -> List[str]:
        return [row.holding.symbol for row in self.rows if not row.is_priced]

    def to_api_response(self) -> Dict[str, Any]:
        return make_json_safe(
            {
                "holdings": [
                    {
                        "symbol": row.holding.symbol,
                        "name": row.holding.label,
                        "quantity": row.holding.quantity,
                        "price": row.price,
                        "market_value": row.market_value,
                    }
                    for row in self.rows
                ],
                "total_value": self.total_value,
                "fx_rate": self.fx_rate,
                "fx_is_fallback": self.fx_is_fallback,
                "currency": self.reporting_currency,
                "unpriced_symbols": self.unpriced_symbols,
                "as_of": self.as_of.isoformat(timespec="seconds"),
            }
        )

    def to_cli_report(self) -> str:
        currency = self.reporting_currency or ""
        lines = [f"{'Symbol':<12} {'Name':<32} {'Quantity':>12} {'Value':>18}"]
        for row in self.rows:
            value = f"{int(row.market_value):,} {currency}" if row.is_priced else "--"
            lines.append(f"{row.holding.symbol:<12} {row.holding.label:<32} {row.holding.quantity:>12,.4f} {value:>18}")
        lines.append(f"Total: {int(self.total_value):,} {currency}")
        rate_note = " (fallback)" if self.fx_is_fallback else ""
        lines.append(f"FX rate: {self.fx_rate:,.2f}{rate_note}")
        return "\n".join(lines)
