"""
Preset model portfolios.

The library lives in ``presets.yaml`` next to this module. ``allocate_preset``
turns a preset into a concrete ``Portfolio`` by splitting an investment
amount (in the reporting currency) across its items at current prices.
"""

from __future__ import annotations

import functools
import math
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

import yaml

from portfolio_valuation_engine._logging import portfolio_logger
from portfolio_valuation_engine.currency import normalize_unit_price
from portfolio_valuation_engine.data_objects import Holding, PresetItem, PresetPortfolio
from portfolio_valuation_engine.portfolio_config import Portfolio

PRESETS_FILE = Path(__file__).resolve().parent / "presets.yaml"


def _parse_preset(raw: dict, tolerance: float) -> PresetPortfolio:
    preset = PresetPortfolio(
        id=str(raw.get("id") or ""),
        name=str(raw.get("name") or raw.get("id") or ""),
        desc=str(raw.get("desc") or ""),
        items=tuple(
            PresetItem(item["symbol"], item["weight"], item.get("name"))
            for item in raw.get("items") or []
        ),
    )
    if abs(preset.total_weight - 1.0) > tolerance:
        raise ValueError(
            f"Preset {preset.id!r}: weights sum to {preset.total_weight:.4f}, expected ~1.0"
        )
    return preset


def load_presets(path: Union[str, Path, None] = None) -> Tuple[PresetPortfolio, ...]:
    """Parse and validate the preset library (defaults to the bundled file)."""
    from portfolio_valuation_engine.config import PRESET_DEFAULTS

    tolerance = float(PRESET_DEFAULTS["weight_tolerance"])
    with open(Path(path) if path else PRESETS_FILE, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    presets = tuple(_parse_preset(entry, tolerance) for entry in raw.get("presets") or [])
    ids = [p.id for p in presets]
    if len(ids) != len(set(ids)):
        raise ValueError("Preset ids must be unique")
    return presets


@functools.lru_cache(maxsize=1)
def default_presets() -> Tuple[PresetPortfolio, ...]:
    return load_presets()


def get_preset(preset_id: str, presets: Optional[Tuple[PresetPortfolio, ...]] = None) -> PresetPortfolio:
    for preset in presets if presets is not None else default_presets():
        if preset.id == preset_id:
            return preset
    raise KeyError(f"Unknown preset: {preset_id}")


def allocate_preset(
    preset: PresetPortfolio,
    prices: Mapping[str, Optional[float]],
    fx_rate: Optional[float],
    investment: Optional[float] = None,
    precision: Optional[int] = None,
) -> Portfolio:
    """
    Build a portfolio worth ``investment`` split by the preset weights.

    For each item: ``quantity = investment × weight / unit value``, where the
    unit value is the price in the reporting currency (``price × fx_rate``
    for foreign items), rounded to ``precision`` decimals. Items without a positive price are
    skipped. A missing or non-positive ``fx_rate`` uses
    ``PRESET_DEFAULTS["fallback_fx_rate"]``.
    """
    from portfolio_valuation_engine.config import PRESET_DEFAULTS

    if investment is None:
        investment = float(PRESET_DEFAULTS["investment_amount"])
    if precision is None:
        precision = int(PRESET_DEFAULTS["quantity_precision"])
    if fx_rate is None or not math.isfinite(fx_rate) or fx_rate <= 0:
        fx_rate = float(PRESET_DEFAULTS["fallback_fx_rate"])

    portfolio = Portfolio()
    for item in preset.items:
        price = prices.get(item.symbol)
        if price is None or not math.isfinite(price) or price <= 0:
            portfolio_logger.warning("%s: no current price, skipped in %s", item.symbol, preset.id)
            continue
        holding = Holding.from_symbol(item.symbol, 0.0, item.name)
        unit_value = normalize_unit_price(price, holding.currency_class, fx_rate)
        quantity = round(investment * item.weight / unit_value, precision)
        portfolio.add(holding.with_quantity(quantity))
    return portfolio
