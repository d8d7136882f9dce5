"""Preset-portfolio scoring and copying.

``score_presets`` runs the adaptive range prober for every preset;
``copy_preset`` turns a preset into a concrete portfolio at current prices.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional, Sequence

from portfolio_valuation_engine._logging import log_errors, log_operation, log_timing
from portfolio_valuation_engine.data_loader import fetch_history, fetch_quote
from portfolio_valuation_engine.data_objects import PresetPortfolio, Quote
from portfolio_valuation_engine.portfolio_config import Portfolio
from portfolio_valuation_engine.presets import allocate_preset, default_presets, get_preset
from portfolio_valuation_engine.range_prober import HistoryLoader, probe_preset
from portfolio_valuation_engine.results import PresetScore

QuoteLoader = Callable[[str], Optional[Quote]]


def _live_quote(symbol: str) -> Optional[Quote]:
    return fetch_quote(symbol, "1d", "1m")


@log_errors("medium")
@log_operation("preset_scoring")
@log_timing(30.0)
def score_presets(
    presets: Optional[Sequence[PresetPortfolio]] = None,
    history_loader: Optional[HistoryLoader] = None,
    *,
    ranges: Optional[Sequence[str]] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, PresetScore]:
    """Score every preset, keyed by preset id, in library order."""
    from portfolio_valuation_engine.config import FETCH_DEFAULTS

    presets = presets if presets is not None else default_presets()
    loader = history_loader or fetch_history
    workers = max_workers or int(FETCH_DEFAULTS["max_workers"])

    scores: Dict[str, PresetScore] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        for preset in presets:
            scores[preset.id] = probe_preset(preset.items, loader, ranges, executor=pool)
    return scores


@log_errors("high")
@log_operation("preset_copy")
def copy_preset(
    preset_id: str,
    quote_loader: Optional[QuoteLoader] = None,
    *,
    investment: Optional[float] = None,
) -> Portfolio:
    """Allocate ``investment`` across a preset using current quotes."""
    from portfolio_valuation_engine.config import ANALYSIS_DEFAULTS

    preset = get_preset(preset_id)
    loader = quote_loader or _live_quote

    fx_quote = loader(ANALYSIS_DEFAULTS["fx_symbol"])
    fx_rate = fx_quote.current_price if fx_quote is not None else None

    prices = {}
    for item in preset.items:
        quote = loader(item.symbol)
        prices[item.symbol] = quote.current_price if quote is not None else None

    return allocate_preset(preset, prices, fx_rate, investment)
