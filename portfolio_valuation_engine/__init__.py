"""Public API for portfolio_valuation_engine."""

from portfolio_valuation_engine.data_objects import (
    CurrencyClass,
    Holding,
    PresetItem,
    PresetPortfolio,
    PriceSeries,
    Quote,
)
from portfolio_valuation_engine.exceptions import (
    DuplicateHoldingError,
    EmptyPortfolioError,
    MissingFXSeriesError,
    NoUsableSeriesError,
    PortfolioValuationError,
    SymbolNotFoundError,
    UnknownHoldingError,
)
from portfolio_valuation_engine.portfolio_analysis import analyze_portfolio, run_valuation_pipeline
from portfolio_valuation_engine.portfolio_config import Portfolio, load_portfolio_config, save_portfolio_config
from portfolio_valuation_engine.preset_analysis import copy_preset, score_presets
from portfolio_valuation_engine.quote_analysis import portfolio_snapshot, search_symbol
from portfolio_valuation_engine.providers import (
    PriceProvider,
    get_price_provider,
    set_price_provider,
)
from portfolio_valuation_engine.valuation import PortfolioValuation, build_valuation_series

__all__ = [
    "CurrencyClass",
    "Holding",
    "PresetItem",
    "PresetPortfolio",
    "PriceSeries",
    "Quote",
    "PortfolioValuationError",
    "EmptyPortfolioError",
    "MissingFXSeriesError",
    "NoUsableSeriesError",
    "DuplicateHoldingError",
    "UnknownHoldingError",
    "SymbolNotFoundError",
    "analyze_portfolio",
    "run_valuation_pipeline",
    "Portfolio",
    "load_portfolio_config",
    "save_portfolio_config",
    "score_presets",
    "copy_preset",
    "search_symbol",
    "portfolio_snapshot",
    "PriceProvider",
    "set_price_provider",
    "get_price_provider",
    "PortfolioValuation",
    "build_valuation_series",
]
