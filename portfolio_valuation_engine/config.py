"""Environment-driven configuration surface for portfolio_valuation_engine."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


_DEFAULTS: dict[str, Any] = {
    "ANALYSIS_DEFAULTS": {
        # Epoch timestamps are truncated to calendar dates in this zone.
        "timezone": os.getenv("ANALYSIS_TIMEZONE", "Asia/Seoul"),
        "default_range": os.getenv("ANALYSIS_DEFAULT_RANGE", "5y"),
        "default_years": _env_float("ANALYSIS_DEFAULT_YEARS", 5.0),
        # Reporting-currency units per foreign unit until the first real FX print.
        "fallback_fx_rate": _env_float("ANALYSIS_FALLBACK_FX_RATE", 1200.0),
        "fx_symbol": os.getenv("ANALYSIS_FX_SYMBOL", "KRW=X"),
        "reporting_currency": os.getenv("ANALYSIS_REPORTING_CURRENCY", "KRW"),
        "domestic_suffixes": _env_list("ANALYSIS_DOMESTIC_SUFFIXES", [".KS", ".KQ"]),
        "projection_investment": _env_float("ANALYSIS_PROJECTION_INVESTMENT", 10_000_000.0),
    },
    "RANGE_YEARS": {
        "10y": 10.0,
        "7y": 7.0,
        "5y": 5.0,
        "3y": 3.0,
        "1y": 1.0,
        "6mo": 0.5,
    },
    "RANGE_INTERVALS": {
        "10y": "1mo",
        "7y": "1wk",
        "5y": "1wk",
    },
    "DATA_QUALITY_THRESHOLDS": {
        "min_raw_observations": _env_int("MIN_RAW_OBSERVATIONS", 10),
        "min_aligned_observations": _env_int("MIN_ALIGNED_OBSERVATIONS", 120),
        "deep_drawdown_pct": _env_float("DEEP_DRAWDOWN_PCT", -20.0),
        "short_history_points": _env_int("SHORT_HISTORY_POINTS", 20),
    },
    "PRESET_DEFAULTS": {
        "ranges": _env_list("PRESET_RANGES", ["10y", "5y", "3y", "1y"]),
        "investment_amount": _env_float("PRESET_INVESTMENT_AMOUNT", 10_000_000.0),
        "fallback_fx_rate": _env_float("PRESET_FALLBACK_FX_RATE", 1400.0),
        "quantity_precision": _env_int("PRESET_QUANTITY_PRECISION", 4),
        "weight_tolerance": _env_float("PRESET_WEIGHT_TOLERANCE", 0.01),
    },
    "QUOTE_DEFAULTS": {
        "search_range": os.getenv("SEARCH_RANGE", "5y"),
        "search_interval": os.getenv("SEARCH_INTERVAL", "1mo"),
        "holdings_range": os.getenv("HOLDINGS_QUOTE_RANGE", "5d"),
        "holdings_interval": os.getenv("HOLDINGS_QUOTE_INTERVAL", "15m"),
        "fx_range": os.getenv("FX_QUOTE_RANGE", "5d"),
        "fx_interval": os.getenv("FX_QUOTE_INTERVAL", "1d"),
        # Rate used for live holdings valuation when the FX quote is unavailable.
        "fallback_fx_rate": _env_float("QUOTE_FALLBACK_FX_RATE", 1400.0),
    },
    "FETCH_DEFAULTS": {
        "chart_url": os.getenv(
            "CHART_URL", "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
        ),
        "proxy_templates": _env_list(
            "CHART_PROXY_TEMPLATES",
            [
                "https://api.allorigins.win/raw?url={url}",
                "https://corsproxy.io/?url={url}",
            ],
        ),
        "timeout_seconds": _env_float("CHART_TIMEOUT_SECONDS", 10.0),
        "max_workers": _env_int("FETCH_MAX_WORKERS", 8),
        # Chart payloads kept in memory before the least recently used is evicted.
        "cache_max_entries": _env_int("CHART_CACHE_MAX_ENTRIES", 512),
        "user_agent": os.getenv("CHART_USER_AGENT", "Mozilla/5.0 (portfolio-valuation-engine)"),
    },
}


ANALYSIS_DEFAULTS = _DEFAULTS["ANALYSIS_DEFAULTS"]
RANGE_YEARS = _DEFAULTS["RANGE_YEARS"]
RANGE_INTERVALS = _DEFAULTS["RANGE_INTERVALS"]
DATA_QUALITY_THRESHOLDS = _DEFAULTS["DATA_QUALITY_THRESHOLDS"]
PRESET_DEFAULTS = _DEFAULTS["PRESET_DEFAULTS"]
QUOTE_DEFAULTS = _DEFAULTS["QUOTE_DEFAULTS"]
FETCH_DEFAULTS = _DEFAULTS["FETCH_DEFAULTS"]


def configure(**overrides: Any) -> None:
    """Programmatically override package configuration values.

    Dict-valued settings are merged key by key, so
    ``configure(ANALYSIS_DEFAULTS={"timezone": "UTC"})`` leaves the other
    analysis defaults untouched.
    """
    globals_dict = globals()
    for key, value in overrides.items():
        if key not in globals_dict or key.startswith("_"):
            raise KeyError(f"Unknown config key: {key}")
        current = globals_dict[key]
        if isinstance(current, dict) and isinstance(value, dict):
            current.update(value)
        else:
            globals_dict[key] = value
