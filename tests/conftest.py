"""
Pytest Configuration and Fixtures
==================================

Synthetic price series and stub data sources so the suite runs without
network access.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# Ensure project root is on path
ROOT = Path(__file__).parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_valuation_engine import data_loader
from portfolio_valuation_engine.data_objects import PriceSeries
from portfolio_valuation_engine.providers import set_price_provider

DAY = 86_400
# 2024-01-01 00:00 UTC; every UTC midnight is 09:00 the same day in Asia/Seoul.
T0 = 1_704_067_200


# ============================================================================
# Mock Data Generators
# ============================================================================

def day(n: int) -> int:
    """Epoch seconds of UTC midnight ``n`` days after ``T0``."""
    return T0 + n * DAY


def make_series(
    symbol: str,
    closes: Sequence[Optional[float]],
    start_day: int = 0,
    step_days: int = 1,
) -> PriceSeries:
    """Series with one close per ``step_days`` starting ``start_day`` days after ``T0``."""
    return PriceSeries.from_pairs(
        symbol,
        [(day(start_day + i * step_days), c) for i, c in enumerate(closes)],
    )


def linear_closes(n: int, start: float = 100.0, end: float = 200.0) -> List[float]:
    if n == 1:
        return [start]
    step = (end - start) / (n - 1)
    return [start + i * step for i in range(n)]


def chart_payload(
    closes: Sequence[Optional[float]],
    start_day: int = 0,
    meta: Optional[dict] = None,
    opens: Optional[Sequence[Optional[float]]] = None,
) -> dict:
    """Chart-API ``result`` object for ``closes`` on consecutive days."""
    timestamps = [day(start_day + i) for i in range(len(closes))]
    return {
        "meta": meta or {},
        "timestamp": timestamps,
        "indicators": {
            "quote": [
                {
                    "open": list(opens) if opens is not None else list(closes),
                    "high": list(closes),
                    "low": list(closes),
                    "close": list(closes),
                }
            ]
        },
    }


class StubProvider:
    """In-memory ``PriceProvider`` keyed by symbol; records every call."""

    def __init__(self, payloads: Optional[Dict[str, Optional[dict]]] = None):
        self.payloads = dict(payloads or {})
        self.calls: List[tuple] = []

    def fetch_chart(self, symbol, range, interval, timeout=None):
        self.calls.append((symbol, range, interval))
        return self.payloads.get(symbol)


class StubHistoryLoader:
    """``(symbol, range) -> PriceSeries | None`` backed by a nested dict."""

    def __init__(self, by_range: Dict[str, Dict[str, Optional[PriceSeries]]]):
        self.by_range = by_range
        self.calls: List[tuple] = []

    def __call__(self, symbol: str, range_key: str) -> Optional[PriceSeries]:
        self.calls.append((symbol, range_key))
        return self.by_range.get(range_key, {}).get(symbol)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def _isolate_data_layer():
    """Fresh caches and the default provider slot for every test."""
    data_loader.clear_history_cache()
    yield
    data_loader.clear_history_cache()
    set_price_provider(None)


@pytest.fixture
def stub_provider():
    provider = StubProvider()
    set_price_provider(provider)
    return provider
