"""Provider protocol and registry for external market data."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class PriceProvider(Protocol):
    def fetch_chart(
        self, symbol: str, range: str, interval: str, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]: ...


_price_provider: Optional[PriceProvider] = None


def set_price_provider(provider: Optional[PriceProvider]) -> None:
    """Install ``provider`` (``None`` restores the default on next access)."""
    global _price_provider
    _price_provider = provider


def get_price_provider() -> PriceProvider:
    global _price_provider
    if _price_provider is None:
        from portfolio_valuation_engine._yahoo_provider import YahooChartProvider

        _price_provider = YahooChartProvider()
    return _price_provider
