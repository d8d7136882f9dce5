import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import requests

from portfolio_valuation_engine import config, data_loader
from portfolio_valuation_engine._yahoo_provider import YahooChartProvider
from portfolio_valuation_engine.providers import PriceProvider, get_price_provider, set_price_provider

from conftest import StubProvider, chart_payload


class SlowProvider(StubProvider):
    def __init__(self, payloads=None, delay=0.2):
        super().__init__(payloads)
        self.delay = delay
        self._lock = threading.Lock()

    def fetch_chart(self, symbol, range, interval, timeout=None):
        with self._lock:
            self.calls.append((symbol, range, interval))
        time.sleep(self.delay)
        return self.payloads.get(symbol)


def test_interval_for_range():
    assert data_loader.interval_for_range("10y") == "1mo"
    assert data_loader.interval_for_range("5y") == "1wk"
    assert data_loader.interval_for_range("1y") == "1d"
    assert data_loader.interval_for_range("6mo") == "1d"


def test_fetch_history_parses_and_caches(stub_provider):
    stub_provider.payloads["SPY"] = chart_payload([100.0, None, 102.0])

    first = data_loader.fetch_history("SPY", "10y")
    second = data_loader.fetch_history("SPY", "10y")

    assert first == second
    assert first.closes == (100.0, None, 102.0)
    assert stub_provider.calls == [("SPY", "10y", "1mo")]
    assert data_loader.get_cache_stats()["charts"] == 1


def test_failures_are_not_cached(stub_provider):
    assert data_loader.fetch_history("MISSING", "1y") is None
    assert data_loader.fetch_history("MISSING", "1y") is None
    assert len(stub_provider.calls) == 2

    stub_provider.payloads["MISSING"] = chart_payload([1.0])
    assert data_loader.fetch_history("MISSING", "1y").valid_count == 1


def test_quote_falls_back_to_last_good_snapshot(stub_provider):
    stub_provider.payloads["^KS11"] = chart_payload(
        [2500.0, 2510.0, 2490.0],
        opens=[2495.0, None, 2500.0],
        meta={"shortName": "KOSPI", "regularMarketPrice": 2490.0, "chartPreviousClose": 2480.0},
    )
    quote = data_loader.fetch_quote("^KS11", "1d", "5m")
    assert quote.name == "KOSPI"
    assert quote.prices == [2500.0, 2490.0]  # bar with a null open is dropped
    assert quote.last_updated == quote.timestamps[-1]

    del stub_provider.payloads["^KS11"]
    stale = data_loader.fetch_quote("^KS11", "5d", "15m")
    assert stale is quote


def test_quote_without_history_returns_none(stub_provider):
    assert data_loader.fetch_quote("NOPE") is None


def test_clear_cache(stub_provider):
    stub_provider.payloads["SPY"] = chart_payload([1.0])
    data_loader.fetch_quote("SPY")
    data_loader.clear_history_cache()
    assert data_loader.get_cache_stats() == {"charts": 0, "quotes": 0}


def test_concurrent_requests_for_one_key_share_a_fetch():
    provider = SlowProvider({"SPY": chart_payload([1.0, 2.0])})
    set_price_provider(provider)

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(lambda _: data_loader.fetch_history("SPY", "1y"), range(6)))

    assert provider.calls == [("SPY", "1y", "1d")]
    assert all(r.closes == (1.0, 2.0) for r in results)


def test_chart_cache_evicts_least_recently_used(stub_provider, monkeypatch):
    monkeypatch.setitem(config.FETCH_DEFAULTS, "cache_max_entries", 2)
    for symbol in ("A", "B", "C"):
        stub_provider.payloads[symbol] = chart_payload([1.0])

    data_loader.fetch_history("A", "1y")
    data_loader.fetch_history("B", "1y")
    data_loader.fetch_history("A", "1y")
    data_loader.fetch_history("C", "1y")
    assert data_loader.get_cache_stats()["charts"] == 2

    data_loader.fetch_history("A", "1y")
    data_loader.fetch_history("B", "1y")
    assert [c[0] for c in stub_provider.calls] == ["A", "B", "C", "B"]


def test_default_provider_is_yahoo():
    provider = get_price_provider()
    assert isinstance(provider, YahooChartProvider)
    assert isinstance(StubProvider(), PriceProvider)


def _response(ok=True, payload=None, status=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status
    response.json.return_value = payload
    return response


def test_yahoo_provider_tries_relays_in_order():
    result = chart_payload([10.0])
    session = MagicMock()
    session.get.side_effect = [
        requests.ConnectionError("blocked"),
        _response(ok=False, status=403),
        _response(payload={"chart": {"result": [result]}}),
    ]
    provider = YahooChartProvider(session=session)

    assert provider.fetch_chart("005930.KS", "1y", "1d") == result

    urls = [call.args[0] for call in session.get.call_args_list]
    assert urls[0].startswith("https://query1.finance.yahoo.com/v8/finance/chart/005930.KS?")
    assert "allorigins" in urls[1]
    assert "corsproxy" in urls[2]


def test_yahoo_provider_returns_none_when_all_routes_fail():
    session = MagicMock()
    session.get.return_value = _response(payload={"chart": {"result": None}})
    assert YahooChartProvider(session=session).fetch_chart("SPY", "1y", "1d") is None
    assert session.get.call_count == 3
