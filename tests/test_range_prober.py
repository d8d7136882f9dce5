from concurrent.futures import ThreadPoolExecutor

import pytest

from portfolio_valuation_engine.data_objects import PresetItem
from portfolio_valuation_engine.range_prober import (
    DAYS_PER_YEAR,
    combine_weighted,
    probe_preset,
    score_window,
)
from portfolio_valuation_engine.results import NOT_AVAILABLE_RANGE, PresetScore

from conftest import StubHistoryLoader, linear_closes, make_series

ITEMS = (PresetItem("SPY", 0.6), PresetItem("TLT", 0.4))


def _window(n, start_day=0):
    return {
        "SPY": make_series("SPY", linear_closes(n, 100, 200), start_day=start_day),
        "TLT": make_series("TLT", [50.0] * n, start_day=start_day),
    }


def test_short_history_everywhere_is_not_available():
    loader = StubHistoryLoader({r: _window(8) for r in ("10y", "5y", "3y", "1y")})

    score = probe_preset(ITEMS, loader)

    assert not score.is_available
    assert score.to_api_response() == {"range": "N/A", "return": "0.00", "mdd": "0.00"}
    assert [r for _, r in loader.calls[::2]] == ["10y", "5y", "3y", "1y"]


def test_falls_back_to_first_range_with_enough_data():
    loader = StubHistoryLoader({"10y": _window(8), "5y": _window(130), "3y": _window(200)})

    score = probe_preset(ITEMS, loader)

    assert score.range == "5y"
    assert score.observations == 130
    assert score.return_pct > 0
    assert score.max_drawdown_pct == 0.0


def test_cagr_uses_elapsed_calendar_days():
    items = (PresetItem("SPY", 1.0),)
    series = [make_series("SPY", linear_closes(130, 100, 200))]

    score = score_window(items, series, "1y")

    years = 129 / DAYS_PER_YEAR
    assert score.years == pytest.approx(round(years, 4))
    assert score.return_pct == pytest.approx((2.0 ** (1 / years) - 1) * 100)


def test_trimming_to_common_start_can_drop_below_aligned_floor():
    series = [
        make_series("SPY", linear_closes(130)),
        make_series("TLT", [50.0] * 130, start_day=20),
    ]
    # SPY trimmed to the TLT start keeps only 110 prints
    assert score_window(ITEMS, series, "5y") is None
    assert score_window(ITEMS, series, "5y", min_aligned=100) is not None


def test_missing_asset_rejects_range():
    window = _window(150)
    window["TLT"] = None
    loader = StubHistoryLoader({"5y": window, "3y": _window(150)})

    assert probe_preset(ITEMS, loader, ["5y", "3y"]).range == "3y"


def test_loader_exception_moves_to_next_range():
    good = _window(150)

    def loader(symbol, range_key):
        if range_key == "10y":
            raise RuntimeError("boom")
        return good[symbol]

    assert probe_preset(ITEMS, loader, ["10y", "5y"]).range == "5y"


def test_probe_with_executor_matches_sequential():
    loader = StubHistoryLoader({"3y": _window(140)})
    sequential = probe_preset(ITEMS, loader, ["3y"])
    with ThreadPoolExecutor(max_workers=4) as pool:
        threaded = probe_preset(ITEMS, loader, ["3y"], executor=pool)
    assert sequential == threaded


def test_combine_weighted_normalises_each_asset_to_one():
    series = [
        make_series("SPY", [100, 150, 200]),
        make_series("TLT", [40, 40], start_day=1),
    ]
    values = combine_weighted(ITEMS, series)
    # TLT is held at 1.0 before its first print
    assert values.tolist() == pytest.approx([1.0, 0.6 * 1.5 + 0.4, 0.6 * 2.0 + 0.4])


def test_combine_weighted_rejects_non_positive_start():
    series = [make_series("SPY", [0, 10]), make_series("TLT", [1, 1])]
    assert combine_weighted(ITEMS, series) is None


def test_score_window_requires_matching_inputs():
    with pytest.raises(ValueError):
        score_window(ITEMS, [make_series("SPY", [1])], "1y")


def test_not_available_constant():
    assert PresetScore.not_available().range == NOT_AVAILABLE_RANGE
    assert PresetScore("5y", 7.123, -12.5).to_api_response() == {
        "range": "5y",
        "return": "7.12",
        "mdd": "-12.50",
    }
