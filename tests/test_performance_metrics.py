import math

import pytest

from portfolio_valuation_engine.data_objects import CurrencyClass, Holding
from portfolio_valuation_engine.performance_metrics_engine import (
    cagr,
    composition_snapshot,
    compute_performance_metrics,
    max_drawdown,
    total_return,
    years_for_range,
)
from portfolio_valuation_engine.valuation import build_valuation_series

from conftest import make_series

DOMESTIC = CurrencyClass.DOMESTIC


def _valuation(closes_by_symbol, quantities=None, start_days=None):
    quantities = quantities or {}
    start_days = start_days or {}
    holdings = [Holding(s, quantities.get(s, 1), DOMESTIC, name=f"{s} Corp") for s in closes_by_symbol]
    series = {
        s: make_series(s, closes, start_day=start_days.get(s, 0)) for s, closes in closes_by_symbol.items()
    }
    return build_valuation_series(holdings, series)


def test_single_asset_round_trip_drawdown():
    report = compute_performance_metrics(_valuation({"A": [100, 50, 100]}), "1y")

    assert report.total_return_pct == pytest.approx(0.0)
    assert report.max_drawdown_pct == pytest.approx(-50.0)
    assert f"{report.max_drawdown_pct:.2f}" == "-50.00"
    assert report.warnings == []


def test_offsetting_assets_have_flat_metrics():
    report = compute_performance_metrics(_valuation({"A": [100, 110], "B": [200, 190]}), "5y")
    assert report.total_return_pct == pytest.approx(0.0)
    assert report.max_drawdown_pct == pytest.approx(0.0)
    assert report.cagr_pct == pytest.approx(0.0)


def test_cagr_matches_total_return_over_nominal_years():
    values = [100.0, 130.0, 121.0]
    years = years_for_range("3y")
    growth = 1 + total_return(values) / 100
    assert (1 + cagr(values, years) / 100) ** years == pytest.approx(growth)


def test_range_years_lookup():
    assert years_for_range("10y") == 10.0
    assert years_for_range("7y") == 7.0
    assert years_for_range("5Y") == 5.0
    assert years_for_range("6mo") == 0.5
    assert years_for_range("max") == 5.0
    assert years_for_range(None) == 5.0


def test_zero_start_value_is_reported_as_zero_with_warning():
    # B only starts trading on day 1, A is worth 0 throughout
    valuation = _valuation({"A": [0, 0, 0], "B": [10, 12]}, start_days={"B": 1})
    report = compute_performance_metrics(valuation, "1y")

    assert total_return(valuation.values) is None
    assert report.total_return_pct == 0.0
    assert report.cagr_pct == 0.0
    assert any("first date" in w for w in report.warnings)
    assert all(math.isfinite(x) for x in (report.max_drawdown_pct, report.cagr_pct))


def test_degenerate_inputs_never_produce_nan():
    assert total_return([]) is None
    assert cagr([], 5) == 0.0
    assert cagr([100, 120], 0) == 0.0
    assert cagr([100, 0], 5) == 0.0
    assert cagr([0, 100], 5) == 0.0
    assert max_drawdown([]) == 0.0
    assert max_drawdown([0, 0, 0]) == 0.0
    assert max_drawdown([0, 10, 5]) == pytest.approx(-50.0)


def test_drawdown_bounds():
    for values in ([1, 2, 3], [3, 2, 1], [5, 1, 9, 0.5, 7], [100]):
        mdd = max_drawdown(values)
        assert -100.0 <= mdd <= 0.0
    assert max_drawdown([1, 2, 3]) == 0.0
    assert max_drawdown([10, 0]) == pytest.approx(-100.0)


def test_composition_snapshots_use_labels_and_late_start_is_zero():
    valuation = _valuation({"A": [100, 110, 120], "B": [7, 8]}, quantities={"B": 10}, start_days={"B": 1})

    start = composition_snapshot(valuation, "start")
    end = composition_snapshot(valuation, "end")

    assert start == [("A Corp", 100.0), ("B Corp", 0.0)]
    assert end == [("A Corp", 120.0), ("B Corp", 80.0)]
    with pytest.raises(ValueError):
        composition_snapshot(valuation, "middle")


def test_report_dates_and_values():
    report = compute_performance_metrics(_valuation({"A": [100, 125]}), "1y")

    assert report.start_date == "2024-01-01"
    assert report.end_date == "2024-01-02"
    assert report.start_value == 100.0
    assert report.end_value == 125.0
    assert report.observations == 2
    assert report.total_return_pct == pytest.approx(25.0)
    assert report.cagr_pct == pytest.approx(25.0)
    assert report.get_summary() == {"total_return_pct": 25.0, "cagr_pct": 25.0, "max_drawdown_pct": 0.0}


def test_empty_valuation_gives_zeroed_report():
    valuation = build_valuation_series([Holding("A", 1, DOMESTIC)], {})
    report = compute_performance_metrics(valuation, "5y")

    assert report.total_return_pct == 0.0
    assert report.observations == 0
    assert report.start_composition == [("A", 0.0)]
    assert report.warnings


def test_api_response_is_json_safe():
    report = compute_performance_metrics(_valuation({"A": [100, 50, 100]}), "1y")
    payload = report.to_api_response()

    assert payload["risk"]["max_drawdown_pct"] == -50.0
    assert payload["analysis_period"]["range"] == "1y"
    assert payload["composition"]["end"] == [{"label": "A Corp", "value": 100.0}]
    assert "Max drawdown" in report.to_cli_report()


def test_cli_report_pairs_compositions_by_position():
    holdings = [Holding("A", 1, DOMESTIC, name="Same Name"), Holding("B", 1, DOMESTIC, name="Same Name")]
    series = {"A": make_series("A", [10, 11]), "B": make_series("B", [500, 700])}
    report = compute_performance_metrics(build_valuation_series(holdings, series), "1y")

    lines = [line for line in report.to_cli_report().splitlines() if "Same Name" in line]

    assert lines[0].split() == ["Same", "Name", "10", "→", "11"]
    assert lines[1].split() == ["Same", "Name", "500", "→", "700"]


def test_report_carries_reporting_currency(monkeypatch):
    from portfolio_valuation_engine import config

    monkeypatch.setitem(config.ANALYSIS_DEFAULTS, "reporting_currency", "KRW")
    report = compute_performance_metrics(_valuation({"A": [1, 2]}), "1y")

    assert report.reporting_currency == "KRW"
    assert report.to_api_response()["returns"]["currency"] == "KRW"
    assert "start → end, KRW" in report.to_cli_report()
