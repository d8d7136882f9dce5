import pytest

from portfolio_valuation_engine._ticker import apply_exchange_suffix
from portfolio_valuation_engine.data_objects import CurrencyClass, Holding
from portfolio_valuation_engine.exceptions import DuplicateHoldingError, UnknownHoldingError
from portfolio_valuation_engine.portfolio_config import (
    Portfolio,
    holding_market_value,
    load_portfolio_config,
    save_portfolio_config,
)


def _portfolio():
    return Portfolio(
        [
            Holding.from_symbol("SPY", 2.5, "SPDR S&P 500"),
            Holding.from_symbol("005930.KS", 10, "Samsung Electronics"),
        ]
    )


def test_holdings_are_sorted_and_unique():
    portfolio = _portfolio()
    assert [h.symbol for h in portfolio] == ["005930.KS", "SPY"]
    assert "spy" in portfolio
    assert len(portfolio) == 2

    with pytest.raises(DuplicateHoldingError):
        portfolio.add(Holding.from_symbol("spy", 1))


def test_remove_and_update_quantity():
    portfolio = _portfolio()
    assert portfolio.set_quantity("SPY", 4).quantity == 4.0
    assert portfolio.get("SPY").quantity == 4.0

    removed = portfolio.remove("005930.KS")
    assert removed.currency_class is CurrencyClass.DOMESTIC
    assert "005930.KS" not in portfolio

    with pytest.raises(UnknownHoldingError):
        portfolio.remove("005930.KS")
    with pytest.raises(KeyError):
        portfolio.get("QQQ")
    with pytest.raises(ValueError):
        portfolio.set_quantity("SPY", -1)

    portfolio.clear()
    assert len(portfolio) == 0


def test_dict_form_round_trip():
    data = _portfolio().to_dict()
    assert data["SPY"] == {"symbol": "SPY", "name": "SPDR S&P 500", "currency": "USD", "quantity": 2.5}
    assert data["005930.KS"]["currency"] == "KRW"

    restored = Portfolio.from_dict(data)
    assert restored.holdings == _portfolio().holdings


def test_holding_market_value():
    spy, samsung = Holding.from_symbol("SPY", 2), Holding.from_symbol("005930.KS", 3)
    assert holding_market_value(spy, 500.0, 1300.0) == 2 * 500 * 1300
    assert holding_market_value(samsung, 70000.0, 1300.0) == 3 * 70000
    assert holding_market_value(spy, None, 1300.0) == 0.0


def test_yaml_save_and_load(tmp_path):
    path = save_portfolio_config(_portfolio(), tmp_path / "portfolio.yaml", analysis_range="3y")
    loaded = load_portfolio_config(path)

    assert loaded["analysis_range"] == "3y"
    assert loaded["portfolio"].holdings == _portfolio().holdings
    assert loaded["portfolio"].get("005930.KS").name == "Samsung Electronics"


def test_load_defaults_quantity_and_range(tmp_path):
    path = tmp_path / "p.yaml"
    path.write_text("holdings:\n  - symbol: qqq\n")
    loaded = load_portfolio_config(path)

    assert loaded["analysis_range"] is None
    assert loaded["portfolio"].get("QQQ").quantity == 1.0


@pytest.mark.parametrize(
    "body",
    [
        "holdings: SPY\n",
        "holdings:\n  - quantity: 3\n",
        "holdings:\n  - symbol: SPY\n    quantity: -2\n",
    ],
)
def test_load_rejects_bad_holdings(tmp_path, body):
    path = tmp_path / "bad.yaml"
    path.write_text(body)
    with pytest.raises(ValueError):
        load_portfolio_config(path)


def test_load_rejects_duplicate_symbols(tmp_path):
    path = tmp_path / "dup.yaml"
    path.write_text("holdings:\n  - symbol: SPY\n  - symbol: spy\n")
    with pytest.raises(DuplicateHoldingError):
        load_portfolio_config(path)


def test_load_builds_symbol_from_code_and_suffix(tmp_path):
    path = tmp_path / "codes.yaml"
    path.write_text('holdings:\n  - code: "035720"\n    suffix: .kq\n    quantity: 3\n')
    holding = load_portfolio_config(path)["portfolio"].get("035720.KQ")

    assert holding.quantity == 3.0
    assert holding.currency_class is CurrencyClass.DOMESTIC


def test_apply_exchange_suffix():
    assert apply_exchange_suffix("005930", ".KS") == "005930.KS"
    assert apply_exchange_suffix("brk.b", ".KS") == "BRK.B"
    assert apply_exchange_suffix("aapl", None) == "AAPL"
    assert apply_exchange_suffix("", ".KS") == ""
