#!/usr/bin/env python3
# coding: utf-8

# File: run_analysis.py

"""
Portfolio valuation CLI.

Examples:
    python run_analysis.py --portfolio portfolio.yaml --range 5y
    python run_analysis.py --portfolio portfolio.yaml --json
    python run_analysis.py --presets
    python run_analysis.py --copy-preset all_weather --save my_portfolio.yaml
    python run_analysis.py --indices
    python run_analysis.py --search 005930 --suffix .KS --range 1y --interval 1d
    python run_analysis.py --holdings portfolio.yaml
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

from portfolio_valuation_engine._logging import log_errors, log_operation
from portfolio_valuation_engine.exceptions import PortfolioValuationError
from portfolio_valuation_engine.market_overview import fetch_market_overview, format_change
from portfolio_valuation_engine.portfolio_analysis import analyze_portfolio
from portfolio_valuation_engine.portfolio_config import load_portfolio_config, save_portfolio_config
from portfolio_valuation_engine.preset_analysis import copy_preset, score_presets
from portfolio_valuation_engine.presets import default_presets
from portfolio_valuation_engine.quote_analysis import portfolio_snapshot, search_symbol


@log_errors("high")
@log_operation("cli_portfolio_analysis")
def run_portfolio(filepath: str, analysis_range: Optional[str] = None, *, return_data: bool = False):
    """Analyse the portfolio in ``filepath`` and print or return the result."""
    config = load_portfolio_config(filepath)
    result = analyze_portfolio(config["portfolio"], analysis_range or config["analysis_range"])
    if return_data:
        return result.to_api_response()
    print(result.to_cli_report())
    return None


def run_presets(*, return_data: bool = False):
    presets = default_presets()
    scores = score_presets(presets)
    if return_data:
        return {preset_id: score.to_api_response() for preset_id, score in scores.items()}

    print(f"{'Preset':<36} {'Range':>6} {'CAGR %':>9} {'MDD %':>9}")
    print("-" * 63)
    for preset in presets:
        row = scores[preset.id].to_api_response()
        print(f"{preset.name:<36} {row['range']:>6} {row['return']:>9} {row['mdd']:>9}")
    return None


def run_copy_preset(preset_id: str, save_path: Optional[str] = None, *, return_data: bool = False):
    portfolio = copy_preset(preset_id)
    if save_path:
        save_portfolio_config(portfolio, save_path)
    if return_data:
        return portfolio.to_dict()

    for row in portfolio.to_dict().values():
        print(f"{row['symbol']:<12} {row['name']:<36} {row['currency']:<4} {row['quantity']:>14,.4f}")
    if save_path:
        print(f"Saved to {save_path}")
    return None


def run_search(code: str, suffix: Optional[str] = None, analysis_range: Optional[str] = None,
               interval: Optional[str] = None, *, return_data: bool = False):
    result = search_symbol(code, suffix, analysis_range, interval)
    if return_data:
        return result.to_api_response()
    print(result.to_cli_report())
    return None


def run_holdings(filepath: str, *, return_data: bool = False):
    """Value the holdings in ``filepath`` at current quotes."""
    snapshot = portfolio_snapshot(load_portfolio_config(filepath)["portfolio"])
    if return_data:
        return snapshot.to_api_response()
    print(snapshot.to_cli_report())
    return None


def run_indices(*, return_data: bool = False):
    rows = fetch_market_overview()
    if return_data:
        return rows
    for row in rows:
        print(f"{row['name']:<10} {format_change(row['change'])}")
    return None


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Multi-currency portfolio valuation")
    parser.add_argument("--portfolio", type=str, help="Path to YAML portfolio file")
    parser.add_argument("--range", dest="analysis_range", type=str, default=None,
                        help="Lookback range (10y, 7y, 5y, 3y, 1y, 6mo)")
    parser.add_argument("--presets", action="store_true", help="Score every preset portfolio")
    parser.add_argument("--copy-preset", type=str, help="Allocate a preset at current prices")
    parser.add_argument("--save", type=str, help="Write the copied preset to this YAML file")
    parser.add_argument("--search", type=str, help="Look up a ticker or bare code (e.g. 005930)")
    parser.add_argument("--suffix", type=str, help="Market suffix appended to a bare --search code (e.g. .KS)")
    parser.add_argument("--interval", type=str, help="Bar interval for --search (e.g. 1d, 1wk, 1mo)")
    parser.add_argument("--holdings", type=str, help="Value the holdings of a YAML portfolio at current quotes")
    parser.add_argument("--indices", action="store_true", help="Show the market index overview")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a text report")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    output: Dict[str, Any] = {}
    try:
        if args.portfolio:
            output["portfolio"] = run_portfolio(args.portfolio, args.analysis_range, return_data=args.json)
        if args.presets:
            output["presets"] = run_presets(return_data=args.json)
        if args.copy_preset:
            output["copy_preset"] = run_copy_preset(args.copy_preset, args.save, return_data=args.json)
        if args.search:
            output["search"] = run_search(args.search, args.suffix, args.analysis_range, args.interval,
                                          return_data=args.json)
        if args.holdings:
            output["holdings"] = run_holdings(args.holdings, return_data=args.json)
        if args.indices:
            output["indices"] = run_indices(return_data=args.json)
    except (PortfolioValuationError, KeyError, ValueError, OSError) as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    if not output:
        parser.print_help()
        return 2
    if args.json:
        print(json.dumps(output, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
