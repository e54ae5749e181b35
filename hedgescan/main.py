from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Iterable, Optional

from hedgescan.config import EngineConfig, load_config
from hedgescan.exits import evaluate_exits
from hedgescan.markets import MarketsFile, load_markets
from hedgescan.opportunities import build_opportunities, filter_opportunities, sort_opportunities
from hedgescan.positions import TokenCache, load_positions, match_positions
from hedgescan.report import format_exits, format_scan
from hedgescan.snapshot import load_snapshot
from hedgescan.stats import aggregate_stats

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hedgescan")
    sub = parser.add_subparsers(dest="command", required=True)

    scan_cmd = sub.add_parser("scan", help="Price hedge opportunities from a book snapshot")
    scan_cmd.add_argument("--markets", required=True, help="Markets YAML file")
    scan_cmd.add_argument("--books", required=True, help="Order book snapshot JSON")
    scan_cmd.add_argument("--sort", choices=["net_profit", "apy"], default="net_profit")
    scan_cmd.add_argument("--type", default="ALL", help="Only show markets of this type")
    scan_cmd.add_argument("--today", type=date.fromisoformat, help="Evaluation date (YYYY-MM-DD), defaults to today")

    exits_cmd = sub.add_parser("exits", help="Value open hedges against current bids")
    exits_cmd.add_argument("--markets", required=True, help="Markets YAML file")
    exits_cmd.add_argument("--books", required=True, help="Order book snapshot JSON")
    exits_cmd.add_argument("--positions", required=True, help="Positions JSON")

    validate_cmd = sub.add_parser("validate-markets", help="Load and validate a markets file")
    validate_cmd.add_argument("--markets", required=True, help="Markets YAML file")

    return parser


def run_scan(config: EngineConfig, markets_file: MarketsFile, books_path: str, sort_by: str, event_type: str, today: date) -> str:
    quotes = load_snapshot(books_path)
    opportunities = build_opportunities(markets_file.markets, quotes, config, today)
    stats = aggregate_stats(opportunities, len(markets_file.markets), config)
    shown = sort_opportunities(filter_opportunities(opportunities, event_type), sort_by)
    logger.info(
        "Opportunities: %d listed, %d profitable, %d hot",
        len(shown),
        stats.opportunities,
        stats.hot_count,
    )
    return format_scan(shown, stats)


def run_exits(config: EngineConfig, markets_file: MarketsFile, books_path: str, positions_path: str) -> str:
    quotes = load_snapshot(books_path)
    opinion_positions, polymarket_positions = load_positions(positions_path)
    holdings = match_positions(
        markets_file.markets,
        opinion_positions,
        polymarket_positions,
        min_shares=config.min_position_shares,
        token_cache=TokenCache.from_markets(markets_file.markets),
    )
    records = evaluate_exits(holdings, quotes, config)
    logger.info(
        "Hedges: %d held, %d valued, %d ready to exit",
        len(holdings),
        len(records),
        sum(1 for record in records.values() if record.can_exit),
    )
    return format_exits(records)


def main(argv: Optional[Iterable[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        markets_file = load_markets(args.markets)
        config = markets_file.apply_settings(load_config())
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.command == "validate-markets":
        outcomes = sum(len(market.outcomes) for market in markets_file.markets)
        logger.info("Markets OK: %d markets, %d outcomes", len(markets_file.markets), outcomes)
        return 0

    try:
        if args.command == "scan":
            today = args.today or date.today()
            output = run_scan(config, markets_file, args.books, args.sort, args.type, today)
        elif args.command == "exits":
            output = run_exits(config, markets_file, args.books, args.positions)
        else:
            return 1
    except (OSError, ValueError) as exc:
        logger.error("Failed to load input: %s", exc)
        return 2

    print(output)
    return 0
