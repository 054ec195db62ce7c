"""
Scheduled maintenance for the ad market (DATABASE_URL required).

Usage:
  python -m core.ads.maintenance recalculate                     # current week
  python -m core.ads.maintenance recalculate --week 2024-01-15   # week containing that date
  python -m core.ads.maintenance market                          # print the current standings
  python -m core.ads.maintenance cleanup-tokens
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from core.ads.bidding import recalculate_week
from core.ads.market import get_market_state
from core.ads.week import parse_week_start, today, week_for_date
from core.db.users import cleanup_expired_tokens
from core.errors import AppError

log = logging.getLogger("hsc.ads")


def _recalculate(args: argparse.Namespace) -> None:
    week = parse_week_start(args.week) if args.week else week_for_date(today())
    ranked = recalculate_week(week)
    print(f"Week {week.start} to {week.end}: {len(ranked)} active bid(s)")
    for row in ranked:
        print(f"  #{row['current_position']} listing {row['listing_id']} at {row['weekly_bid_amount']}/week")


def _market(args: argparse.Namespace) -> None:
    state = get_market_state(args.week)
    print(
        f"Week {state['week_start']} to {state['week_end']}: "
        f"top bid {state['current_top_bid']}, price to beat {state['price_to_beat']}, "
        f"{state['total_active_bids']} active bid(s)"
    )
    for entry in state["positions"]:
        print(f"  #{entry['current_position']} {entry['listing']['title']} ({entry['weekly_bid_amount']}/week)")


def _cleanup_tokens(args: argparse.Namespace) -> None:
    removed = cleanup_expired_tokens()
    print(
        f"Removed {removed['magic_links_removed']} magic link(s) "
        f"and {removed['sessions_removed']} session(s)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hsc-market", description="Ad market maintenance tasks")
    sub = parser.add_subparsers(dest="command", required=True)

    recalc = sub.add_parser("recalculate", help="Expire stale bids and re-rank a week")
    recalc.add_argument("--week", help="Any date (YYYY-MM-DD) inside the week to re-rank")
    recalc.set_defaults(func=_recalculate)

    market = sub.add_parser("market", help="Print a week's standings")
    market.add_argument("--week", help="Week start date (YYYY-MM-DD)")
    market.set_defaults(func=_market)

    cleanup = sub.add_parser("cleanup-tokens", help="Delete expired magic links and sessions")
    cleanup.set_defaults(func=_cleanup_tokens)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except AppError as exc:
        log.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
