import argparse
import logging
import sys
from typing import Optional, Sequence

from .csv_source import dump_balances, load_transactions
from .service import PointsService, PointsServiceError
from .settings import log_level, strict_csv

logger = logging.getLogger("payer_points.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payer-points",
        description="Spend points oldest-first across payers and print the remaining balances.",
        epilog="Any additional trailing arguments will be ignored.",
    )
    parser.add_argument("points", help="Points to spend")
    parser.add_argument("path", help="Path to transaction file")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Fail on the first malformed record instead of skipping it")
    parser.add_argument("--log-level", default=None, help="Logging level (default: $POINTS_LOG_LEVEL)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args, _ = build_parser().parse_known_args(argv)

    level = (args.log_level or log_level()).upper()
    if not isinstance(logging.getLevelName(level), int):
        print(f"Unknown log level: {level}", file=sys.stderr)
        return 1
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        points_to_spend = int(args.points)
    except ValueError as e:
        print(f"Could not convert {args.points} to an integer: {e}", file=sys.stderr)
        return 1

    strict = strict_csv() if args.strict is None else args.strict
    try:
        transactions = load_transactions(args.path, strict=strict)
    except OSError as e:
        print(f"Failed to open file {args.path}: {e}", file=sys.stderr)
        return 1
    except PointsServiceError as e:
        print(f"Encountered error while processing CSV: {e}", file=sys.stderr)
        return 1

    try:
        result = PointsService().process(transactions, points_to_spend)
    except PointsServiceError as e:
        logger.error("Spend of %d points failed: %s", points_to_spend, e)
        print(f"Invalid operation. {e}", file=sys.stderr)
        return 1

    print(dump_balances(result.balances))
    return 0
