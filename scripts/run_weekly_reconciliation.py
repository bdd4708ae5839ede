"""Apply weekly incomplete-quota penalties from the command line."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Post penalties for weekly chores that missed their quota.",
    )
    parser.add_argument(
        "--week-end",
        type=date.fromisoformat,
        default=None,
        help="Any date in the week to reconcile (default: the last completed week).",
    )
    parser.add_argument(
        "--if-needed",
        action="store_true",
        help="Do nothing when the last completed week was already reconciled.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level.",
    )
    return parser.parse_args(argv)


def print_results(results: Sequence) -> None:
    """Print one line per person and one per penalised chore."""
    print(f"Reconciled {len(results)} person(s):")
    for result in results:
        print(
            f"{result.display_name}: {len(result.incomplete_chores)} penalised, "
            f"{len(result.already_reconciled_chore_ids)} already reconciled, "
            f"total {result.total_penalty}"
        )
        for chore in result.incomplete_chores:
            print(
                f"  - {chore.chore_name} ({chore.completed_count}/{chore.target_count}): "
                f"-{chore.penalty_amount}"
            )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    from app.services.registry import default_services

    penalties = default_services().penalties
    if args.if_needed and args.week_end is None and not penalties.is_reconciliation_needed():
        print("Last completed week is already reconciled.")
        return 0

    from app.utils.errors import InvalidInputError

    try:
        results = penalties.run(args.week_end)
    except InvalidInputError as exc:
        print(exc.message, file=sys.stderr)
        return 2
    print_results(results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
