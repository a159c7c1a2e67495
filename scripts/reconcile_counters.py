"""CLI script to rebuild learner counters from progress, quiz and streak history."""
from __future__ import annotations

import argparse
import uuid
from datetime import date

from glosa.db.session import SessionLocal
from glosa.schemas.stats import CounterReconciliation
from glosa.services.counters import CounterService


def _describe(result: CounterReconciliation) -> str:
    if not result.changed:
        return f"{result.user_id}: unchanged"
    before = result.before.model_dump()
    after = result.after.model_dump()
    changes = ", ".join(
        f"{field} {before[field]} -> {after[field]}"
        for field in before
        if before[field] != after[field]
    )
    return f"{result.user_id}: {changes}"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Recompute aggregate learner counters from history",
    )
    parser.add_argument(
        "--user-id",
        type=uuid.UUID,
        help="Reconcile a specific user only",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        help="Reference date for streaks in YYYY-MM-DD format (default: today, UTC)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the differences without storing them",
    )

    args = parser.parse_args()

    db = SessionLocal()
    try:
        service = CounterService(db)
        if args.user_id:
            print(f"Reconciling counters for user {args.user_id}")
            results = [service.reconcile(user_id=args.user_id, today=args.today, dry_run=args.dry_run)]
        else:
            print("Reconciling counters for all users")
            results = service.reconcile_all(today=args.today, dry_run=args.dry_run)
    finally:
        db.close()

    for result in results:
        print(_describe(result))
    changed = sum(1 for result in results if result.changed)
    suffix = " (dry run, nothing stored)" if args.dry_run else ""
    print(f"Result: {changed} of {len(results)} users changed{suffix}")


if __name__ == "__main__":
    main()
