"""
Operator script: recount cached like/subscriber counters from relation rows.

    python -m app.scripts.reconcile_counters [--dry-run]
"""

import argparse
import asyncio

from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.services.counters import reconcile_counters

settings = get_settings()


class _DryRun(Exception):
    pass


async def run(dry_run: bool = False) -> int:
    report = None
    try:
        async with get_session_context() as session:
            report = await reconcile_counters(session)
            if dry_run:
                raise _DryRun()
    except _DryRun:
        print("Dry run: changes rolled back.")

    for table, repaired in sorted(report.repaired.items()):
        print(f"{table}: {repaired} row(s) repaired")
    print(f"Done. {report.total} row(s) repaired in total.")
    return report.total


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Recount cached counters from relation rows.")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    args = parser.parse_args()

    configure_logging(settings.log_level, settings.log_format)
    asyncio.run(run(args.dry_run))
