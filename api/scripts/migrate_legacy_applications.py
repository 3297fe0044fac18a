#!/usr/bin/env python3
"""
Legacy application migration.

Imports every row of legacy_applications into marketplace_applications,
outside of the HTTP API. Safe to re-run: each legacy row maps to the
application with the same id. Each completed page is committed, so an
aborted run keeps the pages before the failing record.

Usage:
    python -m scripts.migrate_legacy_applications [--skip-failed] [--no-replace] [--page-size N]

Exit codes:
    0 - Success (including runs with skipped failures)
    1 - Migration aborted on a failing record
    2 - Migration cancelled
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

# Configure logging first
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [migrate] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("migrate_legacy_applications")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate legacy applications to the marketplace")
    parser.add_argument(
        "--skip-failed",
        action="store_true",
        help="Record failing rows in the report and continue instead of aborting",
    )
    parser.add_argument(
        "--no-replace",
        action="store_true",
        help="Leave applications that were already migrated untouched",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Legacy rows read per page (defaults to MARKETPLACE_MIGRATION_PAGE_SIZE)",
    )
    args = parser.parse_args(argv)
    if args.page_size is not None and args.page_size < 1:
        parser.error("--page-size must be at least 1")
    return args


async def main(argv: list[str] | None = None) -> int:
    """
    Run the migration.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    from src.config import get_settings
    from src.core.database import close_db, get_db_context
    from src.models.enums import MigrationFailurePolicy
    from src.repositories.legacy_applications import LegacyApplicationRepository
    from src.repositories.marketplace_applications import MarketplaceApplicationRepository
    from src.services.marketplace.migration import MigrationPipeline

    args = parse_args(argv)
    settings = get_settings()

    failure_policy = (
        MigrationFailurePolicy.SKIP
        if args.skip_failed
        else MigrationFailurePolicy(settings.migration_failure_policy)
    )

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, cancel_event.set)

    logger.info("=" * 60)
    logger.info("Legacy Application Migration Starting")
    logger.info("=" * 60)

    try:
        async with get_db_context() as db:
            pipeline = MigrationPipeline(
                LegacyApplicationRepository(db),
                MarketplaceApplicationRepository(db),
                page_size=args.page_size or settings.migration_page_size,
                replace_existing=settings.migration_replace_existing and not args.no_replace,
                failure_policy=failure_policy,
                checkpoint=db.commit,
            )
            report = await pipeline.run(cancel_event)
    except Exception as e:
        logger.error(f"FAILED: Migration aborted - {e}")
        return 1
    finally:
        await close_db()

    logger.info("")
    logger.info("=" * 60)
    logger.info("Legacy Application Migration Completed")
    logger.info(f"  - Processed: {report.total_processed}")
    logger.info(f"  - Migrated: {report.total_migrated}")
    logger.info(f"  - Skipped: {report.total_skipped}")
    logger.info(f"  - Errors: {report.total_errors}")
    for entry in report.errors:
        logger.info(f"    {entry['legacy_id']}: {entry['error']}")
    logger.info("=" * 60)

    return 2 if report.cancelled else 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
