"""
Legacy Migration Pipeline

Drains the legacy application table page by page and upserts a structured
application for each row. Pages are fetched strictly one after another; the
next page token comes from the previous page.

Re-running the migration is idempotent apart from timestamps: each legacy row
maps to exactly one structured application with the same id.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID

from src.models.enums import MigrationFailurePolicy
from src.models.orm.legacy_applications import LegacyApplication
from src.models.orm.marketplace_applications import MarketplaceApplication
from src.services.marketplace.legacy_import import import_legacy_application

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class LegacyApplicationSource(Protocol):
    async def list_page(
        self, page_token: str | None = None, limit: int = DEFAULT_PAGE_SIZE
    ) -> tuple[list[LegacyApplication], str | None]: ...


class MigrationTarget(Protocol):
    async def exists(self, app_id: UUID) -> bool: ...

    async def upsert(self, application: MarketplaceApplication) -> MarketplaceApplication: ...


@dataclass
class MigrationReport:
    """Outcome of a migration run."""

    migrated_records: list[MarketplaceApplication] = field(default_factory=list)
    total_processed: int = 0
    total_migrated: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    cancelled: bool = False
    errors: list[dict[str, str]] = field(default_factory=list)

    def record_success(self, application: MarketplaceApplication) -> None:
        self.total_processed += 1
        self.total_migrated += 1
        self.migrated_records.append(application)

    def record_skip(self) -> None:
        self.total_processed += 1
        self.total_skipped += 1

    def record_error(self, legacy_id: UUID, error: str) -> None:
        self.total_processed += 1
        self.total_errors += 1
        self.errors.append({"legacy_id": str(legacy_id), "error": error})

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "total_migrated": self.total_migrated,
            "total_skipped": self.total_skipped,
            "total_errors": self.total_errors,
            "cancelled": self.cancelled,
            "errors": self.errors,
        }


class MigrationPipeline:
    """Migrates legacy applications into structured applications."""

    def __init__(
        self,
        legacy_repository: LegacyApplicationSource,
        application_repository: MigrationTarget,
        page_size: int = DEFAULT_PAGE_SIZE,
        replace_existing: bool = True,
        failure_policy: MigrationFailurePolicy = MigrationFailurePolicy.ABORT,
        clock: Callable[[], datetime] | None = None,
        checkpoint: Callable[[], Awaitable[None]] | None = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.legacy_repository = legacy_repository
        self.application_repository = application_repository
        self.page_size = page_size
        self.replace_existing = replace_existing
        self.failure_policy = MigrationFailurePolicy(failure_policy)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.checkpoint = checkpoint

    async def run(self, cancel_event: asyncio.Event | None = None) -> MigrationReport:
        """
        Migrate every legacy application.

        Args:
            cancel_event: Checked before each page fetch; when set the run stops
                and the report is returned with ``cancelled=True``

        Returns:
            MigrationReport with the stored applications

        Raises:
            Exception: The first per-record failure, under the abort policy
        """
        report = MigrationReport()
        page_token: str | None = None
        page_number = 0

        logger.info(
            f"Starting legacy application migration (page_size={self.page_size}, "
            f"replace_existing={self.replace_existing}, policy={self.failure_policy.value})"
        )

        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"Migration cancelled after {page_number} page(s)")
                report.cancelled = True
                break

            legacy_applications, page_token = await self.legacy_repository.list_page(
                page_token, self.page_size
            )
            page_number += 1
            logger.debug(f"Page {page_number}: {len(legacy_applications)} legacy application(s)")

            for legacy in legacy_applications:
                await self._migrate_one(legacy, report)

            # A completed page survives a later abort
            if self.checkpoint is not None:
                await self.checkpoint()

            if not page_token:
                break

        logger.info(f"Legacy application migration finished: {report.to_dict()}")
        return report

    async def _migrate_one(self, legacy: LegacyApplication, report: MigrationReport) -> None:
        try:
            if not self.replace_existing and await self.application_repository.exists(legacy.id):
                logger.info(f"Skipping legacy application {legacy.id}: already migrated")
                report.record_skip()
                return

            application = import_legacy_application(legacy, now=self.clock())
            stored = await self.application_repository.upsert(application)
        except Exception as e:
            logger.exception(f"Failed to migrate legacy application {legacy.id}")
            if self.failure_policy is MigrationFailurePolicy.ABORT:
                raise
            report.record_error(legacy.id, str(e))
            return

        report.record_success(stored)
