"""
Marketplace Application Repository

Store for structured marketplace applications and their installations.

Writes of existing applications are conditional on the version that was read
(``version_id_col`` on the model): a concurrent update surfaces as
VersionConflictError instead of silently overwriting the other writer.
"""

import logging
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import VersionConflictError
from src.models.orm.marketplace_applications import CompanyApplication, MarketplaceApplication
from src.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

# Columns written by the migration upsert. created_at and is_deleted are only
# set on first insert so re-running the migration keeps the original creation
# time and does not resurrect soft-deleted applications.
UPSERT_COLUMNS = (
    "id",
    "company_id",
    "is_default",
    "identity",
    "published",
    "requested",
    "hooks_url",
    "allowed_ips",
    "private_key",
    "access",
    "display",
    "version",
    "created_at",
    "updated_at",
)
INSERT_ONLY_COLUMNS = frozenset({"id", "created_at"})


def decode_page_token(page_token: str | None) -> int:
    """Turn a page token into a row offset."""
    if not page_token:
        return 0
    offset = int(page_token)
    if offset < 0:
        raise ValueError(f"Invalid page token: {page_token}")
    return offset


class MarketplaceApplicationRepository(BaseRepository[MarketplaceApplication]):
    """Repository for marketplace application operations."""

    model = MarketplaceApplication

    async def get_by_id(self, app_id: UUID) -> MarketplaceApplication | None:
        """Get a non-deleted application by UUID."""
        query = select(self.model).where(
            self.model.id == app_id,
            self.model.is_deleted.is_(False),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, app_id: UUID) -> bool:
        """Check whether a structured record exists for an id (deleted or not)."""
        query = select(self.model.id).where(self.model.id == app_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none() is not None

    async def list_applications(
        self,
        search: str | None = None,
        page_token: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[MarketplaceApplication], str | None]:
        """
        List published applications one page at a time.

        Args:
            search: Case-insensitive match on identity name, code or description
            page_token: Token returned by the previous page (None for the first page)
            limit: Page size

        Returns:
            Tuple of (applications, next_page_token). next_page_token is None
            on the last page.
        """
        offset = decode_page_token(page_token)

        query = select(self.model).where(
            self.model.is_deleted.is_(False),
            self.model.published.is_(True),
        )
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    self.model.identity["name"].astext.ilike(pattern),
                    self.model.identity["code"].astext.ilike(pattern),
                    self.model.identity["description"].astext.ilike(pattern),
                )
            )
        query = query.order_by(self.model.identity["name"].astext, self.model.id)
        # One extra row tells us whether another page exists
        query = query.offset(offset).limit(limit + 1)

        result = await self.session.execute(query)
        applications = list(result.scalars().all())

        next_page_token = None
        if len(applications) > limit:
            applications = applications[:limit]
            next_page_token = str(offset + limit)

        return applications, next_page_token

    async def save(self, application: MarketplaceApplication) -> MarketplaceApplication:
        """
        Persist changes to an application loaded from this repository.

        Raises:
            VersionConflictError: If the row changed since it was read
        """
        try:
            await self.session.flush()
        except StaleDataError as e:
            logger.warning(f"Concurrent update detected for application {application.id}")
            raise VersionConflictError(
                f"Application {application.id} was modified concurrently, reload and retry"
            ) from e
        await self.session.refresh(application)
        return application

    async def upsert(self, application: MarketplaceApplication) -> MarketplaceApplication:
        """
        Insert an application, or replace the stored one with the same id.

        Used by the legacy migration, which always writes a complete record and
        therefore bypasses the update rules of the lifecycle manager.
        """
        values = {column: getattr(application, column) for column in UPSERT_COLUMNS}
        stmt = insert(self.model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.model.id],
            set_={
                column: stmt.excluded[column]
                for column in UPSERT_COLUMNS
                if column not in INSERT_ONLY_COLUMNS
            },
        )
        stmt = stmt.returning(self.model).execution_options(populate_existing=True)

        # Savepoint so a failed row leaves the surrounding transaction usable
        async with self.session.begin_nested():
            result = await self.session.execute(stmt)
            return result.scalars().one()

    async def soft_delete(self, app_id: UUID) -> bool:
        """
        Flag an application as deleted.

        Returns:
            True if a non-deleted application was flagged
        """
        stmt = (
            update(self.model)
            .where(self.model.id == app_id, self.model.is_deleted.is_(False))
            .values(is_deleted=True)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0


class CompanyApplicationRepository(BaseRepository[CompanyApplication]):
    """Repository for application installations."""

    model = CompanyApplication

    async def get_installation(
        self,
        company_id: UUID,
        application_id: UUID,
    ) -> CompanyApplication | None:
        """Get the installation of an application in a company, if any."""
        return await self.get(company_id=company_id, application_id=application_id)
