"""
Legacy Application Repository

Read-only, keyset paginated access to the previous platform's applications.
"""

from uuid import UUID

from sqlalchemy import select

from src.models.orm.legacy_applications import LegacyApplication
from src.repositories.base import BaseRepository


class LegacyApplicationRepository(BaseRepository[LegacyApplication]):
    """Repository for legacy application rows."""

    model = LegacyApplication

    async def list_page(
        self,
        page_token: str | None = None,
        limit: int = 100,
    ) -> tuple[list[LegacyApplication], str | None]:
        """
        Read one page of legacy applications ordered by id.

        Args:
            page_token: Id of the last row of the previous page (None to start)
            limit: Page size

        Returns:
            Tuple of (applications, next_page_token). next_page_token is None
            once the table is exhausted.
        """
        query = select(self.model).order_by(self.model.id).limit(limit)
        if page_token:
            query = query.where(self.model.id > UUID(page_token))

        result = await self.session.execute(query)
        applications = list(result.scalars().all())

        next_page_token = str(applications[-1].id) if len(applications) == limit else None
        return applications, next_page_token
