"""
Company Repository

Company membership lookups used to decide what a caller may see or do.
"""

from uuid import UUID

from src.models.orm.companies import CompanyUser
from src.repositories.base import BaseRepository


class CompanyUserRepository(BaseRepository[CompanyUser]):
    """Repository for company memberships."""

    model = CompanyUser

    async def get_membership(self, company_id: UUID, user_id: UUID) -> CompanyUser | None:
        """Get a user's membership in a company, or None if they are not a member."""
        return await self.get(company_id=company_id, user_id=user_id)

    async def get_role(self, company_id: UUID, user_id: UUID) -> str | None:
        """Get a user's role in a company, or None if they are not a member."""
        membership = await self.get_membership(company_id, user_id)
        return membership.role if membership else None
