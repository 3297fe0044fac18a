"""
Visibility Projector

Chooses what a caller sees of an application: admins of the owning company get
the full record, everyone else a public view without the ``api`` block.
"""

import logging
from typing import Protocol
from uuid import UUID

from src.core.exceptions import AccessDeniedError
from src.models.contracts.marketplace_applications import (
    MarketplaceApplicationAdmin,
    MarketplaceApplicationPublic,
)
from src.models.enums import has_company_admin_level
from src.models.orm.marketplace_applications import MarketplaceApplication

logger = logging.getLogger(__name__)


class RoleDirectory(Protocol):
    async def get_role(self, company_id: UUID, user_id: UUID) -> str | None: ...


def project_application(
    application: MarketplaceApplication,
    role: str | None,
) -> MarketplaceApplicationAdmin | MarketplaceApplicationPublic:
    """
    Project an application for a caller holding ``role`` in the owning company.

    None (no membership) is treated as a non-admin role.
    """
    if has_company_admin_level(role):
        return MarketplaceApplicationAdmin.model_validate(application)
    return MarketplaceApplicationPublic.model_validate(application)


class VisibilityProjector:
    """Resolves the caller's role and projects applications accordingly."""

    def __init__(self, role_directory: RoleDirectory):
        self.role_directory = role_directory

    async def get_role(self, company_id: UUID, user_id: UUID | None) -> str | None:
        if user_id is None:
            return None
        return await self.role_directory.get_role(company_id, user_id)

    async def is_company_admin(self, company_id: UUID, user_id: UUID | None) -> bool:
        return has_company_admin_level(await self.get_role(company_id, user_id))

    async def require_company_admin(
        self,
        company_id: UUID,
        user_id: UUID | None,
        action: str,
    ) -> None:
        """
        Raises:
            AccessDeniedError: If the caller is not an admin of the company
        """
        if not await self.is_company_admin(company_id, user_id):
            logger.info(f"User {user_id} denied {action} on company {company_id} applications")
            raise AccessDeniedError(f"You don't have the rights to {action} this application")

    async def project(
        self,
        application: MarketplaceApplication,
        user_id: UUID | None,
    ) -> MarketplaceApplicationAdmin | MarketplaceApplicationPublic:
        role = await self.get_role(application.company_id, user_id)
        return project_application(application, role)
