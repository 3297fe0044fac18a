"""
Application event forwarding.

Checks that the caller belongs to the company the event is sent from and that
this company installed the application, then hands the event to the hooks
service.
"""

import logging
from typing import Any, Protocol
from uuid import UUID

from src.core.exceptions import ApplicationNotInstalledError, NotFoundError, ValidationError
from src.models.contracts.marketplace_applications import ApplicationEventRequest
from src.models.orm.companies import CompanyUser
from src.models.orm.marketplace_applications import CompanyApplication, MarketplaceApplication
from src.services.marketplace.hooks import ApplicationHooksService

logger = logging.getLogger(__name__)


class ApplicationLookup(Protocol):
    async def get_by_id(self, app_id: UUID) -> MarketplaceApplication | None: ...


class MembershipLookup(Protocol):
    async def get_membership(self, company_id: UUID, user_id: UUID) -> CompanyUser | None: ...


class InstallationLookup(Protocol):
    async def get_installation(
        self, company_id: UUID, application_id: UUID
    ) -> CompanyApplication | None: ...


class ApplicationEventForwarder:
    def __init__(
        self,
        applications: ApplicationLookup,
        memberships: MembershipLookup,
        installations: InstallationLookup,
        hooks: ApplicationHooksService,
    ):
        self.applications = applications
        self.memberships = memberships
        self.installations = installations
        self.hooks = hooks

    async def forward(
        self,
        app_id: UUID,
        event: ApplicationEventRequest,
        user_id: UUID,
    ) -> Any:
        """
        Forward an event to an installed application.

        Raises:
            NotFoundError: If the application does not exist
            ValidationError: If the caller is not a member of the event's company
            ApplicationNotInstalledError: If the company did not install the application
        """
        application = await self.applications.get_by_id(app_id)
        if application is None:
            raise NotFoundError(f"Application {app_id} not found")

        membership = await self.memberships.get_membership(event.company_id, user_id)
        if membership is None:
            raise ValidationError("You cannot send event to an application from another company")

        installation = await self.installations.get_installation(event.company_id, app_id)
        if installation is None:
            raise ApplicationNotInstalledError("Application isn't installed in this company")

        logger.info(f"Forwarding {event.type} event from company {event.company_id} to {app_id}")
        return await self.hooks.notify_app(
            application,
            event_type=event.type,
            event_name=event.name,
            content=event.data,
            company_id=event.company_id,
            workspace_id=event.workspace_id,
            user_id=user_id,
            connection_id=event.connection_id,
        )
