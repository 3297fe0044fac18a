"""
Publication Lifecycle Manager

Governs every direct create and update of a marketplace application.

Rules:
- Fields that only trusted callers may set (is_default, published, the
  private key, stats) are never taken from the draft.
- Once published, an application's identity, hooks URL, allowed IPs, access
  and display are frozen: an update that changes any of them is rejected.
- Withdrawing the publication request unpublishes the application.
- Every successful update bumps the version by exactly one, written
  conditionally on the version that was read.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import UUID, uuid4

from src.core.exceptions import (
    MarketplaceError,
    NotFoundError,
    PublishedApplicationLockedError,
    ValidationError,
)
from src.core.security import generate_application_secret
from src.models.contracts.marketplace_applications import (
    ApplicationAccess,
    ApplicationIdentity,
    MarketplaceApplicationDraft,
)
from src.models.orm.marketplace_applications import MarketplaceApplication
from src.services.marketplace.plugin_registrar import PluginRegistrarClient

logger = logging.getLogger(__name__)

# Identity fields compared without regard to order
UNORDERED_IDENTITY_FIELDS = ("categories", "compatibility")


class ApplicationStore(Protocol):
    async def get_by_id(self, app_id: UUID) -> MarketplaceApplication | None: ...

    async def create(self, entity: MarketplaceApplication) -> MarketplaceApplication: ...

    async def save(self, application: MarketplaceApplication) -> MarketplaceApplication: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_identity(identity: dict[str, Any] | None) -> dict[str, Any]:
    normalized = ApplicationIdentity.model_validate(identity or {}).model_dump()
    for field in UNORDERED_IDENTITY_FIELDS:
        normalized[field] = sorted(set(normalized[field]))
    return normalized


def _keep_stored_order(stored: dict[str, Any] | None, identity: dict[str, Any]) -> dict[str, Any]:
    """Unordered fields equal to the stored ones as sets keep the stored list."""
    stored = stored or {}
    for field in UNORDERED_IDENTITY_FIELDS:
        previous = stored.get(field)
        if previous is not None and set(previous) == set(identity.get(field) or []):
            identity[field] = list(previous)
    return identity


def _normalize_access(access: dict[str, Any] | None) -> dict[str, Any]:
    return ApplicationAccess.model_validate(access or {}).model_dump()


def frozen_fields_of_application(application: MarketplaceApplication) -> dict[str, Any]:
    """Values of the fields that may not change while published."""
    return {
        "identity": _normalize_identity(application.identity),
        "api.hooks_url": application.hooks_url,
        "api.allowed_ips": application.allowed_ips,
        "access": _normalize_access(application.access),
        "display": application.display or {},
    }


def frozen_fields_of_draft(draft: MarketplaceApplicationDraft) -> dict[str, Any]:
    return {
        "identity": _normalize_identity(draft.identity.model_dump()),
        "api.hooks_url": draft.api.hooks_url,
        "api.allowed_ips": draft.api.allowed_ips,
        "access": _normalize_access(draft.access.model_dump()),
        "display": draft.display or {},
    }


def changed_frozen_fields(
    application: MarketplaceApplication,
    draft: MarketplaceApplicationDraft,
) -> list[str]:
    """
    Compare the frozen fields of a stored application against a draft.

    Returns:
        Names of the fields that differ, in a stable order
    """
    stored = frozen_fields_of_application(application)
    requested = frozen_fields_of_draft(draft)
    return [name for name in stored if stored[name] != requested[name]]


class PublicationLifecycleManager:
    """Create and update marketplace applications."""

    def __init__(
        self,
        repository: ApplicationStore,
        plugin_registrar: PluginRegistrarClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.plugin_registrar = plugin_registrar
        self.clock = clock

    async def create(
        self,
        draft: MarketplaceApplicationDraft,
        created_by: UUID | None = None,
    ) -> MarketplaceApplication:
        """
        Create an application from a caller-supplied draft.

        is_default, publication.published, api.private_key and stats from the
        draft are ignored.

        Raises:
            ValidationError: If the draft has no company_id
        """
        if draft.company_id is None:
            raise ValidationError("company_id is required to create an application")

        now = self.clock()
        application = MarketplaceApplication(
            id=uuid4(),
            company_id=draft.company_id,
            is_default=False,
            identity=draft.identity.model_dump(),
            published=False,
            requested=draft.publication.requested,
            hooks_url=draft.api.hooks_url,
            allowed_ips=draft.api.allowed_ips,
            private_key=generate_application_secret(),
            access=draft.access.model_dump(),
            display=dict(draft.display),
            version=0,
            created_at=now,
            updated_at=now,
            is_deleted=False,
        )

        application = await self.repository.create(application)
        logger.info(
            f"Created application {application.id} in company {application.company_id}"
            + (f" by {created_by}" if created_by else "")
        )

        self._register_plugin(application)
        return application

    async def update(
        self,
        app_id: UUID,
        draft: MarketplaceApplicationDraft,
        updated_by: UUID | None = None,
    ) -> MarketplaceApplication:
        """
        Update an existing application.

        Raises:
            NotFoundError: If the application does not exist
            PublishedApplicationLockedError: If the application is published and
                the draft changes a frozen field
            VersionConflictError: If the application changed since it was read
        """
        try:
            application = await self._update(app_id, draft)
        except MarketplaceError:
            raise
        except Exception:
            logger.exception(f"Failed to update application {app_id}")
            raise

        logger.info(
            f"Updated application {app_id} to version {application.version}"
            + (f" by {updated_by}" if updated_by else "")
        )
        self._register_plugin(application)
        return application

    async def _update(
        self,
        app_id: UUID,
        draft: MarketplaceApplicationDraft,
    ) -> MarketplaceApplication:
        application = await self.repository.get_by_id(app_id)
        if application is None:
            raise NotFoundError(f"Application {app_id} not found")

        # Checked against the stored state, before anything is applied
        if application.published:
            changed = changed_frozen_fields(application, draft)
            if changed:
                logger.info(f"Rejected update of published application {app_id}: {changed}")
                raise PublishedApplicationLockedError(changed)

        application.requested = draft.publication.requested
        if not draft.publication.requested:
            application.published = False

        application.identity = _keep_stored_order(application.identity, draft.identity.model_dump())
        application.hooks_url = draft.api.hooks_url
        application.allowed_ips = draft.api.allowed_ips
        application.access = draft.access.model_dump()
        application.display = dict(draft.display)

        application.updated_at = self.clock()
        application.version = application.version + 1

        return await self.repository.save(application)

    def _register_plugin(self, application: MarketplaceApplication) -> None:
        if not application.repository or self.plugin_registrar is None:
            return
        self.plugin_registrar.register_in_background(
            application.repository,
            application.id,
            application.private_key or "",
        )
