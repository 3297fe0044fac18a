"""
Marketplace Applications Router

Create, read, update, delete marketplace applications, forward events to
installed applications, and run the legacy migration.

Domain errors raised by the services are translated here:
- NotFoundError -> 404
- ValidationError (incl. published lock, not installed) -> 400
- AccessDeniedError -> 403
- VersionConflictError -> 409
"""

import logging
from functools import lru_cache
from typing import Annotated, Any
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.config import get_settings
from src.core.auth import Context, CurrentSuperuser, CurrentUser
from src.core.exceptions import (
    AccessDeniedError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from src.models.contracts.marketplace_applications import (
    ApplicationEventRequest,
    ApplicationEventResponse,
    ApplicationListResponse,
    MarketplaceApplicationAdmin,
    MarketplaceApplicationDraft,
    MarketplaceApplicationPublic,
    MigrationErrorEntry,
    MigrationReportResponse,
)
from src.models.enums import MigrationFailurePolicy
from src.repositories.companies import CompanyUserRepository
from src.repositories.legacy_applications import LegacyApplicationRepository
from src.repositories.marketplace_applications import (
    CompanyApplicationRepository,
    MarketplaceApplicationRepository,
)
from src.services.marketplace.events import ApplicationEventForwarder
from src.services.marketplace.hooks import ApplicationHooksService
from src.services.marketplace.lifecycle import PublicationLifecycleManager
from src.services.marketplace.migration import MigrationPipeline
from src.services.marketplace.plugin_registrar import PluginRegistrarClient
from src.services.marketplace.visibility import VisibilityProjector

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/marketplace/applications", tags=["Marketplace Applications"])


# =============================================================================
# Dependencies
# =============================================================================


@lru_cache
def get_plugin_registrar() -> PluginRegistrarClient:
    """Process-wide plugin registrar (holds the pending registration tasks)."""
    settings = get_settings()
    return PluginRegistrarClient(
        settings.plugins_api_url,
        timeout=settings.plugin_registrar_timeout_seconds,
    )


def get_hooks_service() -> ApplicationHooksService:
    return ApplicationHooksService(timeout=get_settings().hooks_timeout_seconds)


PluginRegistrar = Annotated[PluginRegistrarClient, Depends(get_plugin_registrar)]
HooksService = Annotated[ApplicationHooksService, Depends(get_hooks_service)]


# =============================================================================
# Helpers
# =============================================================================


def _http_error(e: Exception) -> HTTPException:
    """Translate a domain error into an HTTPException."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, AccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    if isinstance(e, VersionConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


async def _require_company_admin(
    projector: VisibilityProjector,
    company_id: UUID,
    user_id: UUID,
    action: str,
) -> None:
    try:
        await projector.require_company_admin(company_id, user_id, action)
    except AccessDeniedError as e:
        raise _http_error(e)


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List marketplace applications",
)
async def list_applications(
    ctx: Context,
    user: CurrentUser,
    search: str | None = Query(default=None, description="Filter by name, code or description"),
    page_token: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=100),
) -> ApplicationListResponse:
    """List published applications (public view)."""
    repo = MarketplaceApplicationRepository(ctx.db)
    try:
        applications, next_page_token = await repo.list_applications(
            search=search,
            page_token=page_token,
            limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ApplicationListResponse(
        resources=[MarketplaceApplicationPublic.model_validate(app) for app in applications],
        next_page_token=next_page_token,
    )


@router.post(
    "/migrate",
    response_model=MigrationReportResponse,
    summary="Migrate legacy applications",
)
async def migrate_applications(
    ctx: Context,
    user: CurrentSuperuser,
) -> MigrationReportResponse:
    """Import every legacy application into the marketplace (platform admins only)."""
    settings = get_settings()
    pipeline = MigrationPipeline(
        LegacyApplicationRepository(ctx.db),
        MarketplaceApplicationRepository(ctx.db),
        page_size=settings.migration_page_size,
        replace_existing=settings.migration_replace_existing,
        failure_policy=MigrationFailurePolicy(settings.migration_failure_policy),
        checkpoint=ctx.db.commit,
    )

    logger.info(f"Legacy migration requested by {user.email}")
    report = await pipeline.run()

    return MigrationReportResponse(
        migrated_records=[
            MarketplaceApplicationAdmin.model_validate(app) for app in report.migrated_records
        ],
        total_processed=report.total_processed,
        total_migrated=report.total_migrated,
        total_skipped=report.total_skipped,
        total_errors=report.total_errors,
        cancelled=report.cancelled,
        errors=[MigrationErrorEntry(**entry) for entry in report.errors],
    )


@router.get(
    "/{app_id}",
    response_model=MarketplaceApplicationAdmin | MarketplaceApplicationPublic,
    summary="Get a marketplace application",
)
async def get_application(
    app_id: UUID,
    ctx: Context,
    user: CurrentUser,
) -> MarketplaceApplicationAdmin | MarketplaceApplicationPublic:
    """Get an application: full record for company admins, public view otherwise."""
    repo = MarketplaceApplicationRepository(ctx.db)
    application = await repo.get_by_id(app_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )

    projector = VisibilityProjector(CompanyUserRepository(ctx.db))
    return await projector.project(application, user.user_id)


@router.post(
    "",
    response_model=MarketplaceApplicationAdmin,
    status_code=status.HTTP_201_CREATED,
    summary="Create a marketplace application",
)
async def create_application(
    data: MarketplaceApplicationDraft,
    ctx: Context,
    user: CurrentUser,
    registrar: PluginRegistrar,
) -> MarketplaceApplicationAdmin:
    """Create an application in a company the caller administers."""
    if data.company_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="company_id is required",
        )

    projector = VisibilityProjector(CompanyUserRepository(ctx.db))
    await _require_company_admin(projector, data.company_id, user.user_id, "create")

    manager = PublicationLifecycleManager(MarketplaceApplicationRepository(ctx.db), registrar)
    try:
        application = await manager.create(data, created_by=user.user_id)
    except ValidationError as e:
        raise _http_error(e)

    return MarketplaceApplicationAdmin.model_validate(application)


@router.post(
    "/{app_id}",
    response_model=MarketplaceApplicationAdmin,
    summary="Update a marketplace application",
)
async def update_application(
    app_id: UUID,
    data: MarketplaceApplicationDraft,
    ctx: Context,
    user: CurrentUser,
    registrar: PluginRegistrar,
) -> MarketplaceApplicationAdmin:
    """Update an application owned by a company the caller administers."""
    repo = MarketplaceApplicationRepository(ctx.db)
    application = await repo.get_by_id(app_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )

    projector = VisibilityProjector(CompanyUserRepository(ctx.db))
    await _require_company_admin(projector, application.company_id, user.user_id, "update")

    manager = PublicationLifecycleManager(repo, registrar)
    try:
        application = await manager.update(app_id, data, updated_by=user.user_id)
    except (NotFoundError, ValidationError, VersionConflictError) as e:
        raise _http_error(e)

    return MarketplaceApplicationAdmin.model_validate(application)


@router.delete(
    "/{app_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a marketplace application",
)
async def delete_application(
    app_id: UUID,
    ctx: Context,
    user: CurrentUser,
) -> None:
    """Soft delete an application (company admins only)."""
    repo = MarketplaceApplicationRepository(ctx.db)
    application = await repo.get_by_id(app_id)
    if application is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )

    projector = VisibilityProjector(CompanyUserRepository(ctx.db))
    await _require_company_admin(projector, application.company_id, user.user_id, "delete")

    if not await repo.soft_delete(app_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    logger.info(f"Application {app_id} deleted by {user.email}")


@router.post(
    "/{app_id}/event",
    response_model=ApplicationEventResponse,
    summary="Send an event to an installed application",
)
async def send_application_event(
    app_id: UUID,
    data: ApplicationEventRequest,
    ctx: Context,
    user: CurrentUser,
    hooks: HooksService,
) -> ApplicationEventResponse:
    """Forward an event to the hooks URL of an application installed in the caller's company."""
    forwarder = ApplicationEventForwarder(
        MarketplaceApplicationRepository(ctx.db),
        CompanyUserRepository(ctx.db),
        CompanyApplicationRepository(ctx.db),
        hooks,
    )
    try:
        resource: Any = await forwarder.forward(app_id, data, user.user_id)
    except (NotFoundError, ValidationError) as e:
        raise _http_error(e)
    except httpx.HTTPError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Application hook failed: {e}",
        )

    return ApplicationEventResponse(resource=resource)
