"""
Marketplace application contract models.

Provides Pydantic models for API request/response handling.

Two output shapes exist for the same record:
- MarketplaceApplicationAdmin: full record, for admins of the owning company
- MarketplaceApplicationPublic: redacted record, without the ``api`` block
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# ==================== RECORD SECTIONS ====================


class ApplicationIdentity(BaseModel):
    """Who the application is."""

    code: str | None = Field(default=None, description="Short unique code")
    name: str | None = Field(default=None, description="Display name")
    icon: str | None = Field(default=None, description="Icon URL")
    description: str | None = None
    website: str | None = None
    categories: list[str] = Field(default_factory=list)
    compatibility: list[str] = Field(default_factory=list)
    repository: str | None = Field(
        default=None,
        description="Source repository; when set the plugin registrar is notified on save",
    )


class ApplicationPublication(BaseModel):
    """Marketplace publication state."""

    published: bool = False
    requested: bool = False


class ApplicationStats(BaseModel):
    """Creation/update timestamps and update counter."""

    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = Field(default=0, ge=0)

    @field_serializer("created_at", "updated_at")
    def serialize_dt(self, dt: datetime | None) -> str | None:
        return dt.isoformat() if dt else None


class ApplicationApi(BaseModel):
    """Credentials used by the application to talk to the platform."""

    hooks_url: str | None = None
    allowed_ips: str | None = None
    private_key: str | None = None


class ApplicationAccess(BaseModel):
    """Capability tokens granted to the application, in declaration order."""

    read: list[str] = Field(default_factory=list)
    write: list[str] = Field(default_factory=list)
    delete: list[str] = Field(default_factory=list)
    hooks: list[str] = Field(default_factory=list)


# ==================== INPUT MODELS ====================


class MarketplaceApplicationDraft(BaseModel):
    """
    Input for creating or updating an application.

    ``is_default``, ``publication.published``, ``api.private_key`` and ``stats``
    are accepted for compatibility with clients that round-trip the whole
    record, but they are never trusted.
    """

    company_id: UUID | None = Field(
        default=None,
        description="Owning company (required on create, ignored on update)",
    )
    is_default: bool = False
    identity: ApplicationIdentity = Field(default_factory=ApplicationIdentity)
    publication: ApplicationPublication = Field(default_factory=ApplicationPublication)
    stats: ApplicationStats | None = None
    api: ApplicationApi = Field(default_factory=ApplicationApi)
    access: ApplicationAccess = Field(default_factory=ApplicationAccess)
    display: dict[str, Any] = Field(
        default_factory=dict,
        description="Presentation configuration (tabs, standalone, files, chat...)",
    )


class ApplicationEventRequest(BaseModel):
    """Event forwarded by a client to an installed application."""

    company_id: UUID
    workspace_id: str
    connection_id: str | None = None
    type: str = Field(min_length=1, max_length=255)
    name: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


# ==================== OUTPUT MODELS ====================


class MarketplaceApplicationPublic(BaseModel):
    """Application as seen by anyone who is not an admin of the owning company."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    is_default: bool
    identity: ApplicationIdentity
    publication: ApplicationPublication
    stats: ApplicationStats
    access: ApplicationAccess
    display: dict[str, Any]


class MarketplaceApplicationAdmin(MarketplaceApplicationPublic):
    """Full application, including credentials."""

    api: ApplicationApi


class ApplicationListResponse(BaseModel):
    """Response for listing applications."""

    resources: list[MarketplaceApplicationPublic]
    next_page_token: str | None = None


class ApplicationEventResponse(BaseModel):
    """Response returned by the application hook."""

    resource: Any = None


class MigrationErrorEntry(BaseModel):
    """A legacy record that could not be migrated."""

    legacy_id: str
    error: str


class MigrationReportResponse(BaseModel):
    """Outcome of a legacy migration run."""

    migrated_records: list[MarketplaceApplicationAdmin]
    total_processed: int
    total_migrated: int
    total_skipped: int
    total_errors: int
    cancelled: bool = False
    errors: list[MigrationErrorEntry] = Field(default_factory=list)
