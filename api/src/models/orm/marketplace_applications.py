"""
MarketplaceApplication and CompanyApplication ORM models.

Represents applications published on the marketplace with:
- marketplace_applications: the structured application record
  (identity, publication state, API credentials, access scopes, display config)
- company_applications: which applications a company has installed
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.models.orm.base import Base


class MarketplaceApplication(Base):
    """Structured marketplace application.

    Nested sections of the record are stored as JSONB (identity, access, display)
    or as flat columns when they are queried or guarded (publication flags,
    API credentials, stats).
    """

    __tablename__ = "marketplace_applications"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    # {code, name, icon, description, website, categories, compatibility, repository}
    identity: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, server_default="{}")

    # Publication state machine
    published: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    requested: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    # API credentials
    hooks_url: Mapped[str | None] = mapped_column(Text, default=None)
    allowed_ips: Mapped[str | None] = mapped_column(Text, default=None)
    private_key: Mapped[str | None] = mapped_column(String(255), default=None)

    # {read, write, delete, hooks}: ordered lists of capability tokens
    access: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, server_default="{}")

    # Presentation configuration, opaque to the lifecycle rules
    display: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, server_default="{}")

    # Stats
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    # Conditional UPDATE ... WHERE version = :loaded_version. The lifecycle
    # manager assigns the new version itself.
    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    __table_args__ = (
        Index("ix_marketplace_applications_company_id", "company_id"),
        Index("ix_marketplace_applications_published", "published"),
    )

    @property
    def publication(self) -> dict[str, bool]:
        return {"published": bool(self.published), "requested": bool(self.requested)}

    @property
    def api(self) -> dict[str, str | None]:
        return {
            "hooks_url": self.hooks_url,
            "allowed_ips": self.allowed_ips,
            "private_key": self.private_key,
        }

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

    @property
    def repository(self) -> str | None:
        """Source repository declared in the identity, if any."""
        return (self.identity or {}).get("repository") or None


class CompanyApplication(Base):
    """Installation of a marketplace application in a company."""

    __tablename__ = "company_applications"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    application_id: Mapped[UUID] = mapped_column(
        ForeignKey("marketplace_applications.id", ondelete="CASCADE"), nullable=False
    )
    created_by: Mapped[UUID | None] = mapped_column(default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    __table_args__ = (
        Index(
            "ix_company_applications_company_application",
            "company_id",
            "application_id",
            unique=True,
        ),
    )
