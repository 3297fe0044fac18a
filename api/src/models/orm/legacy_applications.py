"""
LegacyApplication ORM model.

Read-only view of the flat application table written by the previous platform.
Every ``depreciated_*`` column is imported into the structured
``marketplace_applications`` record by the legacy migration.
"""

from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.orm.base import Base


class LegacyApplication(Base):
    """Legacy (pre-migration) application row."""

    __tablename__ = "legacy_applications"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    group_id: Mapped[UUID] = mapped_column(nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    depreciated_simple_name: Mapped[str | None] = mapped_column(String(255), default=None)
    depreciated_name: Mapped[str | None] = mapped_column(String(255), default=None)
    depreciated_icon_url: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_description: Mapped[str | None] = mapped_column(Text, default=None)

    depreciated_is_available_to_public: Mapped[bool] = mapped_column(Boolean, default=False)
    depreciated_public: Mapped[bool] = mapped_column(Boolean, default=False)
    depreciated_twake_team_validation: Mapped[bool] = mapped_column(Boolean, default=False)

    depreciated_api_events_url: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_api_allowed_ip: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_api_private_key: Mapped[str | None] = mapped_column(String(255), default=None)

    # JSON encoded as text by the previous platform
    depreciated_capabilities: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_privileges: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_hooks: Mapped[str | None] = mapped_column(Text, default=None)
    depreciated_display_configuration: Mapped[str | None] = mapped_column(Text, default=None)

    __table_args__ = (Index("ix_legacy_applications_group_id", "group_id"),)
