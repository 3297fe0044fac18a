"""
Company and CompanyUser ORM models.

Companies own marketplace applications; CompanyUser rows carry the member's
role, which decides whether they see the admin view of an application.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.enums import CompanyRole
from src.models.orm.base import Base


class Company(Base):
    """Company database table."""

    __tablename__ = "companies"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    # Relationships
    members: Mapped[list["CompanyUser"]] = relationship(back_populates="company")


class CompanyUser(Base):
    """Membership of a user in a company."""

    __tablename__ = "company_users"

    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(primary_key=True)
    role: Mapped[str] = mapped_column(String(20), default=CompanyRole.MEMBER.value)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    # Relationships
    company: Mapped["Company"] = relationship(back_populates="members")

    __table_args__ = (Index("ix_company_users_user_id", "user_id"),)
