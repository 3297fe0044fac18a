"""Create marketplace application tables

Revision ID: create_marketplace_tables
Revises:
Create Date: 2026-10-19

Creates:
- companies / company_users: membership and roles
- marketplace_applications: structured application records
- company_applications: installations
- legacy_applications: flat rows imported from the previous platform
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision = "create_marketplace_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "company_users",
        sa.Column("company_id", UUID(), nullable=False),
        sa.Column("user_id", UUID(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("company_id", "user_id"),
    )
    op.create_index("ix_company_users_user_id", "company_users", ["user_id"])

    op.create_table(
        "marketplace_applications",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("identity", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),

        # Publication state machine
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("requested", sa.Boolean(), nullable=False, server_default=sa.text("false")),

        # API credentials
        sa.Column("hooks_url", sa.Text(), nullable=True),
        sa.Column("allowed_ips", sa.Text(), nullable=True),
        sa.Column("private_key", sa.String(255), nullable=True),

        sa.Column("access", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("display", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),

        # Stats
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),

        # Soft delete
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),

        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_marketplace_applications_company_id", "marketplace_applications", ["company_id"])
    op.create_index("ix_marketplace_applications_published", "marketplace_applications", ["published"])

    op.create_table(
        "company_applications",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(), nullable=False),
        sa.Column("application_id", UUID(), nullable=False),
        sa.Column("created_by", UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["application_id"], ["marketplace_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_company_applications_company_application",
        "company_applications",
        ["company_id", "application_id"],
        unique=True,
    )

    op.create_table(
        "legacy_applications",
        sa.Column("id", UUID(), nullable=False),
        sa.Column("group_id", UUID(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=True, server_default=sa.text("false")),
        sa.Column("depreciated_simple_name", sa.String(255), nullable=True),
        sa.Column("depreciated_name", sa.String(255), nullable=True),
        sa.Column("depreciated_icon_url", sa.Text(), nullable=True),
        sa.Column("depreciated_description", sa.Text(), nullable=True),
        sa.Column("depreciated_is_available_to_public", sa.Boolean(), nullable=True),
        sa.Column("depreciated_public", sa.Boolean(), nullable=True),
        sa.Column("depreciated_twake_team_validation", sa.Boolean(), nullable=True),
        sa.Column("depreciated_api_events_url", sa.Text(), nullable=True),
        sa.Column("depreciated_api_allowed_ip", sa.Text(), nullable=True),
        sa.Column("depreciated_api_private_key", sa.String(255), nullable=True),
        sa.Column("depreciated_capabilities", sa.Text(), nullable=True),
        sa.Column("depreciated_privileges", sa.Text(), nullable=True),
        sa.Column("depreciated_hooks", sa.Text(), nullable=True),
        sa.Column("depreciated_display_configuration", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_legacy_applications_group_id", "legacy_applications", ["group_id"])


def downgrade() -> None:
    op.drop_index("ix_legacy_applications_group_id", table_name="legacy_applications")
    op.drop_table("legacy_applications")
    op.drop_index("ix_company_applications_company_application", table_name="company_applications")
    op.drop_table("company_applications")
    op.drop_index("ix_marketplace_applications_published", table_name="marketplace_applications")
    op.drop_index("ix_marketplace_applications_company_id", table_name="marketplace_applications")
    op.drop_table("marketplace_applications")
    op.drop_index("ix_company_users_user_id", table_name="company_users")
    op.drop_table("company_users")
    op.drop_table("companies")
