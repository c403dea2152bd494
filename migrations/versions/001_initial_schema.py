"""Initial provisioning schema

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

# Native UUID on PostgreSQL, hyphenated text on SQLite (matches PortableUUID)
UUID = postgresql.UUID(as_uuid=True).with_variant(sa.String(36), "sqlite")


def audit_columns() -> list[sa.Column]:
    """Create/Update provenance columns carried by every table."""
    return [
        sa.Column("create_app_id", UUID, nullable=False),
        sa.Column("create_user_id", UUID, nullable=True),
        sa.Column("create_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("update_app_id", UUID, nullable=False),
        sa.Column("update_user_id", UUID, nullable=True),
        sa.Column("update_timestamp", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Create org_kind lookup table
    op.create_table(
        "org_kind",
        sa.Column("org_kind_id", UUID, primary_key=True),
        sa.Column("org_kind_extl_id", sa.String(100), nullable=False, unique=True),
        sa.Column("org_kind_desc", sa.String(4000), nullable=False),
        *audit_columns(),
    )

    # Create org table
    op.create_table(
        "org",
        sa.Column("org_id", UUID, primary_key=True),
        sa.Column("org_extl_id", sa.String(250), nullable=False, unique=True),
        sa.Column("org_name", sa.String(500), nullable=False),
        sa.Column("org_description", sa.String(4000), nullable=False),
        sa.Column("org_kind_id", UUID, nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(["org_kind_id"], ["org_kind.org_kind_id"]),
    )
    op.create_index("idx_org_kind", "org", ["org_kind_id"])

    # Create app table
    op.create_table(
        "app",
        sa.Column("app_id", UUID, primary_key=True),
        sa.Column("app_extl_id", sa.String(250), nullable=False, unique=True),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("app_name", sa.String(500), nullable=False),
        sa.Column("app_description", sa.String(4000), nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(["org_id"], ["org.org_id"]),
    )
    op.create_index("idx_app_org", "app", ["org_id"])

    # Create app_api_key table; the ciphertext is the key
    op.create_table(
        "app_api_key",
        sa.Column("api_key", sa.String(500), primary_key=True),
        sa.Column("app_id", UUID, nullable=False),
        sa.Column("deactv_date", sa.DateTime(timezone=True), nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(["app_id"], ["app.app_id"]),
    )
    op.create_index("idx_app_api_key_app", "app_api_key", ["app_id"])

    # Create person table
    op.create_table(
        "person",
        sa.Column("person_id", UUID, primary_key=True),
        sa.Column("org_id", UUID, nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(["org_id"], ["org.org_id"]),
    )

    # Create person_profile table
    op.create_table(
        "person_profile",
        sa.Column("person_profile_id", UUID, primary_key=True),
        sa.Column("person_id", UUID, nullable=False),
        sa.Column("first_name", sa.String(250), nullable=True),
        sa.Column("last_name", sa.String(250), nullable=True),
        *audit_columns(),
        sa.ForeignKeyConstraint(["person_id"], ["person.person_id"]),
    )

    # Create users table
    op.create_table(
        "users",
        sa.Column("user_id", UUID, primary_key=True),
        sa.Column("username", sa.String(250), nullable=False),
        sa.Column("org_id", UUID, nullable=False),
        sa.Column("person_profile_id", UUID, nullable=False),
        *audit_columns(),
        sa.ForeignKeyConstraint(["org_id"], ["org.org_id"]),
        sa.ForeignKeyConstraint(["person_profile_id"], ["person_profile.person_profile_id"]),
        sa.UniqueConstraint("org_id", "username", name="uq_users_org_username"),
    )


def downgrade() -> None:
    op.drop_table("users")
    op.drop_table("person_profile")
    op.drop_table("person")
    op.drop_table("app_api_key")
    op.drop_table("app")
    op.drop_table("org")
    op.drop_table("org_kind")
