"""create users, fridges and fridge members

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "fridges",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("invite_code", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invite_code"),
    )

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("firebase_uid", sa.String(length=128), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("photo_url", sa.String(length=1024), nullable=True),
        sa.Column("user_name", sa.String(length=64), nullable=True),
        sa.Column(
            "role",
            sa.String(length=16),
            server_default=sa.text("'user'"),
            nullable=False,
        ),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("address_country", sa.String(length=120), nullable=True),
        sa.Column("address_city", sa.String(length=120), nullable=True),
        sa.Column("address_full", sa.String(length=512), nullable=True),
        sa.Column("address_lat", sa.Float(), nullable=True),
        sa.Column("address_lng", sa.Float(), nullable=True),
        sa.Column(
            "allergies",
            sa.JSON(),
            server_default=sa.text("'[]'"),
            nullable=False,
        ),
        sa.Column(
            "diet_preference",
            sa.String(length=16),
            server_default=sa.text("'NONE'"),
            nullable=False,
        ),
        sa.Column(
            "active_fridge_id", postgresql.UUID(as_uuid=True), nullable=True
        ),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["active_fridge_id"], ["fridges.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("firebase_uid"),
        sa.UniqueConstraint("user_name"),
        sa.CheckConstraint("role in ('user','admin')", name="ck_users_role"),
        sa.CheckConstraint(
            "diet_preference in ('NONE','VEGETARIAN','VEGAN','PESCATARIAN')",
            name="ck_users_diet_preference",
        ),
        sa.CheckConstraint("age is null or age >= 0", name="ck_users_age"),
    )
    op.create_index(
        "uq_users_email_lower",
        "users",
        [sa.text("lower(email)")],
        unique=True,
    )
    op.create_index("ix_users_address_city", "users", ["address_city"])

    op.create_table(
        "fridge_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fridge_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["fridge_id"], ["fridges.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fridge_id", "user_id", name="uq_fridge_member"),
    )
    op.create_index(
        "ix_fridge_members_user_id", "fridge_members", ["user_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_fridge_members_user_id", table_name="fridge_members")
    op.drop_table("fridge_members")
    op.drop_index("ix_users_address_city", table_name="users")
    op.drop_index("uq_users_email_lower", table_name="users")
    op.drop_table("users")
    op.drop_table("fridges")
