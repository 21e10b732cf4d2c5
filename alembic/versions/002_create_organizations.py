"""create organizations and organization_members tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), unique=True, nullable=False, index=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_storage_gb", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("max_video_length", sa.Integer(), nullable=False, server_default="3600"),
        sa.Column("allowed_formats", sa.JSON(), nullable=False),
        sa.Column("moderation_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("streaming_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("subscription_plan", sa.String(20), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("subscription_start", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("subscription_end", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "organization_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "organization_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_organization_member"),
    )


def downgrade() -> None:
    op.drop_table("organization_members")
    op.drop_table("organizations")
