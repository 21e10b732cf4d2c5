"""create videos table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "videos",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(512), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duration", sa.Float(), nullable=True),
        sa.Column("thumbnail_path", sa.String(512), nullable=True),
        sa.Column("stream_path", sa.String(512), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="uploading", index=True),
        sa.Column("moderation_status", sa.String(20), nullable=False, server_default="pending", index=True),
        sa.Column("sensitivity_analysis", sa.JSON(), nullable=True),
        sa.Column("uploaded_by_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=True, index=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_videos_uploaded_by_status", "videos", ["uploaded_by_id", "status"])
    op.create_index("ix_videos_organization_status", "videos", ["organization_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_videos_organization_status", table_name="videos")
    op.drop_index("ix_videos_uploaded_by_status", table_name="videos")
    op.drop_table("videos")
