"""initial schema: media_files, messages, comments

Revision ID: 3f1c2a9d7e40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "3f1c2a9d7e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "media_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("uploader", sa.String(100), nullable=False),
        sa.Column("uploader_id", sa.String(100), nullable=True),
        sa.Column("file_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("file_url", sa.String(500), nullable=False),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("media_type", sa.String(10), nullable=False),
        sa.Column("cloud_file_id", sa.String(255), nullable=True),
        sa.Column("cloud_url", sa.String(500), nullable=True),
        sa.Column("cloud_view_link", sa.String(500), nullable=True),
        sa.Column(
            "cloud_uploaded", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("cloud_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "upload_time",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_media_upload_time", "media_files", ["upload_time", "id"])
    op.create_index("idx_media_type", "media_files", ["media_type"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_name", sa.String(100), nullable=False),
        sa.Column("message_text", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("idx_messages_created", "messages", ["created_at", "id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_name", sa.String(100), nullable=False),
        sa.Column("comment_text", sa.String(100), nullable=False),
        sa.Column("color", sa.String(7), nullable=False, server_default="#FFFFFF"),
        sa.Column(
            "position", sa.Numeric(5, 2), nullable=False, server_default="50.00"
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )


def downgrade() -> None:
    op.drop_table("comments")
    op.drop_index("idx_messages_created", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_media_type", table_name="media_files")
    op.drop_index("idx_media_upload_time", table_name="media_files")
    op.drop_table("media_files")
