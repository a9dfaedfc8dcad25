"""create institute tables

Revision ID: 3b1e9c27d4a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1e9c27d4a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="student"),
    )
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("outline", sa.Text(), nullable=True),
        sa.Column("instructor", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("instructor_bio", sa.Text(), nullable=True),
        sa.Column("duration", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("level", sa.String(length=16), nullable=False, server_default="Beginner"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("signature_image", sa.Text(), nullable=True),
    )
    op.create_table(
        "enrollments",
        sa.Column(
            "user_id",
            sa.String(length=64),
            sa.ForeignKey("profiles.id"),
            primary_key=True,
        ),
        sa.Column(
            "course_id",
            sa.String(length=64),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="registered"
        ),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "site_settings",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column(
            "value",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_table(
        "videos",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("duration", sa.String(length=64), nullable=False, server_default="Unknown"),
        sa.Column("type", sa.String(length=64), nullable=False, server_default="Lecture"),
        sa.Column("level", sa.String(length=32), nullable=False, server_default="Beginner"),
        sa.Column("category", sa.String(length=128), nullable=False, server_default="General"),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_videos_created_at", "videos", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_videos_created_at", table_name="videos")
    op.drop_table("videos")
    op.drop_table("site_settings")
    op.drop_table("enrollments")
    op.drop_table("courses")
    op.drop_table("profiles")
