"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "post",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("subtitle", sa.Text(), nullable=True),
        sa.Column("published", sa.DateTime(timezone=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("draft", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_post")),
    )

    # post ids in "old" and "slug" are deliberately not foreign keys: both tables
    # keep their rows after the post is deleted
    op.create_table(
        "old",
        sa.Column("seq", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("data", sa.Text(), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("seq", name=op.f("pk_old")),
    )
    op.create_index(op.f("ix_old_id"), "old", ["id"], unique=False)

    op.create_table(
        "slug",
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("newslug", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["newslug"], ["slug.slug"], name=op.f("fk_slug_newslug_slug")),
        sa.PrimaryKeyConstraint("slug", name=op.f("pk_slug")),
    )
    op.create_index(op.f("ix_slug_id"), "slug", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_slug_id"), table_name="slug")
    op.drop_table("slug")
    op.drop_index(op.f("ix_old_id"), table_name="old")
    op.drop_table("old")
    op.drop_table("post")
