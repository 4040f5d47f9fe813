"""Initial content schema: topics, articles, revisions, settings

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "topic",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_id", sa.String(length=32), sa.ForeignKey("topic.id"), nullable=True),
        sa.Column("ancestors", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=32), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_topic_parent_deleted", "topic", ["parent_id", "deleted"])
    op.create_index("ix_topic_name_deleted", "topic", ["name", "deleted"])

    op.create_table(
        "article",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_name", sa.String(length=512), nullable=True),
        sa.Column("parent_id", sa.String(length=32), sa.ForeignKey("article.id"), nullable=True),
        sa.Column("ancestors", sa.JSON(), nullable=False),
        sa.Column("topic_id", sa.String(length=32), sa.ForeignKey("topic.id"), nullable=True),
        sa.Column("author", sa.String(length=32), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_article_parent", "article", ["parent_id"])
    op.create_index("ix_article_author_published", "article", ["author", "published"])
    op.create_index("ix_article_topic_deleted", "article", ["topic_id", "deleted"])
    op.create_index("ix_article_topic_published", "article", ["topic_id", "published"])
    op.create_index("ix_article_deleted_parent", "article", ["deleted", "parent_id"])

    op.create_table(
        "article_revision",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "article_id",
            sa.String(length=32),
            sa.ForeignKey("article.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(length=32), nullable=False),
        sa.UniqueConstraint("article_id", "version", name="uq_article_revision_version"),
    )

    op.create_table(
        "setting",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("setting")
    op.drop_table("article_revision")
    op.drop_index("ix_article_deleted_parent", table_name="article")
    op.drop_index("ix_article_topic_published", table_name="article")
    op.drop_index("ix_article_topic_deleted", table_name="article")
    op.drop_index("ix_article_author_published", table_name="article")
    op.drop_index("ix_article_parent", table_name="article")
    op.drop_table("article")
    op.drop_index("ix_topic_name_deleted", table_name="topic")
    op.drop_index("ix_topic_parent_deleted", table_name="topic")
    op.drop_table("topic")
