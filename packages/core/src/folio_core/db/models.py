from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio_core.clock import utcnow
from folio_core.db.base import Base
from folio_core.db.enums import ArticleState
from folio_core.db.types import UTCDateTime
from folio_core.identity import new_entity_id

ID_LENGTH = 32


class Topic(Base):
    __tablename__ = "topic"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_entity_id)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), ForeignKey("topic.id"), nullable=True)
    # Root-first ids of every ancestor; denormalized from the parent chain for subtree queries.
    ancestors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)

    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_topic_parent_deleted", "parent_id", "deleted"),
        Index("ix_topic_name_deleted", "name", "deleted"),
    )

    def __repr__(self) -> str:
        return f"<Topic id={self.id!r} name={self.name!r} deleted={self.deleted!r}>"


class Article(Base):
    __tablename__ = "article"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_entity_id)
    title: Mapped[str] = mapped_column(String(1024), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Display-only override of the owning user's name.
    author_name: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Lineage: an article duplicated into a draft points back at its source.
    parent_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), ForeignKey("article.id"), nullable=True)
    ancestors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    topic_id: Mapped[str | None] = mapped_column(String(ID_LENGTH), ForeignKey("topic.id"), nullable=True)
    author: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    deleted_by: Mapped[str | None] = mapped_column(String(ID_LENGTH), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    revisions: Mapped[list["ArticleRevision"]] = relationship(
        back_populates="article",
        order_by="ArticleRevision.version",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_article_parent", "parent_id"),
        Index("ix_article_author_published", "author", "published"),
        Index("ix_article_topic_deleted", "topic_id", "deleted"),
        Index("ix_article_topic_published", "topic_id", "published"),
        Index("ix_article_deleted_parent", "deleted", "parent_id"),
    )

    @property
    def state(self) -> ArticleState:
        if self.deleted:
            return ArticleState.deleted
        return ArticleState.published if self.published else ArticleState.draft

    def __repr__(self) -> str:
        return f"<Article id={self.id!r} version={self.version!r} state={self.state.value!r}>"


class ArticleRevision(Base):
    """Immutable snapshot of an article captured right before a superseding edit."""

    __tablename__ = "article_revision"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[str] = mapped_column(
        String(ID_LENGTH), ForeignKey("article.id", ondelete="CASCADE"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(1024), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_by: Mapped[str] = mapped_column(String(ID_LENGTH), nullable=False)

    article: Mapped[Article] = relationship(back_populates="revisions")

    __table_args__ = (UniqueConstraint("article_id", "version", name="uq_article_revision_version"),)


class Setting(Base):
    __tablename__ = "setting"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
