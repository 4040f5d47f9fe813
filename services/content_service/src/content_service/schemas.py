from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel

from folio_core.db.models import Article, Topic


class TopicPatch(BaseModel):
    """Partial topic update; only fields explicitly set are applied."""

    name: str | None = None
    description: str | None = None
    parent_id: str | None = None

    model_config = {"extra": "forbid"}


class ArticlePatch(BaseModel):
    """Partial article update; only fields explicitly set are applied."""

    title: str | None = None
    content: str | None = None
    author_name: str | None = None
    topic_id: str | None = None
    parent_id: str | None = None

    model_config = {"extra": "forbid"}


@dataclass(frozen=True)
class ArticleFilter:
    topic_id: str | None = None
    published: bool | None = None
    include_deleted: bool = False
    include_deleted_topics: bool = False
    parent_id: str | None = None
    roots_only: bool = False


@dataclass(frozen=True)
class TopicSummary:
    topic: Topic
    article_count: int


@dataclass(frozen=True)
class TopicWithChildren:
    topic: Topic
    article_count: int
    children: list[TopicSummary]


@dataclass(frozen=True)
class MergeReport:
    source_id: str
    target_id: str
    moved_articles: int
    reparented_topics: int
    dry_run: bool = False


@dataclass
class DeletedArticleNode:
    article: Article
    children: list["DeletedArticleNode"] = field(default_factory=list)
