"""
Article lifecycle: draft -> published -> deleted, with revision history.

Title and content edits append the pre-edit snapshot to ``article_revision``
and bump ``version``, so for every article ``len(revisions) == version - 1``.
Lineage (``parent_id``/``ancestors``) records which article a draft was
duplicated from and is maintained by `TreeModel`, same as the topic hierarchy.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

import structlog
from pydantic import ValidationError

from folio_core.actors import Actor
from folio_core.clock import Clock, utcnow
from folio_core.db.models import Article, ArticleRevision, Topic
from folio_core.errors import Conflict, Forbidden, InvalidArgument, NotFound
from folio_core.identity import new_entity_id, parse_entity_id, parse_optional_entity_id
from folio_core.persistence import Persistence
from folio_core.tree import TreeModel

from content_service.access import (
    can_view_article,
    ensure_can_read,
    require_actor,
    require_admin,
    require_owner_or_admin,
    require_writer,
)
from content_service.schemas import ArticleFilter, ArticlePatch, DeletedArticleNode
from content_service.settings_store import SettingsStore
from content_service.validation import clean_author_name, clean_content, clean_title

logger = structlog.get_logger(__name__)


class ArticleStore:
    def __init__(
        self,
        db: Persistence,
        settings_store: SettingsStore | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._db = db
        self._clock = clock
        self._settings = settings_store or SettingsStore(db, clock=clock)
        self._tree: TreeModel[Article] = TreeModel(db, Article, clock=clock)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        title: str,
        content: str,
        author: Actor | None,
        *,
        topic_id: str | None = None,
        parent_id: str | None = None,
        author_name: str | None = None,
    ) -> Article:
        author = require_writer(author)
        title = clean_title(title)
        content = clean_content(content)
        author_name = clean_author_name(author_name)
        topic_id = parse_optional_entity_id(topic_id)
        parent_id = parse_optional_entity_id(parent_id)

        def _create(tx: Persistence) -> Article:
            self._require_live_topic(topic_id)
            now = self._clock()
            article = Article(
                id=new_entity_id(),
                title=title,
                content=content,
                author_name=author_name,
                parent_id=parent_id,
                ancestors=self._tree.compute_ancestors(parent_id),
                topic_id=topic_id,
                author=author.id,
                version=1,
                published=False,
                published_at=None,
                created_at=now,
                updated_at=now,
            )
            return tx.insert(article)

        article = self._db.transactionally(_create)
        logger.info("article.created", article_id=article.id, topic_id=topic_id, actor_id=author.id)
        return article

    def update(
        self,
        article_id: str,
        patch: ArticlePatch | Mapping[str, Any],
        actor: Actor | None,
        *,
        expected_version: int | None = None,
    ) -> Article:
        """
        Apply a partial update.

        Raises `Conflict` when `expected_version` is stale, or when another writer
        bumps the version between this read and the write.
        """
        actor = require_actor(actor)
        patch = _article_patch(patch)
        article_id = parse_entity_id(article_id)
        fields = patch.model_fields_set

        def _update(tx: Persistence) -> Article:
            article = self._tree.get_live(article_id)
            require_owner_or_admin(actor, article.author, action="edit this article")
            if expected_version is not None and expected_version != article.version:
                raise Conflict(
                    "Article has been modified since it was read",
                    details={"id": article_id, "expected_version": expected_version, "version": article.version},
                )

            read_version = article.version
            changes: dict[str, Any] = {}
            if "title" in fields:
                title = clean_title(patch.title)
                if title != article.title:
                    changes["title"] = title
            if "content" in fields:
                content = clean_content(patch.content)
                if content != article.content:
                    changes["content"] = content
            content_changed = bool(changes)

            if "author_name" in fields:
                changes["author_name"] = clean_author_name(patch.author_name)
            if "topic_id" in fields:
                topic_id = parse_optional_entity_id(patch.topic_id)
                self._require_live_topic(topic_id)
                changes["topic_id"] = topic_id
            if "parent_id" in fields:
                parent_id = parse_optional_entity_id(patch.parent_id)
                if parent_id != article.parent_id:
                    self._tree.move_subtree(article_id, parent_id)

            if not changes:
                return tx.get(Article, article_id)

            now = self._clock()
            if content_changed:
                tx.insert(
                    ArticleRevision(
                        article_id=article_id,
                        version=read_version,
                        title=article.title,
                        content=article.content,
                        updated_at=now,
                        updated_by=actor.id,
                    )
                )
                changes["version"] = read_version + 1
            changes["updated_at"] = now
            return tx.update_one(Article, article_id, changes, expected_version=read_version)

        article = self._db.transactionally(_update)
        logger.info(
            "article.updated",
            article_id=article_id,
            version=article.version,
            fields=sorted(fields),
            actor_id=actor.id,
        )
        return article

    def publish(self, article_id: str, actor: Actor | None) -> Article:
        """Idempotent. `published_at` records the first publication only."""
        actor = require_actor(actor)
        article_id = parse_entity_id(article_id)

        def _publish(tx: Persistence) -> Article:
            article = self._tree.get_live(article_id)
            require_owner_or_admin(actor, article.author, action="publish this article")
            if article.published:
                return article
            changes: dict[str, Any] = {"published": True, "updated_at": self._clock()}
            if article.published_at is None:
                changes["published_at"] = changes["updated_at"]
            return tx.update_one(Article, article_id, changes)

        article = self._db.transactionally(_publish)
        logger.info("article.published", article_id=article_id, actor_id=actor.id)
        return article

    def unpublish(self, article_id: str, actor: Actor | None) -> Article:
        actor = require_actor(actor)
        article_id = parse_entity_id(article_id)

        def _unpublish(tx: Persistence) -> Article:
            article = self._tree.get_live(article_id)
            require_owner_or_admin(actor, article.author, action="unpublish this article")
            if not article.published:
                raise Conflict("Article is not published", details={"id": article_id})
            # published_at is kept as the first-publication timestamp.
            return tx.update_one(Article, article_id, {"published": False, "updated_at": self._clock()})

        article = self._db.transactionally(_unpublish)
        logger.info("article.unpublished", article_id=article_id, actor_id=actor.id)
        return article

    def duplicate_to_draft(self, article_id: str, actor: Actor | None) -> Article:
        actor = require_writer(actor)
        article_id = parse_entity_id(article_id)

        def _duplicate(tx: Persistence) -> Article:
            source = self._tree.get_live(article_id)
            if not can_view_article(actor, source):
                raise NotFound("Article not found", details={"id": article_id})
            now = self._clock()
            draft = Article(
                id=new_entity_id(),
                title=source.title,
                content=source.content,
                author_name=source.author_name,
                parent_id=source.id,
                ancestors=[*source.ancestors, source.id],
                topic_id=source.topic_id,
                author=actor.id,
                version=1,
                published=False,
                published_at=None,
                created_at=now,
                updated_at=now,
            )
            return tx.insert(draft)

        draft = self._db.transactionally(_duplicate)
        logger.info("article.duplicated", article_id=draft.id, source_id=article_id, actor_id=actor.id)
        return draft

    def delete(self, article_id: str, actor: Actor | None) -> int:
        """Soft-delete the article and its live lineage descendants."""
        actor = require_actor(actor)
        article_id = parse_entity_id(article_id)
        article = self._get_any(article_id)
        require_owner_or_admin(actor, article.author, action="delete this article")
        # Non-admins only take their own lineage descendants down with them.
        own = None if actor.is_admin else (lambda d: d.author == actor.id)
        count = self._tree.soft_delete_subtree(article_id, actor.id, include=own)
        logger.info("article.deleted", article_id=article_id, count=count, actor_id=actor.id)
        return count

    def undelete(self, article_id: str, actor: Actor | None) -> Article:
        actor = require_actor(actor)
        article_id = parse_entity_id(article_id)
        article = self._get_any(article_id)
        require_owner_or_admin(actor, article.author, action="restore this article")
        if not article.deleted:
            raise Conflict("Article is not deleted", details={"id": article_id})
        count = self._tree.restore_subtree(article_id)
        logger.info("article.restored", article_id=article_id, count=count, actor_id=actor.id)
        return self._get_any(article_id)

    def permanently_delete(self, article_id: str, actor: Actor | None) -> int:
        """
        Remove a soft-deleted article, its revisions and its deleted lineage
        descendants for good. Returns the number of articles removed.
        """
        actor = require_actor(actor)
        article_id = parse_entity_id(article_id)

        def _purge(tx: Persistence) -> int:
            article = self._get_any(article_id)
            if not article.deleted:
                raise Conflict("Article must be deleted before it can be purged", details={"id": article_id})
            if not (actor.is_admin or (actor.id == article.author and not article.published)):
                raise Forbidden(
                    "You do not have permission to permanently delete this article",
                    details={"actor_id": actor.id},
                )

            descendants = self._tree.descendants(article_id)
            foreign = [d.id for d in descendants if d.author != actor.id]
            if foreign and not actor.is_admin:
                raise Forbidden(
                    "Lineage descendants by other authors can only be purged by an admin",
                    details={"actor_id": actor.id, "descendants": foreign},
                )
            live = [d.id for d in descendants if not d.deleted]
            if live:
                raise Conflict(
                    "Article has live lineage descendants",
                    details={"id": article_id, "live_descendants": live},
                )
            # Deepest first so no row is removed while something still points at it.
            for descendant in sorted(descendants, key=lambda d: len(d.ancestors), reverse=True):
                tx.delete_one(Article, descendant.id)
            tx.delete_one(Article, article_id)
            return len(descendants) + 1

        count = self._db.transactionally(_purge)
        logger.warning("article.purged", article_id=article_id, count=count, actor_id=actor.id)
        return count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, article_id: str, actor: Actor | None = None) -> Article:
        ensure_can_read(actor, self._settings)
        article_id = parse_entity_id(article_id)
        article = self._db.get(Article, article_id)
        if article is None or not can_view_article(actor, article):
            raise NotFound("Article not found", details={"id": article_id})
        return article

    def get_revisions(self, article_id: str, actor: Actor | None = None) -> list[ArticleRevision]:
        article = self.get(article_id, actor)
        return list(self._db.find(ArticleRevision, {"article_id": article.id}, order_by=["version"]))

    def list_articles(
        self,
        filter: ArticleFilter | None = None,
        actor: Actor | None = None,
    ) -> Iterator[Article]:
        """Newest first. Drafts appear only to their author (and admins)."""
        ensure_can_read(actor, self._settings)
        filter = filter or ArticleFilter()
        include_deleted = filter.include_deleted and actor is not None and actor.is_admin

        query: dict[str, Any] = {}
        if not include_deleted:
            query["deleted"] = False
        if filter.topic_id is not None:
            query["topic_id"] = parse_entity_id(filter.topic_id)
        if filter.published is not None:
            query["published"] = filter.published
        if filter.parent_id is not None:
            query["parent_id"] = parse_entity_id(filter.parent_id)
        elif filter.roots_only:
            query["parent_id"] = None

        hidden_topics: set[str] = set()
        if not filter.include_deleted_topics:
            hidden_topics = {t.id for t in self._db.find(Topic, {"deleted": True})}

        return self._visible(self._db.find(Article, query, order_by=["-created_at"]), actor, hidden_topics)

    def get_user_drafts(self, author: Actor | None) -> list[Article]:
        author = require_actor(author)
        return list(
            self._db.find(
                Article,
                {"author": author.id, "published": False, "deleted": False},
                order_by=["-updated_at"],
            )
        )

    def list_deleted(self, actor: Actor | None) -> list[DeletedArticleNode]:
        """Deleted articles as a lineage forest, most recently deleted first."""
        require_admin(actor)
        deleted = list(self._db.find(Article, {"deleted": True}, order_by=["-deleted_at", "-created_at"]))
        nodes = {a.id: DeletedArticleNode(article=a) for a in deleted}
        roots: list[DeletedArticleNode] = []
        for article in deleted:
            parent = nodes.get(article.parent_id) if article.parent_id else None
            if parent is None:
                roots.append(nodes[article.id])
            else:
                parent.children.append(nodes[article.id])
        return roots

    def get_for_export(self, article_id: str, actor: Actor | None) -> Article:
        actor = require_actor(actor)
        article = self._tree.get_live(parse_entity_id(article_id))
        require_owner_or_admin(actor, article.author, action="export this article")
        return article

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_any(self, article_id: str) -> Article:
        article = self._db.get(Article, article_id)
        if article is None:
            raise NotFound("Article not found", details={"id": article_id})
        return article

    def _require_live_topic(self, topic_id: str | None) -> None:
        if topic_id is None:
            return
        topic = self._db.get(Topic, topic_id)
        if topic is None or topic.deleted:
            raise NotFound("Topic not found", details={"id": topic_id})

    @staticmethod
    def _visible(articles: Iterator[Article], actor: Actor | None, hidden_topics: set[str]) -> Iterator[Article]:
        for article in articles:
            if article.topic_id is not None and article.topic_id in hidden_topics:
                continue
            if not article.deleted and not can_view_article(actor, article):
                continue
            yield article


def _article_patch(patch: ArticlePatch | Mapping[str, Any]) -> ArticlePatch:
    if isinstance(patch, ArticlePatch):
        return patch
    try:
        return ArticlePatch.model_validate(dict(patch))
    except ValidationError as exc:
        raise InvalidArgument("Invalid article patch", details={"errors": exc.error_count()}) from exc
