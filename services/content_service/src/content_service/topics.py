from __future__ import annotations

from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from folio_core.actors import Actor
from folio_core.clock import Clock, utcnow
from folio_core.db.models import Article, Topic
from folio_core.errors import CycleDetected, InvalidArgument
from folio_core.identity import new_entity_id, parse_entity_id, parse_optional_entity_id
from folio_core.persistence import Persistence
from folio_core.tree import TreeModel

from content_service.access import (
    ensure_can_read,
    require_actor,
    require_admin,
    require_owner_or_admin,
    require_writer,
)
from content_service.schemas import MergeReport, TopicPatch, TopicSummary, TopicWithChildren
from content_service.settings_store import SettingsStore
from content_service.validation import clean_description, clean_topic_name

logger = structlog.get_logger(__name__)

DEFAULT_TOPIC_NAME = "Uncategorized"
DEFAULT_TOPIC_DESCRIPTION = "Default topic for articles without a specific category"


class TopicStore:
    """
    Topic CRUD, hierarchy maintenance and merge.

    Topic names are not unique; two topics may share a name under different (or
    the same) parents.
    """

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
        self._tree: TreeModel[Topic] = TreeModel(db, Topic, clock=clock)

    @property
    def tree(self) -> TreeModel[Topic]:
        return self._tree

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        creator: Actor | None,
        *,
        description: str | None = None,
        parent_id: str | None = None,
    ) -> Topic:
        creator = require_writer(creator)
        name = clean_topic_name(name)
        description = clean_description(description)
        parent_id = parse_optional_entity_id(parent_id)

        def _create(tx: Persistence) -> Topic:
            now = self._clock()
            topic = Topic(
                id=new_entity_id(),
                name=name,
                description=description,
                parent_id=parent_id,
                ancestors=self._tree.compute_ancestors(parent_id),
                created_by=creator.id,
                created_at=now,
                updated_at=now,
            )
            return tx.insert(topic)

        topic = self._db.transactionally(_create)
        logger.info("topic.created", topic_id=topic.id, parent_id=parent_id, actor_id=creator.id)
        return topic

    def update(self, topic_id: str, patch: TopicPatch | Mapping[str, Any], actor: Actor | None) -> Topic:
        actor = require_actor(actor)
        patch = _topic_patch(patch)
        topic_id = parse_entity_id(topic_id)
        fields = patch.model_fields_set

        def _update(tx: Persistence) -> Topic:
            topic = self._tree.get_live(topic_id)
            require_owner_or_admin(actor, topic.created_by, action="update this topic")

            changes: dict[str, Any] = {}
            if "name" in fields:
                changes["name"] = clean_topic_name(patch.name)
            if "description" in fields:
                changes["description"] = clean_description(patch.description)
            if "parent_id" in fields:
                new_parent_id = parse_optional_entity_id(patch.parent_id)
                if new_parent_id != topic.parent_id:
                    self._tree.move_subtree(topic_id, new_parent_id)
            if changes:
                changes["updated_at"] = self._clock()
                tx.update_one(Topic, topic_id, changes)
            return tx.get(Topic, topic_id)

        topic = self._db.transactionally(_update)
        logger.info("topic.updated", topic_id=topic_id, fields=sorted(fields), actor_id=actor.id)
        return topic

    def delete(self, topic_id: str, actor: Actor | None) -> int:
        """Soft-delete the topic and its subtree. Articles keep their `topic_id`."""
        actor = require_admin(actor)
        topic_id = parse_entity_id(topic_id)
        count = self._tree.soft_delete_subtree(topic_id, actor.id)
        logger.info("topic.deleted", topic_id=topic_id, count=count, actor_id=actor.id)
        return count

    def merge(
        self,
        source_id: str,
        target_id: str,
        actor: Actor | None,
        *,
        dry_run: bool = False,
    ) -> MergeReport:
        """
        Fold `source_id` into `target_id`: its articles and live child topics move to
        the target, then the source is soft-deleted. All-or-nothing.
        """
        actor = require_admin(actor)
        source_id = parse_entity_id(source_id)
        target_id = parse_entity_id(target_id)
        if source_id == target_id:
            raise InvalidArgument("Source and target topics must differ", details={"id": source_id})

        def _merge(tx: Persistence) -> MergeReport:
            self._tree.get_live(source_id)
            target = self._tree.get_live(target_id)
            if source_id in target.ancestors:
                raise CycleDetected(
                    "Cannot merge a topic into one of its descendants",
                    details={"source_id": source_id, "target_id": target_id},
                )

            report = MergeReport(
                source_id=source_id,
                target_id=target_id,
                moved_articles=tx.count(Article, {"topic_id": source_id}),
                reparented_topics=len(self._tree.children(source_id)),
                dry_run=dry_run,
            )
            if dry_run:
                return report

            if report.moved_articles:
                tx.update_many(
                    Article,
                    {"topic_id": source_id},
                    {"topic_id": target_id, "updated_at": self._clock()},
                )
            for child in self._tree.children(source_id):
                self._tree.move_subtree(child.id, target_id)
            self._tree.soft_delete_subtree(source_id, actor.id)
            return report

        report = self._db.transactionally(_merge)
        logger.info(
            "topic.merged",
            source_id=source_id,
            target_id=target_id,
            moved_articles=report.moved_articles,
            reparented_topics=report.reparented_topics,
            dry_run=dry_run,
            actor_id=actor.id,
        )
        return report

    def ensure_default_topic(self, actor: Actor | None) -> tuple[Topic, bool, int]:
        """
        Create the root "Uncategorized" topic if it is missing and file every
        topicless article under it. Returns `(topic, created, assigned)`.
        """
        actor = require_admin(actor)

        def _seed(tx: Persistence) -> tuple[Topic, bool, int]:
            topic = tx.find_one(Topic, {"name": DEFAULT_TOPIC_NAME, "parent_id": None, "deleted": False})
            created = topic is None
            if topic is None:
                topic = self.create(DEFAULT_TOPIC_NAME, actor, description=DEFAULT_TOPIC_DESCRIPTION)
            assigned = tx.update_many(Article, {"topic_id": None}, {"topic_id": topic.id})
            return topic, created, assigned

        topic, created, assigned = self._db.transactionally(_seed)
        logger.info("topic.seeded", topic_id=topic.id, created=created, assigned=assigned)
        return topic, created, assigned

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, topic_id: str, actor: Actor | None = None) -> Topic:
        ensure_can_read(actor, self._settings)
        return self._tree.get_live(parse_entity_id(topic_id))

    def get_with_children(self, topic_id: str, actor: Actor | None = None) -> TopicWithChildren:
        """The topic and its direct live children only; deeper levels load lazily."""
        topic = self.get(topic_id, actor)
        children = sorted(self._tree.children(topic.id), key=lambda t: t.name)
        return TopicWithChildren(
            topic=topic,
            article_count=self._article_count(topic.id),
            children=[TopicSummary(topic=c, article_count=self._article_count(c.id)) for c in children],
        )

    def get_path(self, topic_id: str, actor: Actor | None = None) -> list[Topic]:
        """Breadcrumb from the root down to (and including) the topic."""
        topic = self.get(topic_id, actor)
        if not topic.ancestors:
            return [topic]
        by_id = {t.id: t for t in self._db.find(Topic, {"id__in": topic.ancestors})}
        return [by_id[a] for a in topic.ancestors if a in by_id] + [topic]

    def list_topics(self, actor: Actor | None = None) -> list[TopicSummary]:
        ensure_can_read(actor, self._settings)
        topics = list(self._db.find(Topic, {"deleted": False}, order_by=["name"]))
        return [TopicSummary(topic=t, article_count=self._article_count(t.id)) for t in topics]

    def _article_count(self, topic_id: str) -> int:
        return self._db.count(Article, {"topic_id": topic_id, "deleted": False, "published": True})


def _topic_patch(patch: TopicPatch | Mapping[str, Any]) -> TopicPatch:
    if isinstance(patch, TopicPatch):
        return patch
    try:
        return TopicPatch.model_validate(dict(patch))
    except ValidationError as exc:
        raise InvalidArgument("Invalid topic patch", details={"errors": exc.error_count()}) from exc
