"""
Parent/ancestors/soft-delete hierarchy shared by topics and article lineages.

Any mapped model with ``id``, ``parent_id``, ``ancestors``, ``deleted``,
``deleted_at``, ``deleted_by`` and ``updated_at`` columns can be managed by a
`TreeModel`. Invariants maintained here:

- ``ancestors`` equals the parent chain, root first, and never contains the
  node's own id.
- ``parent_id is None`` if and only if ``ancestors`` is empty.
- Every mutation of more than one node runs inside a single transaction.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

import structlog

from folio_core.clock import Clock, utcnow
from folio_core.errors import CycleDetected, NotFound
from folio_core.persistence import Persistence

logger = structlog.get_logger(__name__)

N = TypeVar("N")


class TreeModel(Generic[N]):
    def __init__(self, db: Persistence, model: type[N], *, clock: Clock = utcnow) -> None:
        self._db = db
        self._model = model
        self._clock = clock

    @property
    def name(self) -> str:
        return self._model.__name__

    def get_live(self, node_id: str) -> N:
        node = self._db.get(self._model, node_id)
        if node is None or node.deleted:
            raise NotFound(f"{self.name} not found", details={"id": node_id})
        return node

    def compute_ancestors(self, parent_id: str | None) -> list[str]:
        if parent_id is None:
            return []
        parent = self._db.get(self._model, parent_id)
        if parent is None or parent.deleted:
            raise NotFound(f"Parent {self.name.lower()} not found", details={"id": parent_id})
        return [*parent.ancestors, parent.id]

    def descendants(self, node_id: str, *, include_deleted: bool = True) -> list[N]:
        filter: dict[str, object] = {"ancestors__contains": node_id}
        if not include_deleted:
            filter["deleted"] = False
        return list(self._db.find(self._model, filter))

    def children(self, node_id: str, *, include_deleted: bool = False) -> list[N]:
        filter: dict[str, object] = {"parent_id": node_id}
        if not include_deleted:
            filter["deleted"] = False
        return list(self._db.find(self._model, filter))

    def is_descendant(self, candidate_id: str, node_id: str) -> bool:
        """True if `candidate_id` sits anywhere below `node_id`."""
        candidate = self._db.get(self._model, candidate_id)
        return candidate is not None and node_id in candidate.ancestors

    def move_subtree(self, node_id: str, new_parent_id: str | None) -> N:
        def _move(tx: Persistence) -> N:
            node = self.get_live(node_id)
            if new_parent_id is not None and (
                new_parent_id == node_id or self.is_descendant(new_parent_id, node_id)
            ):
                raise CycleDetected(
                    f"Cannot move {self.name.lower()} under itself or its descendant",
                    details={"id": node_id, "new_parent_id": new_parent_id},
                )

            new_ancestors = self.compute_ancestors(new_parent_id)
            now = self._clock()
            prefix = [*new_ancestors, node_id]
            moved = 0
            for descendant in self.descendants(node_id):
                # Keep the part of the path below the moved node; replace everything above it.
                suffix = descendant.ancestors[descendant.ancestors.index(node_id) + 1 :]
                tx.update_one(
                    self._model,
                    descendant.id,
                    {"ancestors": [*prefix, *suffix], "updated_at": now},
                )
                moved += 1

            updated = tx.update_one(
                self._model,
                node_id,
                {"parent_id": new_parent_id, "ancestors": new_ancestors, "updated_at": now},
            )
            logger.info(
                "tree.moved",
                model=self.name,
                node_id=node_id,
                new_parent_id=new_parent_id,
                descendants=moved,
            )
            return updated

        return self._db.transactionally(_move)

    def soft_delete_subtree(
        self,
        node_id: str,
        actor_id: str,
        *,
        include: Callable[[N], bool] | None = None,
    ) -> int:
        """
        Mark the node and every live descendant deleted with one uniform stamp.
        When `include` is given, only descendants it accepts are stamped.

        Returns the number of nodes that changed; deleting an already deleted node
        is a no-op that returns 0.
        """

        def _delete(tx: Persistence) -> int:
            node = self._db.get(self._model, node_id)
            if node is None:
                raise NotFound(f"{self.name} not found", details={"id": node_id})
            if node.deleted:
                return 0

            stamp = {"deleted": True, "deleted_at": self._clock(), "deleted_by": actor_id}
            descendants = self.descendants(node_id, include_deleted=False)
            targets = [node_id, *(d.id for d in descendants if include is None or include(d))]
            for target_id in targets:
                tx.update_one(self._model, target_id, {**stamp, "updated_at": stamp["deleted_at"]})
            logger.info("tree.soft_deleted", model=self.name, node_id=node_id, count=len(targets))
            return len(targets)

        return self._db.transactionally(_delete)

    def restore_subtree(self, node_id: str) -> int:
        """
        Undelete the node and the descendants that were deleted in the same batch.

        Descendants deleted earlier (by a separate action) keep their state.
        """

        def _restore(tx: Persistence) -> int:
            node = self._db.get(self._model, node_id)
            if node is None:
                raise NotFound(f"{self.name} not found", details={"id": node_id})
            if not node.deleted:
                return 0

            batch = list(
                self._db.find(
                    self._model,
                    {
                        "ancestors__contains": node_id,
                        "deleted": True,
                        "deleted_at": node.deleted_at,
                        "deleted_by": node.deleted_by,
                    },
                )
            )
            now = self._clock()
            cleared = {"deleted": False, "deleted_at": None, "deleted_by": None, "updated_at": now}
            for target_id in [node_id, *(d.id for d in batch)]:
                tx.update_one(self._model, target_id, cleared)
            logger.info("tree.restored", model=self.name, node_id=node_id, count=len(batch) + 1)
            return len(batch) + 1

        return self._db.transactionally(_restore)


__all__ = ["TreeModel"]
