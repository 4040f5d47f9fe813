from __future__ import annotations

import enum
from dataclasses import dataclass, field

from folio_core.identity import EntityId


class Role(str, enum.Enum):
    admin = "admin"
    editor = "editor"
    viewer = "viewer"


@dataclass(frozen=True)
class Actor:
    """
    Authenticated caller as supplied by the (external) auth layer.

    A guest is represented by passing `None` wherever an actor is expected.
    """

    id: EntityId
    roles: frozenset[Role] = field(default_factory=frozenset)
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return Role.admin in self.roles

    @property
    def can_write(self) -> bool:
        return self.is_admin or Role.editor in self.roles

    @classmethod
    def of(cls, actor_id: EntityId, *roles: Role | str, name: str = "") -> "Actor":
        return cls(id=actor_id, roles=frozenset(Role(r) for r in roles), name=name)
