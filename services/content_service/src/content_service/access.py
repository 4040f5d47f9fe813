"""Role and ownership preconditions. Authentication itself happens upstream."""

from __future__ import annotations

from typing import TYPE_CHECKING

from folio_core.actors import Actor
from folio_core.db.models import Article
from folio_core.errors import Forbidden

if TYPE_CHECKING:
    from content_service.settings_store import SettingsStore


def ensure_can_read(actor: Actor | None, settings_store: "SettingsStore") -> None:
    if actor is None and not settings_store.guest_access_enabled():
        raise Forbidden("Guest access is disabled")


def require_actor(actor: Actor | None) -> Actor:
    if actor is None:
        raise Forbidden("Authentication required")
    return actor


def require_writer(actor: Actor | None) -> Actor:
    actor = require_actor(actor)
    if not actor.can_write:
        raise Forbidden("Only admins and editors can do this", details={"actor_id": actor.id})
    return actor


def require_admin(actor: Actor | None) -> Actor:
    actor = require_actor(actor)
    if not actor.is_admin:
        raise Forbidden("Admin role required", details={"actor_id": actor.id})
    return actor


def is_owner_or_admin(actor: Actor | None, owner_id: str) -> bool:
    return actor is not None and (actor.is_admin or actor.id == owner_id)


def require_owner_or_admin(actor: Actor | None, owner_id: str, *, action: str) -> Actor:
    actor = require_actor(actor)
    if not is_owner_or_admin(actor, owner_id):
        raise Forbidden(f"You do not have permission to {action}", details={"actor_id": actor.id})
    return actor


def can_view_article(actor: Actor | None, article: Article) -> bool:
    if article.deleted:
        return actor is not None and actor.is_admin
    if article.published:
        return True
    return is_owner_or_admin(actor, article.author)
