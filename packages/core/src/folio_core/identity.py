from __future__ import annotations

import uuid

from folio_core.errors import InvalidArgument

EntityId = str


def new_entity_id() -> EntityId:
    return uuid.uuid4().hex


def parse_entity_id(raw: object) -> EntityId:
    """Normalise any textual UUID form to the canonical hex id."""
    if isinstance(raw, uuid.UUID):
        return raw.hex
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidArgument("Entity id must be a non-empty string", details={"value": repr(raw)})
    try:
        return uuid.UUID(raw.strip()).hex
    except ValueError as exc:
        raise InvalidArgument(f"Malformed entity id: {raw!r}") from exc


def parse_optional_entity_id(raw: object) -> EntityId | None:
    if raw is None or raw == "":
        return None
    return parse_entity_id(raw)


def is_entity_id(raw: object) -> bool:
    try:
        parse_entity_id(raw)
    except InvalidArgument:
        return False
    return True
