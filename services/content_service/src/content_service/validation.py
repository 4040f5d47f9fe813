"""
Construction-time validation for user-supplied fields.

These run in the store layer so every entry point (CLI, transport, scripts) gets
the same rules.
"""

from __future__ import annotations

from folio_core.errors import InvalidArgument

MAX_TOPIC_NAME_LENGTH = 512
MAX_TITLE_LENGTH = 1024
MAX_AUTHOR_NAME_LENGTH = 512


def clean_topic_name(raw: object) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidArgument("Topic name is required")
    name = raw.strip()
    if len(name) > MAX_TOPIC_NAME_LENGTH:
        raise InvalidArgument("Topic name is too long", details={"max": MAX_TOPIC_NAME_LENGTH})
    return name


def clean_description(raw: object) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise InvalidArgument("Description must be a string")
    return raw.strip() or None


def clean_title(raw: object) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidArgument("Title is required")
    title = raw.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidArgument("Title is too long", details={"max": MAX_TITLE_LENGTH})
    return title


def clean_content(raw: object) -> str:
    # Content is opaque rich markup; only its presence is checked.
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidArgument("Content is required")
    return raw


def clean_author_name(raw: object) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise InvalidArgument("Author name must be a string")
    name = raw.strip()
    if len(name) > MAX_AUTHOR_NAME_LENGTH:
        raise InvalidArgument("Author name is too long", details={"max": MAX_AUTHOR_NAME_LENGTH})
    return name or None
