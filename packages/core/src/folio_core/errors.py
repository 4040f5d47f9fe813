"""
Error taxonomy shared by the stores and the export renderer.

Each failure carries a machine-interpretable kind so the transport layer can map
it onto a stable response category without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-interpretable failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    """The id does not resolve to a live entity."""

    FORBIDDEN = "FORBIDDEN"
    """The actor lacks the ownership or role required for the operation."""

    CONFLICT = "CONFLICT"
    """Concurrent modification, or the entity is in the wrong state for the action."""

    CYCLE_DETECTED = "CYCLE_DETECTED"
    """A tree operation would make a node its own ancestor."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    """Malformed input, e.g. merging a topic with itself."""

    INTERNAL = "INTERNAL"
    """Persistence failure."""


class FolioError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})

    def to_log_message(self) -> str:
        """Format error for logging."""
        if not self.details:
            return f"[{self.kind.value}] {self.message}"
        extra = " ".join(f"{k}={v}" for k, v in sorted(self.details.items()))
        return f"[{self.kind.value}] {self.message} ({extra})"


class NotFound(FolioError):
    kind = ErrorKind.NOT_FOUND


class Forbidden(FolioError):
    kind = ErrorKind.FORBIDDEN


class Conflict(FolioError):
    kind = ErrorKind.CONFLICT


class CycleDetected(FolioError):
    kind = ErrorKind.CYCLE_DETECTED


class InvalidArgument(FolioError):
    kind = ErrorKind.INVALID_ARGUMENT


class Internal(FolioError):
    kind = ErrorKind.INTERNAL


__all__ = [
    "ErrorKind",
    "FolioError",
    "NotFound",
    "Forbidden",
    "Conflict",
    "CycleDetected",
    "InvalidArgument",
    "Internal",
]
