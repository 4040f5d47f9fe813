"""
Expiring key/value store with an injected clock.

Expiry is evaluated against the clock passed in at construction, and expired
entries are only dropped when they are touched or when `purge_expired()` is
called, so behaviour is deterministic under test.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from folio_core.clock import Clock, utcnow
from folio_core.errors import InvalidArgument
from folio_core.settings import settings

V = TypeVar("V")


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    expires_at: datetime


class ExpiringStore(Generic[V]):
    def __init__(self, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry[V]] = {}

    def put(self, key: str, value: V, ttl: timedelta | float) -> datetime:
        if not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)
        if ttl <= timedelta(0):
            raise InvalidArgument("ttl must be positive", details={"ttl": str(ttl)})
        expires_at = self._clock() + ttl
        self._entries[key] = _Entry(value=value, expires_at=expires_at)
        return expires_at

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        return entry.value

    def pop(self, key: str) -> V | None:
        entry = self._entries.pop(key, None)
        if entry is None or self._expired(entry):
            return None
        return entry.value

    def purge_expired(self) -> int:
        expired = [k for k, e in self._entries.items() if self._expired(e)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        # Expired entries still count until touched or purged.
        return len(self._entries)

    def _expired(self, entry: _Entry[V]) -> bool:
        return entry.expires_at <= self._clock()


class VerificationTokens:
    """Single-use email verification tokens."""

    def __init__(self, store: ExpiringStore[str] | None = None, *, ttl: float | None = None) -> None:
        self._store: ExpiringStore[str] = store if store is not None else ExpiringStore()
        self._ttl = timedelta(seconds=ttl if ttl is not None else settings.verification_token_ttl_s)

    def issue(self, email: str) -> str:
        token = secrets.token_hex(32)
        self._store.put(token, email.strip().lower(), self._ttl)
        return token

    def consume(self, token: str) -> str | None:
        return self._store.pop(token)
