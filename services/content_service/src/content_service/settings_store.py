from __future__ import annotations

import enum
from typing import Any

import structlog

from folio_core.actors import Actor
from folio_core.clock import Clock, utcnow
from folio_core.db.models import Setting
from folio_core.persistence import Persistence

from content_service.access import require_admin

logger = structlog.get_logger(__name__)


class SettingsKey(str, enum.Enum):
    guest_access_enabled = "guestAccessEnabled"
    require_email_verification = "requireEmailVerification"


DEFAULTS: dict[str, Any] = {
    SettingsKey.guest_access_enabled.value: True,
    SettingsKey.require_email_verification.value: False,
}

# Settings a guest may read.
PUBLIC_KEYS = (SettingsKey.guest_access_enabled,)


class SettingsStore:
    def __init__(self, db: Persistence, *, clock: Clock = utcnow) -> None:
        self._db = db
        self._clock = clock

    def get(self, key: SettingsKey | str, default: Any = None) -> Any:
        key = _key(key)
        row = self._db.get(Setting, key)
        if row is None:
            return default if default is not None else DEFAULTS.get(key)
        return row.value

    def set(self, key: SettingsKey | str, value: Any) -> Setting:
        key = _key(key)

        def _upsert(tx: Persistence) -> Setting:
            now = self._clock()
            if tx.get(Setting, key) is None:
                return tx.insert(Setting(key=key, value=value, created_at=now, updated_at=now))
            return tx.update_one(Setting, key, {"value": value, "updated_at": now})

        row = self._db.transactionally(_upsert)
        logger.info("settings.updated", key=key)
        return row

    def guest_access_enabled(self) -> bool:
        return bool(self.get(SettingsKey.guest_access_enabled))

    def require_email_verification(self) -> bool:
        return bool(self.get(SettingsKey.require_email_verification))

    def public_settings(self) -> dict[str, Any]:
        return {k.value: self.get(k) for k in PUBLIC_KEYS}

    def all_settings(self) -> dict[str, Any]:
        return {k.value: self.get(k) for k in SettingsKey}

    def update(
        self,
        actor: Actor | None,
        *,
        guest_access_enabled: bool | None = None,
        require_email_verification: bool | None = None,
    ) -> dict[str, Any]:
        require_admin(actor)
        if guest_access_enabled is not None:
            self.set(SettingsKey.guest_access_enabled, bool(guest_access_enabled))
        if require_email_verification is not None:
            self.set(SettingsKey.require_email_verification, bool(require_email_verification))
        return self.all_settings()


def _key(key: SettingsKey | str) -> str:
    return key.value if isinstance(key, SettingsKey) else key
