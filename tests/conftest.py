from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from folio_core.actors import Actor, Role
from folio_core.db.base import Base
from folio_core.db import models  # noqa: F401
from folio_core.db.session import session_factory
from folio_core.identity import new_entity_id
from folio_core.persistence import SqlPersistence

from content_service.articles import ArticleStore
from content_service.settings_store import SettingsStore
from content_service.topics import TopicStore


class FakeClock:
    """Deterministic clock; every call returns the current instant until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = session_factory(engine)()
    try:
        yield SqlPersistence(session)
    finally:
        session.close()


@pytest.fixture
def settings_store(db, clock) -> SettingsStore:
    return SettingsStore(db, clock=clock)


@pytest.fixture
def topics(db, settings_store, clock) -> TopicStore:
    return TopicStore(db, settings_store, clock=clock)


@pytest.fixture
def articles(db, settings_store, clock) -> ArticleStore:
    return ArticleStore(db, settings_store, clock=clock)


@pytest.fixture
def admin() -> Actor:
    return Actor.of(new_entity_id(), Role.admin, name="Ada Admin")


@pytest.fixture
def editor() -> Actor:
    return Actor.of(new_entity_id(), Role.editor, name="Eddie Editor")


@pytest.fixture
def other_editor() -> Actor:
    return Actor.of(new_entity_id(), Role.editor, name="Olga Editor")


@pytest.fixture
def viewer() -> Actor:
    return Actor.of(new_entity_id(), Role.viewer, name="Vic Viewer")
