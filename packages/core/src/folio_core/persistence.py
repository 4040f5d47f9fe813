"""
Persistence contract consumed by the stores, and its SQLAlchemy implementation.

The stores never talk to a `Session` directly: every read and write goes through
`Persistence`, and multi-write operations are wrapped in `transactionally(fn)` so
they either apply completely or not at all.

Filters are plain mappings of ``field`` or ``field__op`` to a value::

    db.find(Topic, {"parent_id": topic_id, "deleted": False}, order_by=["name"])
    db.find(Topic, {"ancestors__contains": topic_id})

Supported ops: ``eq`` (default, ``None`` means IS NULL), ``ne``, ``in``,
``not_in``, ``contains`` (membership in a JSON id list), ``lt``, ``gt``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence, TypeVar

import structlog
from sqlalchemy import String, cast, func, inspect, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from folio_core.errors import Conflict, FolioError, Internal, InvalidArgument, NotFound

logger = structlog.get_logger(__name__)

M = TypeVar("M")
T = TypeVar("T")

Filter = Mapping[str, Any]

_OPERATORS = frozenset({"eq", "ne", "in", "not_in", "contains", "lt", "gt"})


class Persistence(Protocol):
    def get(self, model: type[M], entity_id: str) -> M | None: ...

    def find(
        self,
        model: type[M],
        filter: Filter | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> Iterator[M]: ...

    def find_one(self, model: type[M], filter: Filter) -> M | None: ...

    def count(self, model: type[M], filter: Filter | None = None) -> int: ...

    def insert(self, entity: M) -> M: ...

    def update_one(
        self,
        model: type[M],
        entity_id: str,
        patch: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> M: ...

    def update_many(self, model: type[M], filter: Filter, patch: Mapping[str, Any]) -> int: ...

    def delete_one(self, model: type[M], entity_id: str) -> None: ...

    def transactionally(self, fn: Callable[["Persistence"], T]) -> T: ...


class SqlPersistence:
    """`Persistence` over a single SQLAlchemy session (one unit of work per caller)."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._depth = 0

    @classmethod
    @contextmanager
    def open(cls, factory: sessionmaker[Session] | None = None) -> Iterator["SqlPersistence"]:
        if factory is None:
            from folio_core.db.session import session_factory

            factory = session_factory()
        session = factory()
        try:
            yield cls(session)
        finally:
            session.close()

    @property
    def session(self) -> Session:
        return self._session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, model: type[M], entity_id: str) -> M | None:
        try:
            return self._session.get(model, entity_id)
        except SQLAlchemyError as exc:
            raise Internal(f"Failed to load {model.__name__}", details={"id": entity_id}) from exc

    def find(
        self,
        model: type[M],
        filter: Filter | None = None,
        *,
        order_by: Sequence[str] = (),
        limit: int | None = None,
    ) -> Iterator[M]:
        stmt = select(model).where(*_criteria(model, filter))
        for key in order_by:
            descending = key.startswith("-")
            column = _column(model, key.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            result = self._session.scalars(stmt)
        except SQLAlchemyError as exc:
            raise Internal(f"Failed to query {model.__name__}") from exc
        return iter(result)

    def find_one(self, model: type[M], filter: Filter) -> M | None:
        return next(self.find(model, filter, limit=1), None)

    def count(self, model: type[M], filter: Filter | None = None) -> int:
        stmt = select(func.count()).select_from(model).where(*_criteria(model, filter))
        try:
            return int(self._session.scalar(stmt) or 0)
        except SQLAlchemyError as exc:
            raise Internal(f"Failed to count {model.__name__}") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, entity: M) -> M:
        def _insert(_: Persistence) -> M:
            self._session.add(entity)
            self._session.flush()
            return entity

        return self.transactionally(_insert)

    def update_one(
        self,
        model: type[M],
        entity_id: str,
        patch: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> M:
        for key in patch:
            _column(model, key)

        def _update(_: Persistence) -> M:
            entity = self._session.get(model, entity_id)
            if entity is None:
                raise NotFound(f"{model.__name__} not found", details={"id": entity_id})

            if expected_version is None:
                for key, value in patch.items():
                    setattr(entity, key, value)
                self._session.flush()
                return entity

            # Conditional write: only succeeds if nobody bumped the version since it was read.
            stmt = (
                update(model)
                .where(_column(model, "id") == entity_id, _column(model, "version") == expected_version)
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
            result = self._session.execute(stmt)
            if result.rowcount != 1:
                raise Conflict(
                    f"{model.__name__} has been modified concurrently",
                    details={"id": entity_id, "expected_version": expected_version},
                )
            self._session.refresh(entity)
            return entity

        return self.transactionally(_update)

    def update_many(self, model: type[M], filter: Filter, patch: Mapping[str, Any]) -> int:
        for key in patch:
            _column(model, key)

        def _update(_: Persistence) -> int:
            stmt = (
                update(model)
                .where(*_criteria(model, filter))
                .values(**patch)
                .execution_options(synchronize_session="fetch")
            )
            return int(self._session.execute(stmt).rowcount or 0)

        return self.transactionally(_update)

    def delete_one(self, model: type[M], entity_id: str) -> None:
        def _delete(_: Persistence) -> None:
            entity = self._session.get(model, entity_id)
            if entity is None:
                raise NotFound(f"{model.__name__} not found", details={"id": entity_id})
            self._session.delete(entity)
            self._session.flush()

        self.transactionally(_delete)

    def transactionally(self, fn: Callable[[Persistence], T]) -> T:
        # Nested calls join the outermost transaction.
        if self._depth:
            return fn(self)

        self._depth += 1
        try:
            result = fn(self)
            self._session.commit()
            return result
        except FolioError:
            self._session.rollback()
            raise
        except IntegrityError as exc:
            self._session.rollback()
            logger.warning("persistence.integrity_error", error=str(exc.orig))
            raise Conflict("Write rejected by a uniqueness or reference constraint") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("persistence.failure", error=str(exc))
            raise Internal("Persistence failure") from exc
        except BaseException:
            self._session.rollback()
            raise
        finally:
            self._depth -= 1


def _column(model: type, field: str):
    if field not in inspect(model).columns:
        raise InvalidArgument(f"Unknown field {field!r} for {model.__name__}")
    return getattr(model, field)


def _criteria(model: type, filter: Filter | None) -> list:
    clauses = []
    for key, value in (filter or {}).items():
        field, _, op = key.partition("__")
        op = op or "eq"
        if op not in _OPERATORS:
            raise InvalidArgument(f"Unsupported filter operator {op!r}")
        column = _column(model, field)

        if op == "eq":
            clauses.append(column.is_(None) if value is None else column == value)
        elif op == "ne":
            clauses.append(column.is_not(None) if value is None else column != value)
        elif op == "in":
            clauses.append(column.in_(list(value)))
        elif op == "not_in":
            clauses.append(column.not_in(list(value)))
        elif op == "contains":
            # JSON id lists serialize as ["a", "b"]; ids are hex so the quoted match is exact.
            clauses.append(cast(column, String).like(f'%"{value}"%'))
        elif op == "lt":
            clauses.append(column < value)
        elif op == "gt":
            clauses.append(column > value)
    return clauses


__all__ = ["Filter", "Persistence", "SqlPersistence"]
