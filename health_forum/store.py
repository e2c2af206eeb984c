"""
Persistence port for the forum services.

``ForumStore`` is the key-value style contract every service depends on:
point loads by key, upserts, deletes, filtered scans, secondary-index
queries, an insert-if-absent and a compare-and-set conditional update.
``SqlAlchemyStore`` implements it over an ``AsyncSession``.

Design notes
------------
- The store flushes but never commits; the transaction boundary is owned
  by whoever created the session (``get_db`` in the HTTP adapter).
- Every ``SQLAlchemyError`` is re-raised as ``StorageError`` (chained) on
  first occurrence.  Nothing here retries.
- ``insert`` runs inside a savepoint, so a uniqueness clash rolls back
  only that record.  Only unique violations become ``DuplicateKeyError``.
- Filter criteria for ``scan_all`` are SQLAlchemy boolean expressions
  built by the services (e.g. ``Post.has_tag("x")``), so filtering runs
  inside the database.
"""
from __future__ import annotations

import abc
from typing import Any, Mapping, TypeVar

from sqlalchemy import and_, inspect, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from health_forum.errors import DuplicateKeyError, InvalidArgumentError, StorageError

T = TypeVar("T")


class ForumStore(abc.ABC):
    """Abstract key-value interface consumed by all services."""

    @abc.abstractmethod
    async def load(self, table: type[T], **key: Any) -> T | None:
        """Point lookup by (partial) key; ``None`` when absent."""

    @abc.abstractmethod
    async def save(self, record: T) -> T:
        """Idempotent upsert."""

    @abc.abstractmethod
    async def insert(self, record: T) -> T:
        """Insert-if-absent; raises ``DuplicateKeyError`` on a uniqueness clash."""

    @abc.abstractmethod
    async def delete(self, record: Any) -> None:
        """Remove *record*.  Callers check existence first."""

    @abc.abstractmethod
    async def scan_all(self, table: type[T], *criteria: Any) -> list[T]:
        """Full-table scan, optionally filtered in-store.  Unordered."""

    @abc.abstractmethod
    async def query_by_index(self, table: type[T], index: str, value: Any) -> list[T]:
        """Secondary-index point query."""

    @abc.abstractmethod
    async def compare_and_set(
        self,
        table: type,
        key: Mapping[str, Any],
        expected: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> bool:
        """Write *values* only if the keyed row still holds *expected*."""


def _columns_equal(table: type, values: Mapping[str, Any]) -> list:
    return [getattr(table, name) == value for name, value in values.items()]


def _is_unique_violation(exc: IntegrityError) -> bool:
    # asyncpg reports SQLSTATE 23505; SQLite only has the message text.
    if getattr(exc.orig, "sqlstate", None) == "23505":
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


class SqlAlchemyStore(ForumStore):
    """``ForumStore`` backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load(self, table, **key):
        if not key:
            raise InvalidArgumentError(f"load({table.__name__}) needs at least one key column")
        q = select(table).where(*_columns_equal(table, key))
        try:
            result = await self.session.execute(q)
        except SQLAlchemyError as exc:
            raise StorageError("load", str(exc)) from exc
        return result.scalars().first()

    async def save(self, record):
        try:
            if inspect(record).session is not self.session.sync_session:
                # Transient or detached: copy its state onto the tracked row.
                merged = await self.session.merge(record)
            else:
                merged = record
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise StorageError("save", str(exc)) from exc
        return merged

    async def insert(self, record):
        try:
            # Savepoint: a clash rolls back this record only.
            async with self.session.begin_nested():
                self.session.add(record)
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise DuplicateKeyError("insert", str(exc.orig)) from exc
            raise StorageError("insert", str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StorageError("insert", str(exc)) from exc
        return record

    async def delete(self, record):
        try:
            await self.session.delete(record)
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise StorageError("delete", str(exc)) from exc

    async def scan_all(self, table, *criteria):
        q = select(table)
        if criteria:
            q = q.where(*criteria)
        try:
            result = await self.session.execute(q)
        except SQLAlchemyError as exc:
            raise StorageError("scan", str(exc)) from exc
        return list(result.scalars().all())

    async def query_by_index(self, table, index, value):
        column = table.__table__.c.get(index)
        if column is None or not (column.index or column.unique):
            raise InvalidArgumentError(f"{table.__tablename__} has no index named {index!r}")
        q = select(table).where(getattr(table, index) == value)
        try:
            result = await self.session.execute(q)
        except SQLAlchemyError as exc:
            raise StorageError("query", str(exc)) from exc
        return list(result.scalars().all())

    async def compare_and_set(self, table, key, expected, values) -> bool:
        stmt = (
            update(table)
            .where(and_(*_columns_equal(table, key), *_columns_equal(table, expected)))
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("conditional update", str(exc)) from exc
        return result.rowcount == 1
