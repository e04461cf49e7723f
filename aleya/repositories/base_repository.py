"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + SQLite)
- Logger reference
- Read helper with Supabase-first, SQLite-fallback semantics
- Write helper that targets whichever store is the system of record
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from supabase import Client as SupabaseClient

from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger

T = TypeVar("T")


class StoreError(RuntimeError):
    """Raised when a write cannot reach the system of record."""


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string, the format stored in every table."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    """Generate a primary key for locally inserted rows."""
    return str(uuid.uuid4())


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection for local operations."""
        return self._db.sqlite

    def _execute_with_fallback(
        self,
        supabase_op: Callable[[], Optional[T]],
        sqlite_op: Callable[[], Optional[T]],
        default_factory: Callable[[], T],
        *,
        operation_name: str,
        on_supabase_success: Optional[Callable[[T], None]] = None,
    ) -> T:
        """Execute a read operation with Supabase-first, SQLite-fallback semantics.

        NOT intended for write paths: state changes must only ever be
        applied to the system of record (see :meth:`_execute_write`).

        Execution order:
        1. When online, call ``supabase_op()``.  If it returns a
           non-``None`` value, optionally invoke ``on_supabase_success``,
           then return.
        2. Call ``sqlite_op()``.  If it returns a non-``None`` value, return.
        3. Return ``default_factory()``.

        Parameters
        ----------
        supabase_op:
            Zero-argument callable that performs the Supabase query.
        sqlite_op:
            Zero-argument callable that performs the SQLite query.
        default_factory:
            Zero-argument callable producing the typed default when both
            sources fail or return ``None``.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"get_by_id (expenses)"``.
        on_supabase_success:
            Optional callback invoked with the Supabase result before it
            is returned, used to warm the local cache.  Exceptions are
            logged as warnings but never mask the result.
        """
        if self._db.is_online:
            try:
                result = supabase_op()
                if result is not None:
                    if on_supabase_success is not None:
                        try:
                            on_supabase_success(result)
                        except Exception as cache_exc:
                            self._logger.warning(
                                "Post-Supabase callback failed for %s: %s",
                                operation_name,
                                cache_exc,
                            )
                    return result
            except Exception as exc:
                self._logger.warning(
                    "Supabase unavailable for %s: %s", operation_name, exc
                )

        try:
            result = sqlite_op()
            if result is not None:
                return result
        except sqlite3.Error as sqlite_exc:
            self._logger.error(
                "SQLite fallback also failed for %s: %s",
                operation_name,
                sqlite_exc,
            )

        return default_factory()

    def _execute_write(
        self,
        supabase_op: Callable[[], T],
        sqlite_op: Callable[[], T],
        *,
        operation_name: str,
    ) -> T:
        """Run a write against the system of record.

        Online, only ``supabase_op`` runs; a failure is **not** retried
        against SQLite because the local copy is just a cache.  In
        standalone mode ``sqlite_op`` runs under the write lock.

        Raises
        ------
        StoreError
            When the store raised.  The original exception is chained.
        """
        if self._db.is_online:
            try:
                return supabase_op()
            except Exception as exc:
                self._logger.error(
                    "Supabase write failed for %s: %s", operation_name, exc
                )
                raise StoreError(f"{operation_name} failed: {exc}") from exc

        with self._db.write_lock:
            try:
                result = sqlite_op()
                self.sqlite.commit()
                return result
            except sqlite3.Error as exc:
                self.sqlite.rollback()
                self._logger.error(
                    "SQLite write failed for %s: %s", operation_name, exc
                )
                raise StoreError(f"{operation_name} failed: {exc}") from exc

    def _cache_rows(self, rows: list[dict[str, object]], columns: tuple[str, ...]) -> None:
        """Upsert Supabase rows into the local cache table.

        Only columns in *columns* enter the SQL statement.  Cache failures
        are logged and ignored.
        """
        if not rows:
            return
        columns_sql = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(
            f"{col} = excluded.{col}" for col in columns if col != "id"
        )
        try:
            with self._db.write_lock:
                self.sqlite.executemany(
                    f"""
                    INSERT INTO {self.TABLE} ({columns_sql})
                    VALUES ({placeholders})
                    ON CONFLICT(id) DO UPDATE SET {updates}
                    """,
                    [[self._to_sqlite_value(row.get(col)) for col in columns] for row in rows],
                )
                self.sqlite.commit()
        except sqlite3.Error as exc:
            self._logger.warning("Failed to cache %s rows locally: %s", self.TABLE, exc)

    @staticmethod
    def _to_sqlite_value(value: object) -> object:
        """Hook for subclasses whose columns need conversion (JSON, enums)."""
        return value
