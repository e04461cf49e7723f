"""
Notification Repository.

Data access for per-user in-app notifications.
"""

from __future__ import annotations

import json
from typing import Optional

from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger
from aleya.models.notification import Notification, NotificationInput
from aleya.repositories.base_repository import (
    BaseRepository,
    new_id,
    utc_now_iso,
)

Row = dict[str, object]


class NotificationRepository(BaseRepository):
    """Data access layer for Notification entities."""

    TABLE = "notifications"

    _COLUMNS: tuple[str, ...] = (
        "id",
        "user_id",
        "type",
        "title",
        "message",
        "metadata",
        "read_at",
        "created_at",
    )

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def create(self, data: NotificationInput) -> Notification:
        """Insert a notification.

        Raises:
            StoreError: If the system of record rejected the insert.
        """
        values: Row = {
            "user_id": data.user_id,
            "type": str(data.type),
            "title": data.title,
            "message": data.message,
            "metadata": data.metadata,
        }

        def _supabase() -> Row:
            response = self.supabase.table(self.TABLE).insert(values).execute()
            return response.data[0]

        def _sqlite() -> Row:
            local: Row = {**values, "id": new_id(), "created_at": utc_now_iso()}
            columns = ", ".join(local)
            placeholders = ", ".join("?" for _ in local)
            row = self.sqlite.execute(
                f"INSERT INTO {self.TABLE} ({columns}) VALUES ({placeholders}) RETURNING *",
                [self._to_sqlite_value(v) for v in local.values()],
            ).fetchone()
            return dict(row)

        row = self._execute_write(_supabase, _sqlite, operation_name="create (notifications)")
        if self._db.is_online:
            self._cache_rows([row], self._COLUMNS)
        return self._parse(row)

    def get_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 30,
    ) -> list[Notification]:
        """Notifications for *user_id*, newest first."""

        def _supabase() -> list[Row]:
            query = self.supabase.table(self.TABLE).select("*").eq("user_id", user_id)
            if unread_only:
                query = query.is_("read_at", "null")
            response = query.order("created_at", desc=True).limit(limit).execute()
            return response.data or []

        def _sqlite() -> list[Row]:
            sql = f"SELECT * FROM {self.TABLE} WHERE user_id = ?"
            if unread_only:
                sql += " AND read_at IS NULL"
            rows = self.sqlite.execute(
                sql + " ORDER BY created_at DESC LIMIT ?", (user_id, limit)
            ).fetchall()
            return [dict(row) for row in rows]

        rows = self._execute_with_fallback(
            _supabase,
            _sqlite,
            list,
            operation_name="get_for_user (notifications)",
            on_supabase_success=lambda r: self._cache_rows(r, self._COLUMNS),
        )
        return [self._parse(row) for row in rows]

    def mark_as_read(self, notification_id: str) -> None:
        """Stamp ``read_at`` on one notification.

        Raises:
            StoreError: If the store could not be reached.
        """
        now = utc_now_iso()

        def _supabase() -> None:
            (
                self.supabase.table(self.TABLE)
                .update({"read_at": now})
                .eq("id", notification_id)
                .execute()
            )

        def _sqlite() -> None:
            self.sqlite.execute(
                f"UPDATE {self.TABLE} SET read_at = ? WHERE id = ?",
                (now, notification_id),
            )

        self._execute_write(_supabase, _sqlite, operation_name="mark_as_read (notifications)")

    def mark_all_as_read(self, user_id: str) -> None:
        """Stamp ``read_at`` on every unread notification of *user_id*.

        Raises:
            StoreError: If the store could not be reached.
        """
        now = utc_now_iso()

        def _supabase() -> None:
            (
                self.supabase.table(self.TABLE)
                .update({"read_at": now})
                .eq("user_id", user_id)
                .is_("read_at", "null")
                .execute()
            )

        def _sqlite() -> None:
            self.sqlite.execute(
                f"UPDATE {self.TABLE} SET read_at = ? WHERE user_id = ? AND read_at IS NULL",
                (now, user_id),
            )

        self._execute_write(_supabase, _sqlite, operation_name="mark_all_as_read (notifications)")

    # --- Private helpers ---

    @staticmethod
    def _to_sqlite_value(value: object) -> object:
        if isinstance(value, dict):
            return json.dumps(value, default=str, ensure_ascii=False)
        return value

    @staticmethod
    def _parse(row: Row) -> Notification:
        metadata = row.get("metadata")
        if isinstance(metadata, str):
            try:
                row = {**row, "metadata": json.loads(metadata)}
            except (json.JSONDecodeError, ValueError):
                row = {**row, "metadata": None}
        return Notification.model_validate(row)
