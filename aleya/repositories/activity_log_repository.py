"""
Activity Log Repository.

Append-only writes to ``activity_logs``, the trail shown in the back
office's activity history.
"""

from __future__ import annotations

import json

from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger
from aleya.repositories.base_repository import BaseRepository
from aleya.utils.audit import ActivityEvent


class ActivityLogRepository(BaseRepository):
    """Data access layer for activity-log entries.  Insert only."""

    TABLE = "activity_logs"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    def insert(self, event: ActivityEvent) -> None:
        """Persist *event*.

        Raises:
            StoreError: If the system of record rejected the insert.
        """

        def _supabase() -> None:
            self.supabase.table(self.TABLE).insert({
                "user_id": event.user_id,
                "action": event.action,
                "module": event.module,
                "details": event.details,
            }).execute()

        def _sqlite() -> None:
            self.sqlite.execute(
                f"""
                INSERT INTO {self.TABLE} (user_id, action, module, details, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.user_id,
                    event.action,
                    event.module,
                    json.dumps(event.details, default=str, ensure_ascii=False),
                    event.timestamp,
                ),
            )

        self._execute_write(_supabase, _sqlite, operation_name="insert (activity_logs)")
