"""
Repository Layer Package.

Provides data-access abstractions over Supabase (cloud) and SQLite (local).
All database operations flow through repositories; services never access
db.supabase or db.sqlite directly.

Usage:
    from aleya.repositories.expense_repository import ExpenseRepository
"""

from aleya.repositories.activity_log_repository import ActivityLogRepository
from aleya.repositories.base_repository import BaseRepository, StoreError
from aleya.repositories.expense_repository import ExpenseRepository
from aleya.repositories.notification_repository import NotificationRepository

__all__ = [
    "ActivityLogRepository",
    "BaseRepository",
    "ExpenseRepository",
    "NotificationRepository",
    "StoreError",
]
