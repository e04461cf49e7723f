"""
Notification Service.

Creates and reads the in-app notifications shown in a user's
notification bell.  ``create`` is used as a fire-and-forget side effect
by other services, so it never raises.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from aleya.config import AppConfig
from aleya.logger import StructuredLogger
from aleya.models.enums import NotificationType
from aleya.models.notification import MetadataValue, Notification, NotificationInput
from aleya.repositories.notification_repository import NotificationRepository
from aleya.services.base_service import BaseService


class NotificationService(BaseService):
    """Service for per-user notifications."""

    def __init__(
        self,
        repo: NotificationRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._config = config

    def create(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: Optional[str] = None,
        metadata: Optional[dict[str, MetadataValue]] = None,
    ) -> Optional[Notification]:
        """Create a notification for *user_id*.

        Returns the stored notification, or ``None`` when the input was
        invalid or the store failed.  Failures are logged, never raised.
        """
        try:
            data = NotificationInput(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                metadata=metadata,
            )
            notification = self._repo.create(data)
            self._logger.info(
                "Notification %s (%s) created for user %s.",
                notification.id,
                notification.type,
                user_id,
            )
            return notification
        except ValidationError as exc:
            self._logger.error("Invalid notification for user %s: %s", user_id, exc)
            return None
        except Exception as exc:
            self._logger.error(
                "Failed to create notification for user %s: %s",
                user_id,
                exc,
                exc_info=True,
            )
            return None

    def get_unread_for_user(self, user_id: str) -> list[Notification]:
        """Unread notifications, newest first."""
        try:
            return self._repo.get_for_user(
                user_id,
                unread_only=True,
                limit=self._config.NOTIFICATIONS_UNREAD_LIMIT,
            )
        except Exception as exc:
            self._logger.error("Failed to load unread notifications: %s", exc)
            return []

    def get_all_for_user(self, user_id: str, limit: Optional[int] = None) -> list[Notification]:
        """Most recent notifications, read or not, newest first."""
        try:
            return self._repo.get_for_user(
                user_id,
                limit=limit or self._config.NOTIFICATIONS_PAGE_SIZE,
            )
        except Exception as exc:
            self._logger.error("Failed to load notifications: %s", exc)
            return []

    def mark_as_read(self, notification_id: str) -> bool:
        try:
            self._repo.mark_as_read(notification_id)
            return True
        except Exception as exc:
            self._logger.error(
                "Failed to mark notification %s as read: %s", notification_id, exc
            )
            return False

    def mark_all_as_read_for_user(self, user_id: str) -> bool:
        try:
            self._repo.mark_all_as_read(user_id)
            return True
        except Exception as exc:
            self._logger.error(
                "Failed to mark notifications of user %s as read: %s", user_id, exc
            )
            return False
