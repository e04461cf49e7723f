"""
Structured Activity Logging Utility.

Every state change is logged as a structured JSON object and, when an
activity-log repository is supplied, persisted to ``activity_logs`` so it
shows up in the back-office activity history.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel, Field

from aleya.logger import StructuredLogger

if TYPE_CHECKING:
    from aleya.repositories.activity_log_repository import ActivityLogRepository

__all__ = ["ActivityEvent", "DetailValue", "log_activity"]

# Flat scalars only; nested structures do not belong in the activity log.
DetailValue = Union[str, int, float, bool, None, list[str]]


class ActivityEvent(BaseModel):
    """Schema-validated representation of a single activity-log entry."""

    timestamp: str
    user_id: str
    action: str
    module: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def log_activity(
    logger: StructuredLogger,
    user_id: str,
    action: str,
    module: str,
    details: Optional[dict[str, DetailValue]] = None,
    repo: Optional[ActivityLogRepository] = None,
) -> None:
    """Log a structured activity event, with optional persistence.

    Always emits an ``AUDIT:`` JSON line via *logger*.  When *repo* is
    given the event is also written to the ``activity_logs`` table.

    Persistence is fire-and-forget: a failing insert is logged as a
    warning and never reaches the caller, so the operation that produced
    the event keeps its own result.

    Args:
        logger: The logger instance to write to.
        user_id: ID of the user who performed the action.
        action: Action tag, e.g. ``"expense_cancel"``.
        module: Back-office module, e.g. ``"egresos"``.
        details: Optional additional context.
        repo: Optional activity-log repository for persistence.
    """
    event = ActivityEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        user_id=user_id,
        action=action,
        module=module,
        details=details or {},
    )
    logger.info("AUDIT: %s", json.dumps(event.model_dump(), default=str, ensure_ascii=False))

    if repo is not None:
        try:
            repo.insert(event)
        except Exception as exc:
            logger.warning(
                "Failed to persist activity event %s for user %s: %s",
                action,
                user_id,
                exc,
            )
