"""
Notification Model.

In-app messages addressed to a single user.  Created as a side effect of
resolving an expense cancellation request; never part of the expense row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from aleya.models.enums import NotificationType

MetadataValue = Union[str, int, float, bool, None]


class Notification(BaseModel):
    """A message waiting in a user's notification bell."""

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: Optional[str] = None
    metadata: Optional[dict[str, MetadataValue]] = None
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


class NotificationInput(BaseModel):
    """Validated input for a new notification."""

    user_id: str = Field(min_length=1)
    type: NotificationType
    title: str = Field(min_length=1)
    message: Optional[str] = None
    metadata: Optional[dict[str, MetadataValue]] = None
