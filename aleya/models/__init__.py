"""
Data Models Package.

Re-exports all Pydantic models for short imports:
    from aleya.models import Expense, Notification, User
    from aleya.models import ExpenseStatus, PaymentMethod, NotificationType
"""

from __future__ import annotations

from aleya.models.enums import (
    ActivityAction,
    ExpenseStatus,
    NotificationType,
    PaymentMethod,
    SuperAdminRole,
)
from aleya.models.expense import (
    DEFAULT_EXPENSE_CATEGORIES,
    Expense,
    ExpenseInput,
    ExpenseUpdate,
    has_pending_request,
)
from aleya.models.notification import Notification, NotificationInput
from aleya.models.service_models import ServiceResult
from aleya.models.user import User

__all__ = [
    "ActivityAction",
    "DEFAULT_EXPENSE_CATEGORIES",
    "Expense",
    "ExpenseInput",
    "ExpenseStatus",
    "ExpenseUpdate",
    "Notification",
    "NotificationInput",
    "NotificationType",
    "PaymentMethod",
    "ServiceResult",
    "SuperAdminRole",
    "User",
    "has_pending_request",
]
