"""
Shared Enumerations for Aleya Shop Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if expense.status == 'active'`` keeps working.
"""

from __future__ import annotations
from enum import StrEnum


class SuperAdminRole(StrEnum):
    """Role labels that all mean "super admin".

    The same role has been stored under three spellings over time;
    every one of them grants cancel / approve / reject rights.
    """

    SUPERADMIN = "superadmin"
    SUPER_ADMIN = "Super Admin"
    SUPER_ADMINISTRADOR = "Super Administrador"


class ExpenseStatus(StrEnum):
    """Expense lifecycle.  ``CANCELLED`` is terminal."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class PaymentMethod(StrEnum):
    """How an expense was paid."""

    CASH = "cash"
    TRANSFER = "transfer"
    PETTY_CASH = "petty-cash"


class NotificationType(StrEnum):
    """Notifications sent to the user who asked for a cancellation."""

    EXPENSE_CANCELLATION_APPROVED = "expense_cancellation_approved"
    EXPENSE_CANCELLATION_REJECTED = "expense_cancellation_rejected"


class ActivityAction(StrEnum):
    """Action tags written to the activity log."""

    EXPENSE_CREATE = "expense_create"
    EXPENSE_UPDATE = "expense_update"
    EXPENSE_CANCELLATION_REQUEST = "expense_cancellation_request"
    EXPENSE_CANCEL = "expense_cancel"
    EXPENSE_CANCELLATION_REJECT = "expense_cancellation_reject"
