"""
Expense Service.

Registers, edits and lists expenses (egresos).  Cancellation lives in
:mod:`aleya.services.expense_cancellation`; this service never changes
an expense's status.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from pydantic import ValidationError

from aleya.auth import CurrentUser
from aleya.logger import StructuredLogger
from aleya.models.enums import ActivityAction, PaymentMethod
from aleya.models.expense import Expense, ExpenseInput, ExpenseUpdate
from aleya.models.service_models import ServiceResult
from aleya.repositories.activity_log_repository import ActivityLogRepository
from aleya.repositories.expense_repository import ExpenseRepository
from aleya.services.base_service import BaseService
from aleya.utils.audit import log_activity
from aleya.utils.string_helpers import normalize_keys

EXPENSES_MODULE: str = "egresos"


class ExpenseService(BaseService):
    """Service for expense registration and listing."""

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        activity_repo: ActivityLogRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = expense_repo
        self._activity_repo = activity_repo

    def create_expense(
        self,
        data: Union[ExpenseInput, dict[str, object]],
        current_user: Optional[CurrentUser] = None,
    ) -> ServiceResult[Expense]:
        """Register a new active expense.

        Args:
            data: Validated input, or a raw payload (camelCase keys from
                the web form are accepted).
            current_user: The actor; when given, the creation is written
                to the activity log.
        """
        try:
            expense_input = (
                data if isinstance(data, ExpenseInput)
                else ExpenseInput.model_validate(normalize_keys(data))
            )
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                error=f"Invalid expense: {exc.errors()[0]['msg']}",
                status_code=400,
            )

        try:
            expense = self._repo.create(expense_input)
        except Exception as exc:
            self._logger.error("Error creating expense: %s", exc, exc_info=True)
            return ServiceResult(
                success=False,
                error="Could not save the expense.",
                status_code=500,
            )

        if current_user is not None:
            log_activity(
                logger=self._logger,
                user_id=current_user.id,
                action=ActivityAction.EXPENSE_CREATE,
                module=EXPENSES_MODULE,
                details={
                    "description": (
                        f'Nuevo egreso registrado en categoría "{expense.category}"'
                    ),
                    "expenseId": expense.id,
                    "category": expense.category,
                    "amount": expense.amount,
                    "date": expense.date.isoformat(),
                    "paymentMethod": str(expense.payment_method),
                },
                repo=self._activity_repo,
            )

        return ServiceResult(success=True, data=expense, status_code=201)

    def update_expense(
        self,
        expense_id: str,
        updates: Union[ExpenseUpdate, dict[str, object]],
        current_user: Optional[CurrentUser] = None,
    ) -> ServiceResult[Expense]:
        """Edit the descriptive fields of an active expense.

        Cancelled expenses are immutable; editing one fails with 409.
        """
        try:
            expense_update = (
                updates if isinstance(updates, ExpenseUpdate)
                else ExpenseUpdate.model_validate(normalize_keys(updates))
            )
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                error=f"Invalid expense update: {exc.errors()[0]['msg']}",
                status_code=400,
            )

        fields = expense_update.model_dump(exclude_unset=True, mode="json")
        if not fields:
            return ServiceResult(
                success=False,
                error="No fields to update.",
                status_code=400,
            )

        try:
            updated = self._repo.update_fields(expense_id, fields)
        except Exception as exc:
            self._logger.error(
                "Error updating expense %s: %s", expense_id, exc, exc_info=True
            )
            return ServiceResult(
                success=False,
                error="Could not update the expense.",
                status_code=500,
            )

        if updated is None:
            return ServiceResult(
                success=False,
                error="Expense not found or already cancelled.",
                status_code=409,
            )

        if current_user is not None:
            changed = sorted(fields)
            log_activity(
                logger=self._logger,
                user_id=current_user.id,
                action=ActivityAction.EXPENSE_UPDATE,
                module=EXPENSES_MODULE,
                details={
                    "description": (
                        f"Se actualizó el egreso {expense_id}. "
                        f"Campos modificados: {', '.join(changed)}"
                    ),
                    "expenseId": expense_id,
                    "changes": changed,
                },
                repo=self._activity_repo,
            )

        return ServiceResult(success=True, data=updated)

    def get_expense(self, expense_id: str) -> ServiceResult[Expense]:
        expense = self._repo.get_by_id(expense_id)
        if expense is None:
            return ServiceResult(success=False, error="Expense not found.", status_code=404)
        return ServiceResult(success=True, data=expense)

    def get_all_expenses(
        self,
        search: Optional[str] = None,
        payment_method: Optional[Union[PaymentMethod, str]] = None,
    ) -> ServiceResult[list[Expense]]:
        """List expenses, newest first, optionally filtered."""
        try:
            method = PaymentMethod(payment_method) if payment_method else None
        except ValueError:
            return ServiceResult(
                success=False,
                error=f"Unknown payment method: {payment_method!r}.",
                status_code=400,
            )
        try:
            return ServiceResult(
                success=True,
                data=self._repo.get_all(search=search, payment_method=method),
            )
        except Exception as exc:
            self._logger.error("Error listing expenses: %s", exc, exc_info=True)
            return ServiceResult(success=False, error=str(exc), status_code=500)

    def get_expenses_by_date_range(
        self,
        start_date: date,
        end_date: date,
    ) -> ServiceResult[list[Expense]]:
        """List expenses attributed to ``start_date..end_date`` inclusive."""
        if start_date > end_date:
            return ServiceResult(
                success=False,
                error="start_date must not be after end_date.",
                status_code=400,
            )
        try:
            return ServiceResult(
                success=True,
                data=self._repo.get_by_date_range(start_date, end_date),
            )
        except Exception as exc:
            self._logger.error("Error listing expenses by date: %s", exc, exc_info=True)
            return ServiceResult(success=False, error=str(exc), status_code=500)
