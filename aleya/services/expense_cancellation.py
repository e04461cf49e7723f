"""
Expense Cancellation Workflow.

Owns the path an expense takes from ``active`` to ``cancelled``:

    Active ──request──▶ PendingRequest ──approve──▶ Cancelled
      │                      │
      │                      └──reject──▶ Active (request fields cleared)
      └──direct cancel (super admin)──▶ Cancelled

There is no separate request entity: "pending" is an active expense with
``cancellation_requested_at`` set (see
:func:`~aleya.models.expense.has_pending_request`).

Every transition is one conditional write scoped to ``status = 'active'``.
A write that matches no row means the expense is missing, no longer
active, or was resolved by someone else first; all three are reported
the same way (409) and are never retried.

Notifications and activity-log entries are dispatched after a successful
write.  Their failure is logged and never changes the result.
"""

from __future__ import annotations

from typing import Optional

from aleya.auth import CurrentUser, is_privileged
from aleya.config import AppConfig
from aleya.logger import StructuredLogger
from aleya.models.enums import ActivityAction, NotificationType
from aleya.models.expense import Expense, has_pending_request
from aleya.models.service_models import ServiceResult
from aleya.repositories.activity_log_repository import ActivityLogRepository
from aleya.repositories.expense_repository import ExpenseRepository
from aleya.services.base_service import BaseService
from aleya.services.expense_service import EXPENSES_MODULE
from aleya.services.notification_service import NotificationService
from aleya.utils.audit import log_activity
from aleya.utils.formatting import format_cop


class ExpenseCancellationWorkflow(BaseService):
    """
    Service handling expense cancellation: request, direct cancel /
    approve, reject, and the super admin's review queue.

    Dependencies are injected via __init__.
    """

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        notification_service: NotificationService,
        activity_repo: ActivityLogRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = expense_repo
        self._notifications = notification_service
        self._activity_repo = activity_repo
        self._config = config

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @staticmethod
    def is_privileged(role: Optional[str]) -> bool:
        """Whether *role* may cancel directly and resolve requests."""
        return is_privileged(role)

    @staticmethod
    def has_pending_request(expense: Expense) -> bool:
        return has_pending_request(expense)

    # ------------------------------------------------------------------
    # Public: request_cancellation
    # ------------------------------------------------------------------

    def request_cancellation(
        self,
        expense_id: str,
        reason: str,
        current_user: CurrentUser,
    ) -> ServiceResult[Expense]:
        """
        Ask a super admin to cancel an active expense.

        Stamps the four request fields; ``status`` stays ``active``.  No
        notification is sent until the request is resolved.

        Args:
            expense_id: The expense to cancel.
            reason: The requester's justification, at least
                ``MIN_REASON_LENGTH`` characters once trimmed.
            current_user: The requester (any role).

        Returns:
            ServiceResult carrying the updated expense on success.
        """
        invalid = self._validate(reason, current_user)
        if invalid is not None:
            return invalid

        try:
            updated = self._repo.request_cancellation(
                expense_id,
                reason.strip(),
                current_user.id,
                current_user.display_name,
            )
        except Exception as exc:
            return self._store_failure("requesting cancellation", expense_id, exc)

        if updated is None:
            return self._not_applied(expense_id)

        log_activity(
            logger=self._logger,
            user_id=current_user.id,
            action=ActivityAction.EXPENSE_CANCELLATION_REQUEST,
            module=EXPENSES_MODULE,
            details={
                "description": (
                    f'Solicitud de anulación del egreso "{updated.category}"'
                ),
                "expenseId": expense_id,
                "reason": updated.cancellation_request_reason,
            },
            repo=self._activity_repo,
        )
        return ServiceResult(success=True, data=updated)

    # ------------------------------------------------------------------
    # Public: cancel_expense (direct cancel or approval)
    # ------------------------------------------------------------------

    def cancel_expense(
        self,
        expense_id: str,
        reason: str,
        current_user: CurrentUser,
    ) -> ServiceResult[Expense]:
        """
        Cancel an active expense.

        Serves both as a super admin's direct cancellation and as the
        approval of a pending request.  The request fields are kept so the
        requester's reason and the approver's reason can both be shown.
        When the expense had a requester, that user is notified.

        Args:
            expense_id: The expense to cancel.
            reason: The approver's justification, at least
                ``MIN_REASON_LENGTH`` characters once trimmed.
            current_user: The acting super admin.

        Returns:
            ServiceResult carrying the cancelled expense on success.
        """
        invalid = self._validate(reason, current_user)
        if invalid is not None:
            return invalid

        if not is_privileged(current_user.role):
            return ServiceResult(
                success=False,
                error="Only a super admin can cancel expenses.",
                status_code=403,
            )

        try:
            cancelled = self._repo.cancel(
                expense_id,
                reason.strip(),
                current_user.id,
                current_user.name or current_user.email,
            )
        except Exception as exc:
            return self._store_failure("cancelling", expense_id, exc)

        if cancelled is None:
            return self._not_applied(expense_id)

        if cancelled.cancellation_requested_by:
            self._notify_requester(
                requester_id=cancelled.cancellation_requested_by,
                expense=cancelled,
                notification_type=NotificationType.EXPENSE_CANCELLATION_APPROVED,
            )

        log_activity(
            logger=self._logger,
            user_id=current_user.id,
            action=ActivityAction.EXPENSE_CANCEL,
            module=EXPENSES_MODULE,
            details={
                "description": (
                    f'Egreso anulado en categoría "{cancelled.category}"'
                ),
                "expenseId": expense_id,
                "category": cancelled.category,
                "amount": cancelled.amount,
                "reason": cancelled.cancellation_reason,
                "requestedBy": cancelled.cancellation_requested_by,
            },
            repo=self._activity_repo,
        )
        return ServiceResult(success=True, data=cancelled)

    # ------------------------------------------------------------------
    # Public: reject_cancellation_request
    # ------------------------------------------------------------------

    def reject_cancellation_request(
        self,
        expense_id: str,
        current_user: CurrentUser,
    ) -> ServiceResult[Expense]:
        """
        Turn down a pending cancellation request.

        Clears the four request fields and leaves the expense active; the
        ``cancelled_*`` fields are never touched.  The requester is
        notified.  An expense without a pending request is rejected with
        409 and nothing is written.

        The activity log only records rejections when
        ``AUDIT_CANCELLATION_REJECTIONS`` is enabled.
        """
        if not current_user.id:
            return ServiceResult(
                success=False,
                error="An authenticated user is required.",
                status_code=400,
            )
        if not is_privileged(current_user.role):
            return ServiceResult(
                success=False,
                error="Only a super admin can reject cancellation requests.",
                status_code=403,
            )

        expense = self._repo.get_by_id(expense_id)
        if expense is None or not has_pending_request(expense):
            return self._not_applied(expense_id)
        requester_id = expense.cancellation_requested_by or ""

        try:
            updated = self._repo.clear_cancellation_request(expense_id, requester_id)
        except Exception as exc:
            return self._store_failure("rejecting the request for", expense_id, exc)

        if updated is None:
            return self._not_applied(expense_id)

        if requester_id:
            self._notify_requester(
                requester_id=requester_id,
                expense=updated,
                notification_type=NotificationType.EXPENSE_CANCELLATION_REJECTED,
            )

        if self._config.AUDIT_CANCELLATION_REJECTIONS:
            log_activity(
                logger=self._logger,
                user_id=current_user.id,
                action=ActivityAction.EXPENSE_CANCELLATION_REJECT,
                module=EXPENSES_MODULE,
                details={
                    "description": (
                        f'Solicitud de anulación rechazada para "{updated.category}"'
                    ),
                    "expenseId": expense_id,
                    "requestedBy": requester_id,
                    "requestReason": expense.cancellation_request_reason,
                },
                repo=self._activity_repo,
            )
        return ServiceResult(success=True, data=updated)

    # ------------------------------------------------------------------
    # Public: get_pending_cancellation_requests
    # ------------------------------------------------------------------

    def get_pending_cancellation_requests(
        self,
        current_user: CurrentUser,
    ) -> ServiceResult[list[Expense]]:
        """The super admin's review queue, most recent request first."""
        if not is_privileged(current_user.role):
            return ServiceResult(
                success=False,
                error="Only a super admin can review cancellation requests.",
                status_code=403,
            )
        try:
            pending = self._repo.get_pending_cancellation_requests()
        except Exception as exc:
            self._logger.error(
                "Error loading pending cancellation requests: %s", exc, exc_info=True
            )
            return ServiceResult(success=False, error=str(exc), status_code=500)
        return ServiceResult(success=True, data=pending)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _validate(
        self,
        reason: Optional[str],
        current_user: CurrentUser,
    ) -> Optional[ServiceResult[Expense]]:
        """Checks that run before any store call.  ``None`` means valid."""
        minimum = self._config.MIN_REASON_LENGTH
        if len((reason or "").strip()) < minimum:
            return ServiceResult(
                success=False,
                error=f"The reason must be at least {minimum} characters long.",
                status_code=400,
            )
        if not current_user.id:
            return ServiceResult(
                success=False,
                error="An authenticated user is required.",
                status_code=400,
            )
        return None

    def _notify_requester(
        self,
        requester_id: str,
        expense: Expense,
        notification_type: NotificationType,
    ) -> None:
        """Tell the requester how their request was resolved (non-blocking)."""
        label = f'"{expense.category}" ({format_cop(expense.amount)})'
        if notification_type == NotificationType.EXPENSE_CANCELLATION_APPROVED:
            title = "Anulación de egreso aprobada"
            message = f"Tu solicitud de anulación del egreso {label} fue aprobada."
            metadata = {
                "expenseId": expense.id,
                "category": expense.category,
                "amount": expense.amount,
            }
        else:
            title = "Solicitud de anulación rechazada"
            message = f"Tu solicitud de anulación del egreso {label} fue rechazada."
            metadata = {"expenseId": expense.id}

        try:
            notification = self._notifications.create(
                user_id=requester_id,
                type=notification_type,
                title=title,
                message=message,
                metadata=metadata,
            )
        except Exception as exc:
            notification = None
            self._logger.error(
                "Notification dispatch raised for expense %s: %s", expense.id, exc
            )
        if notification is None:
            self._logger.warning(
                "Expense %s resolved, but notifying user %s failed.",
                expense.id,
                requester_id,
            )

    def _not_applied(self, expense_id: str) -> ServiceResult[Expense]:
        self._logger.info(
            "Cancellation step did not apply to expense %s.", expense_id
        )
        return ServiceResult(
            success=False,
            error="The expense is not active or has no matching request.",
            status_code=409,
        )

    def _store_failure(
        self,
        action: str,
        expense_id: str,
        exc: Exception,
    ) -> ServiceResult[Expense]:
        self._logger.error(
            "Error %s expense %s: %s", action, expense_id, exc, exc_info=True
        )
        return ServiceResult(
            success=False,
            error=f"Database error: {exc}",
            status_code=500,
        )
