"""
Business Logic Services Package.

Services depend on the Repository layer for data access and receive the
acting user explicitly.

The ``create_services()`` factory wires every repository and service
together, returning a typed dict that the presentation layer can consume
without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from aleya.config import AppConfig
from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger, get_logger
from aleya.repositories.activity_log_repository import ActivityLogRepository
from aleya.repositories.expense_repository import ExpenseRepository
from aleya.repositories.notification_repository import NotificationRepository
from aleya.services.expense_cancellation import ExpenseCancellationWorkflow
from aleya.services.expense_service import ExpenseService
from aleya.services.notification_service import NotificationService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    expense_service: ExpenseService
    expense_cancellation_workflow: ExpenseCancellationWorkflow
    notification_service: NotificationService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    logger: Optional[StructuredLogger] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.

    Args:
        db: Initialised DatabaseManager with the schema in place.
        config: Application configuration.
        logger: Shared logger; defaults to ``get_logger("services")``.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = logger or get_logger("services")

    # 1. Repositories
    expense_repo = ExpenseRepository(db=db, logger=logger)
    notification_repo = NotificationRepository(db=db, logger=logger)
    activity_repo = ActivityLogRepository(db=db, logger=logger)

    # 2. Leaf services
    notification_service = NotificationService(
        repo=notification_repo,
        config=config,
        logger=logger,
    )
    expense_service = ExpenseService(
        expense_repo=expense_repo,
        activity_repo=activity_repo,
        logger=logger,
    )

    # 3. Workflow
    expense_cancellation_workflow = ExpenseCancellationWorkflow(
        expense_repo=expense_repo,
        notification_service=notification_service,
        activity_repo=activity_repo,
        config=config,
        logger=logger,
    )

    logger.info("Service container created.")
    return {
        "expense_service": expense_service,
        "expense_cancellation_workflow": expense_cancellation_workflow,
        "notification_service": notification_service,
    }
