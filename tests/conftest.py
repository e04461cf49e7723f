# Aleya Shop Test Suite - Shared Configuration and Fixtures
#
# Every test gets a fresh standalone-mode DatabaseManager (no Supabase
# credentials) backed by a temporary SQLite file, with the schema
# initialised and the real repositories and services wired on top.

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Callable, Generator

import pytest

from aleya.config import AppConfig
from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger
from aleya.models.expense import Expense, ExpenseInput
from aleya.models.user import User
from aleya.repositories.expense_repository import ExpenseRepository
from aleya.schema import initialize_schema
from aleya.services import ServiceContainer, create_services


# =============================================================================
# INFRASTRUCTURE
# =============================================================================

@pytest.fixture(scope="session")
def logger(tmp_path_factory: pytest.TempPathFactory) -> StructuredLogger:
    log_file = tmp_path_factory.mktemp("logs") / "aleya-tests.log"
    return StructuredLogger(name="aleya.tests", log_file=str(log_file))


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        _env_file=None,
        SUPABASE_URL="",
        SQLITE_PATH=str(tmp_path / "aleya_test.db"),
        LOG_FILE=str(tmp_path / "aleya.log"),
    )


@pytest.fixture
def db(config: AppConfig, logger: StructuredLogger) -> Generator[DatabaseManager, None, None]:
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=Path(config.SQLITE_PATH),
        logger=logger,
    )
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def services(db: DatabaseManager, config: AppConfig, logger: StructuredLogger) -> ServiceContainer:
    return create_services(db=db, config=config, logger=logger)


@pytest.fixture
def workflow(services: ServiceContainer):
    return services["expense_cancellation_workflow"]


@pytest.fixture
def expense_repo(db: DatabaseManager, logger: StructuredLogger) -> ExpenseRepository:
    return ExpenseRepository(db=db, logger=logger)


# =============================================================================
# ACTORS
# =============================================================================

@pytest.fixture
def clerk() -> User:
    """U1: a shop clerk who can only request cancellations."""
    return User(id="user-clerk", email="vendedora@aleyashop.com", name="Laura Gómez", role="vendedor")


@pytest.fixture
def super_admin() -> User:
    """U2: the owner, allowed to cancel, approve and reject."""
    return User(id="user-owner", email="andres@aleyashop.com", name="Andrés", role="superadmin")


# =============================================================================
# DATA HELPERS
# =============================================================================

@pytest.fixture
def make_expense(expense_repo: ExpenseRepository) -> Callable[..., Expense]:
    """Insert an active expense straight through the repository."""

    def _make(**overrides: object) -> Expense:
        values: dict[str, object] = {
            "category": "Arriendo",
            "amount": 500000,
            "date": dt.date(2025, 1, 5),
            "payment_method": "transfer",
        }
        values.update(overrides)
        return expense_repo.create(ExpenseInput(**values))

    return _make


@pytest.fixture
def activity_actions(db: DatabaseManager) -> Callable[[], list[str]]:
    def _actions() -> list[str]:
        rows = db.sqlite.execute("SELECT action FROM activity_logs ORDER BY id").fetchall()
        return [row["action"] for row in rows]

    return _actions
