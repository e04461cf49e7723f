"""
Online-mode repository tests.

Runs the repositories against a mocked Supabase client to check the
store-mode rules:
- Conditional writes filter on id and status = 'active'
- A write that matches nothing returns None
- Online writes never fall back to SQLite; failures raise StoreError
- Successful Supabase reads and writes are copied into the SQLite cache
- Reads fall back to the SQLite cache when Supabase is unreachable
"""

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from aleya.repositories.base_repository import StoreError
from aleya.repositories.expense_repository import ExpenseRepository


def _row(**overrides):
    row = {
        "id": "e-1",
        "store_id": None,
        "category": "Arriendo",
        "amount": 500000,
        "date": "2025-01-05",
        "payment_method": "transfer",
        "notes": None,
        "status": "active",
        "created_at": "2025-01-05T10:00:00+00:00",
        "updated_at": "2025-01-05T10:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def client():
    """A Supabase client whose query builders chain back to themselves."""
    client = MagicMock()
    builder = client.table.return_value
    for method in ("select", "update", "insert", "eq", "gte", "lte", "order", "limit", "or_", "is_"):
        getattr(builder, method).return_value = builder
    builder.not_ = builder
    builder.execute.return_value = SimpleNamespace(data=[])
    return client


@pytest.fixture
def online_repo(db, logger, client):
    online_db = SimpleNamespace(
        is_online=True,
        supabase=client,
        sqlite=db.sqlite,
        write_lock=threading.RLock(),
    )
    return ExpenseRepository(db=online_db, logger=logger)


def _builder(client):
    return client.table.return_value


class TestOnlineConditionalWrites:

    def test_cancel_filters_on_active_status(self, online_repo, client):
        online_repo.cancel("e-1", "Registrado dos veces", "admin-1", "Andrés")
        builder = _builder(client)
        assert builder.eq.call_args_list == [call("id", "e-1"), call("status", "active")]
        values = builder.update.call_args.args[0]
        assert values["status"] == "cancelled"
        assert values["cancelled_by"] == "admin-1"

    def test_no_matching_row_returns_none(self, online_repo, client):
        assert online_repo.cancel("e-1", "Registrado dos veces", "admin-1", "Andrés") is None

    def test_clear_request_also_filters_on_requester(self, online_repo, client):
        online_repo.clear_cancellation_request("e-1", "user-clerk")
        assert _builder(client).eq.call_args_list == [
            call("id", "e-1"),
            call("status", "active"),
            call("cancellation_requested_by", "user-clerk"),
        ]

    def test_matching_row_is_cached_locally(self, online_repo, client, db):
        cancelled = _row(
            status="cancelled",
            cancelled_at="2025-01-06T09:00:00+00:00",
            cancelled_by="admin-1",
            cancellation_reason="Registrado dos veces",
        )
        _builder(client).execute.return_value = SimpleNamespace(data=[cancelled])

        result = online_repo.cancel("e-1", "Registrado dos veces", "admin-1", "Andrés")
        assert result.status == "cancelled"
        cached = db.sqlite.execute("SELECT status FROM expenses WHERE id = 'e-1'").fetchone()
        assert cached["status"] == "cancelled"

    def test_failure_raises_and_skips_sqlite(self, online_repo, client, db):
        db.sqlite.execute(
            "INSERT INTO expenses (id, category, amount, date, payment_method, status, "
            "created_at, updated_at) VALUES ('e-1', 'Arriendo', 500000, '2025-01-05', "
            "'transfer', 'active', '2025-01-05', '2025-01-05')"
        )
        db.sqlite.commit()
        _builder(client).execute.side_effect = ConnectionError("network unreachable")

        with pytest.raises(StoreError):
            online_repo.cancel("e-1", "Registrado dos veces", "admin-1", "Andrés")
        cached = db.sqlite.execute("SELECT status FROM expenses WHERE id = 'e-1'").fetchone()
        assert cached["status"] == "active"


class TestOnlineReads:

    def test_pending_query_shape(self, online_repo, client):
        requested = _row(
            cancellation_requested_at="2025-01-06T09:00:00+00:00",
            cancellation_requested_by="user-clerk",
            cancellation_request_reason="Error de digitación",
        )
        _builder(client).execute.return_value = SimpleNamespace(data=[requested])

        pending = online_repo.get_pending_cancellation_requests()
        builder = _builder(client)
        assert [e.id for e in pending] == ["e-1"]
        builder.eq.assert_called_once_with("status", "active")
        builder.is_.assert_called_once_with("cancellation_requested_at", "null")
        builder.order.assert_called_once_with("cancellation_requested_at", desc=True)

    def test_read_falls_back_to_cache(self, online_repo, client, db):
        db.sqlite.execute(
            "INSERT INTO expenses (id, category, amount, date, payment_method, status, "
            "created_at, updated_at) VALUES ('e-1', 'Arriendo', 500000, '2025-01-05', "
            "'transfer', 'active', '2025-01-05', '2025-01-05')"
        )
        db.sqlite.commit()
        _builder(client).execute.side_effect = ConnectionError("network unreachable")

        expense = online_repo.get_by_id("e-1")
        assert expense is not None
        assert expense.category == "Arriendo"
