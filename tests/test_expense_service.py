"""
Expense service tests.

Verifies:
- Creation accepts validated input and camelCase form payloads
- Invalid amounts, categories and payment methods return 400
- Edits touch only active expenses and are written to the activity log
- Listing order, search and payment-method filters
- Date-range listing is inclusive
"""

import datetime as dt

import pytest

from aleya.models.enums import ExpenseStatus, PaymentMethod
from aleya.models.expense import DEFAULT_EXPENSE_CATEGORIES, OTHER_CATEGORY, ExpenseInput
from aleya.repositories.base_repository import StoreError
from aleya.repositories.expense_repository import ExpenseRepository


@pytest.fixture
def expense_service(services):
    return services["expense_service"]


# =============================================================================
# CREATE
# =============================================================================


class TestCreateExpense:

    def test_create_from_model(self, expense_service, clerk, activity_actions):
        result = expense_service.create_expense(
            ExpenseInput(
                category="Flete",
                amount=42000,
                date=dt.date(2025, 2, 1),
                payment_method=PaymentMethod.CASH,
                notes="  Envío a Medellín  ",
            ),
            current_user=clerk,
        )
        assert result.success
        assert result.status_code == 201
        expense = result.data
        assert expense.status == ExpenseStatus.ACTIVE
        assert expense.notes == "Envío a Medellín"
        assert expense.created_at is not None
        assert not expense.has_pending_request
        assert activity_actions() == ["expense_create"]

    def test_create_from_camel_case_payload(self, expense_service):
        result = expense_service.create_expense({
            "category": "Arriendo",
            "amount": 500000,
            "date": "2025-01-05",
            "paymentMethod": "petty-cash",
            "storeId": "store-1",
        })
        assert result.success
        assert result.data.payment_method == PaymentMethod.PETTY_CASH
        assert result.data.store_id == "store-1"

    def test_without_user_is_not_audited(self, expense_service, activity_actions):
        expense_service.create_expense({
            "category": "Flete",
            "amount": 1000,
            "date": "2025-01-05",
            "payment_method": "cash",
        })
        assert activity_actions() == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": 0},
            {"amount": -100},
            {"amount": 12.5},
            {"category": "   "},
            {"payment_method": "bitcoin"},
            {"date": "not-a-date"},
        ],
    )
    def test_invalid_input_rejected(self, expense_service, overrides):
        payload = {
            "category": "Flete",
            "amount": 1000,
            "date": "2025-01-05",
            "payment_method": "cash",
        }
        payload.update(overrides)
        result = expense_service.create_expense(payload)
        assert not result.success
        assert result.status_code == 400

    def test_store_failure_returns_500(self, expense_service, monkeypatch):
        def _boom(self, data):
            raise StoreError("create (expenses) failed: disk I/O error")

        monkeypatch.setattr(ExpenseRepository, "create", _boom)
        result = expense_service.create_expense({
            "category": "Flete",
            "amount": 1000,
            "date": "2025-01-05",
            "payment_method": "cash",
        })
        assert result.status_code == 500

    def test_default_categories_end_with_other(self):
        assert DEFAULT_EXPENSE_CATEGORIES[-1] == OTHER_CATEGORY
        assert len(set(DEFAULT_EXPENSE_CATEGORIES)) == len(DEFAULT_EXPENSE_CATEGORIES)


# =============================================================================
# UPDATE
# =============================================================================


class TestUpdateExpense:

    def test_update_changes_only_given_fields(
        self, expense_service, make_expense, clerk, activity_actions
    ):
        expense = make_expense(notes="original")
        result = expense_service.update_expense(
            expense.id, {"amount": 550000, "notes": "ajustado"}, current_user=clerk
        )
        assert result.success
        assert result.data.amount == 550000
        assert result.data.notes == "ajustado"
        assert result.data.category == expense.category
        assert result.data.date == expense.date
        assert activity_actions() == ["expense_update"]

    def test_update_date_from_string(self, expense_service, make_expense):
        expense = make_expense()
        result = expense_service.update_expense(expense.id, {"date": "2025-03-31"})
        assert result.data.date == dt.date(2025, 3, 31)

    def test_empty_update_rejected(self, expense_service, make_expense):
        expense = make_expense()
        result = expense_service.update_expense(expense.id, {})
        assert result.status_code == 400

    def test_invalid_amount_rejected(self, expense_service, make_expense):
        expense = make_expense()
        result = expense_service.update_expense(expense.id, {"amount": 0})
        assert result.status_code == 400

    def test_missing_expense_conflicts(self, expense_service):
        result = expense_service.update_expense("does-not-exist", {"notes": "x"})
        assert result.status_code == 409

    def test_cancelled_expense_is_immutable(
        self, expense_service, workflow, make_expense, super_admin, expense_repo
    ):
        expense = make_expense(notes="original")
        workflow.cancel_expense(expense.id, "Registrado dos veces", super_admin)
        result = expense_service.update_expense(expense.id, {"notes": "cambio"})
        assert result.status_code == 409
        assert expense_repo.get_by_id(expense.id).notes == "original"

    def test_repository_refuses_workflow_columns(self, expense_repo, make_expense):
        expense = make_expense()
        with pytest.raises(ValueError):
            expense_repo.update_fields(expense.id, {"status": "cancelled"})


# =============================================================================
# READ
# =============================================================================


class TestListExpenses:

    def test_get_expense(self, expense_service, make_expense):
        expense = make_expense()
        assert expense_service.get_expense(expense.id).data.id == expense.id

    def test_get_missing_expense(self, expense_service):
        assert expense_service.get_expense("does-not-exist").status_code == 404

    def test_newest_date_first(self, expense_service, make_expense):
        older = make_expense(date=dt.date(2025, 1, 1))
        newer = make_expense(date=dt.date(2025, 1, 20))
        result = expense_service.get_all_expenses()
        assert [e.id for e in result.data] == [newer.id, older.id]

    def test_cancelled_expenses_still_listed(
        self, expense_service, workflow, make_expense, super_admin
    ):
        expense = make_expense()
        workflow.cancel_expense(expense.id, "Registrado dos veces", super_admin)
        listed = expense_service.get_all_expenses().data
        assert [e.status for e in listed] == [ExpenseStatus.CANCELLED]

    def test_search_matches_category_and_notes(self, expense_service, make_expense):
        rent = make_expense(category="Arriendo")
        freight = make_expense(category="Flete", notes="Envío arriendo bodega")
        make_expense(category="Publicidad")
        result = expense_service.get_all_expenses(search="arriendo")
        assert {e.id for e in result.data} == {rent.id, freight.id}

    def test_filter_by_payment_method(self, expense_service, make_expense):
        cash = make_expense(payment_method="cash")
        make_expense(payment_method="transfer")
        result = expense_service.get_all_expenses(payment_method="cash")
        assert [e.id for e in result.data] == [cash.id]

    def test_unknown_payment_method_rejected(self, expense_service):
        assert expense_service.get_all_expenses(payment_method="cheque").status_code == 400

    def test_date_range_is_inclusive(self, expense_service, make_expense):
        make_expense(date=dt.date(2024, 12, 31))
        first = make_expense(date=dt.date(2025, 1, 1))
        last = make_expense(date=dt.date(2025, 1, 31))
        make_expense(date=dt.date(2025, 2, 1))
        result = expense_service.get_expenses_by_date_range(
            dt.date(2025, 1, 1), dt.date(2025, 1, 31)
        )
        assert [e.id for e in result.data] == [last.id, first.id]

    def test_inverted_date_range_rejected(self, expense_service):
        result = expense_service.get_expenses_by_date_range(
            dt.date(2025, 2, 1), dt.date(2025, 1, 1)
        )
        assert result.status_code == 400
