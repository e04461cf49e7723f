"""
Expense Repository.

Data access for expense records (egresos) via Supabase (system of record
when configured) and SQLite (local cache, or system of record in
standalone mode).

Every state-changing write on an expense is a *conditional update*
scoped to ``status = 'active'``.  The number of rows it touches is the
only concurrency control: when two callers race, the loser's update
matches nothing and the repository returns ``None``.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger
from aleya.models.enums import ExpenseStatus, PaymentMethod
from aleya.models.expense import Expense, ExpenseInput
from aleya.repositories.base_repository import (
    BaseRepository,
    new_id,
    utc_now_iso,
)
from aleya.utils.string_helpers import sanitize_postgrest_value

Row = dict[str, object]


class ExpenseRepository(BaseRepository):
    """Data access layer for Expense entities.

    **No ``delete()`` method.**  Expenses are cancelled, never removed:
    the cancelled row keeps who asked, who approved and why.
    """

    TABLE = "expenses"

    # Hardcoded column allowlist for the SQLite cache.
    _COLUMNS: tuple[str, ...] = (
        "id",
        "store_id",
        "category",
        "amount",
        "date",
        "payment_method",
        "notes",
        "status",
        "created_at",
        "updated_at",
        "cancellation_requested_at",
        "cancellation_requested_by",
        "cancellation_requested_by_name",
        "cancellation_request_reason",
        "cancelled_at",
        "cancelled_by",
        "cancelled_by_name",
        "cancellation_reason",
    )

    # Columns an edit may touch.  Status and cancellation columns are
    # owned by the cancellation workflow.
    _EDITABLE_COLUMNS: frozenset[str] = frozenset({
        "store_id", "category", "amount", "date", "payment_method", "notes",
    })

    _REQUEST_COLUMNS: tuple[str, ...] = (
        "cancellation_requested_at",
        "cancellation_requested_by",
        "cancellation_requested_by_name",
        "cancellation_request_reason",
    )

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(db, logger)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, expense_id: str) -> Optional[Expense]:
        """Fetch an expense by ID. Tries Supabase first, falls back to SQLite."""

        def _supabase() -> Optional[list[Row]]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", expense_id)
                .limit(1)
                .execute()
            )
            return response.data or None

        def _sqlite() -> Optional[list[Row]]:
            row = self.sqlite.execute(
                f"SELECT * FROM {self.TABLE} WHERE id = ?", (expense_id,)
            ).fetchone()
            return [dict(row)] if row else None

        rows = self._execute_with_fallback(
            _supabase,
            _sqlite,
            list,
            operation_name="get_by_id (expenses)",
            on_supabase_success=self._cache,
        )
        return self._parse(rows[0]) if rows else None

    def get_all(
        self,
        search: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> list[Expense]:
        """All expenses, newest date first, then newest creation first.

        ``search`` matches category or notes case-insensitively;
        ``payment_method`` restricts to one method.
        """
        safe_search = sanitize_postgrest_value(search).strip() if search else ""

        def _supabase() -> list[Row]:
            query = self.supabase.table(self.TABLE).select("*")
            if safe_search:
                query = query.or_(
                    f"category.ilike.%{safe_search}%,notes.ilike.%{safe_search}%"
                )
            if payment_method:
                query = query.eq("payment_method", str(payment_method))
            response = (
                query.order("date", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
            return response.data or []

        def _sqlite() -> list[Row]:
            where_clauses: list[str] = []
            params: list[object] = []
            if safe_search:
                where_clauses.append("(category LIKE ? OR COALESCE(notes, '') LIKE ?)")
                pattern = f"%{safe_search}%"
                params.extend([pattern, pattern])
            if payment_method:
                where_clauses.append("payment_method = ?")
                params.append(str(payment_method))
            where_sql = (" WHERE " + " AND ".join(where_clauses)) if where_clauses else ""
            rows = self.sqlite.execute(
                f"SELECT * FROM {self.TABLE}{where_sql} "
                "ORDER BY date DESC, created_at DESC",
                params,
            ).fetchall()
            return [dict(row) for row in rows]

        rows = self._execute_with_fallback(
            _supabase,
            _sqlite,
            list,
            operation_name="get_all (expenses)",
            on_supabase_success=self._cache,
        )
        return [self._parse(row) for row in rows]

    def get_by_date_range(self, start_date: date, end_date: date) -> list[Expense]:
        """Expenses attributed to ``start_date..end_date`` inclusive."""
        start, end = start_date.isoformat(), end_date.isoformat()

        def _supabase() -> list[Row]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .gte("date", start)
                .lte("date", end)
                .order("date", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
            return response.data or []

        def _sqlite() -> list[Row]:
            rows = self.sqlite.execute(
                f"SELECT * FROM {self.TABLE} WHERE date >= ? AND date <= ? "
                "ORDER BY date DESC, created_at DESC",
                (start, end),
            ).fetchall()
            return [dict(row) for row in rows]

        rows = self._execute_with_fallback(
            _supabase,
            _sqlite,
            list,
            operation_name="get_by_date_range (expenses)",
            on_supabase_success=self._cache,
        )
        return [self._parse(row) for row in rows]

    def get_pending_cancellation_requests(self) -> list[Expense]:
        """Active expenses carrying a cancellation request, newest request first."""

        def _supabase() -> list[Row]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("status", str(ExpenseStatus.ACTIVE))
                .not_.is_("cancellation_requested_at", "null")
                .order("cancellation_requested_at", desc=True)
                .execute()
            )
            return response.data or []

        def _sqlite() -> list[Row]:
            rows = self.sqlite.execute(
                f"""
                SELECT * FROM {self.TABLE}
                WHERE status = ? AND cancellation_requested_at IS NOT NULL
                ORDER BY cancellation_requested_at DESC
                """,
                (str(ExpenseStatus.ACTIVE),),
            ).fetchall()
            return [dict(row) for row in rows]

        rows = self._execute_with_fallback(
            _supabase,
            _sqlite,
            list,
            operation_name="get_pending_cancellation_requests (expenses)",
            on_supabase_success=self._cache,
        )
        return [self._parse(row) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: ExpenseInput) -> Expense:
        """Insert a new active expense.

        Raises:
            StoreError: If the system of record rejected the insert.
        """
        values: Row = {
            "store_id": data.store_id,
            "category": data.category,
            "amount": data.amount,
            "date": data.date.isoformat(),
            "payment_method": str(data.payment_method),
            "notes": data.notes or None,
            "status": str(ExpenseStatus.ACTIVE),
        }

        def _supabase() -> Row:
            response = self.supabase.table(self.TABLE).insert(values).execute()
            return response.data[0]

        def _sqlite() -> Row:
            now = utc_now_iso()
            local: Row = {**values, "id": new_id(), "created_at": now, "updated_at": now}
            columns = ", ".join(local)
            placeholders = ", ".join("?" for _ in local)
            row = self.sqlite.execute(
                f"INSERT INTO {self.TABLE} ({columns}) VALUES ({placeholders}) RETURNING *",
                list(local.values()),
            ).fetchone()
            return dict(row)

        row = self._execute_write(_supabase, _sqlite, operation_name="create (expenses)")
        if self._db.is_online:
            self._cache([row])
        created = self._parse(row)
        self._logger.info("Expense created: %s", created.id)
        return created

    def update_fields(self, expense_id: str, fields: Row) -> Optional[Expense]:
        """Edit the editable columns of an active expense.

        Returns the updated expense, or ``None`` when no active expense
        with that ID exists.
        """
        unknown = set(fields) - self._EDITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not editable: {sorted(unknown)}")
        return self._conditional_update(
            expense_id, dict(fields), operation_name="update_fields (expenses)"
        )

    def request_cancellation(
        self,
        expense_id: str,
        reason: str,
        requester_id: str,
        requester_name: str,
    ) -> Optional[Expense]:
        """Record a cancellation request on an active expense.

        ``status`` is left untouched.  Returns ``None`` when no active
        expense matched.
        """
        return self._conditional_update(
            expense_id,
            {
                "cancellation_requested_at": utc_now_iso(),
                "cancellation_requested_by": requester_id,
                "cancellation_requested_by_name": requester_name,
                "cancellation_request_reason": reason,
            },
            operation_name="request_cancellation (expenses)",
        )

    def cancel(
        self,
        expense_id: str,
        reason: str,
        actor_id: str,
        actor_name: Optional[str],
    ) -> Optional[Expense]:
        """Cancel an active expense.

        The request columns are kept so the requester's reason stays next
        to the approver's.  Returns ``None`` when no active expense matched.
        """
        return self._conditional_update(
            expense_id,
            {
                "status": str(ExpenseStatus.CANCELLED),
                "cancelled_at": utc_now_iso(),
                "cancelled_by": actor_id,
                "cancelled_by_name": actor_name,
                "cancellation_reason": reason,
            },
            operation_name="cancel (expenses)",
        )

    def clear_cancellation_request(
        self,
        expense_id: str,
        requested_by: str,
    ) -> Optional[Expense]:
        """Drop the pending request made by *requested_by*.

        Only matches an active expense whose request still belongs to
        *requested_by*, so the caller knows exactly whose request it
        cleared.  Returns ``None`` otherwise.
        """
        return self._conditional_update(
            expense_id,
            {column: None for column in self._REQUEST_COLUMNS},
            operation_name="clear_cancellation_request (expenses)",
            requested_by=requested_by,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _conditional_update(
        self,
        expense_id: str,
        values: Row,
        *,
        operation_name: str,
        requested_by: Optional[str] = None,
    ) -> Optional[Expense]:
        """``UPDATE ... WHERE id = ? AND status = 'active'`` returning the row.

        Raises:
            StoreError: If the system of record could not be reached.
        """
        values = {**values, "updated_at": utc_now_iso()}
        active = str(ExpenseStatus.ACTIVE)

        def _supabase() -> list[Row]:
            query = (
                self.supabase.table(self.TABLE)
                .update(values)
                .eq("id", expense_id)
                .eq("status", active)
            )
            if requested_by is not None:
                query = query.eq("cancellation_requested_by", requested_by)
            return query.execute().data or []

        def _sqlite() -> list[Row]:
            sets = ", ".join(f"{column} = ?" for column in values)
            sql = f"UPDATE {self.TABLE} SET {sets} WHERE id = ? AND status = ?"
            params: list[object] = [
                self._to_sqlite_value(v) for v in values.values()
            ] + [expense_id, active]
            if requested_by is not None:
                sql += " AND cancellation_requested_by = ?"
                params.append(requested_by)
            rows = self.sqlite.execute(sql + " RETURNING *", params).fetchall()
            return [dict(row) for row in rows]

        rows = self._execute_write(_supabase, _sqlite, operation_name=operation_name)
        if not rows:
            self._logger.info(
                "%s matched no active expense with id %s.", operation_name, expense_id
            )
            return None
        if self._db.is_online:
            self._cache(rows)
        return self._parse(rows[0])

    def _cache(self, rows: list[Row]) -> None:
        self._cache_rows(rows, self._COLUMNS)

    @staticmethod
    def _to_sqlite_value(value: object) -> object:
        if isinstance(value, date):
            return value.isoformat()
        return value

    @staticmethod
    def _parse(row: Row) -> Expense:
        return Expense.model_validate(row)
