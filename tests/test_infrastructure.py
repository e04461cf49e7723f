"""
Infrastructure tests.

Verifies:
- Configuration defaults and environment overrides
- JSON log formatting and the activity-log helper
- Role checks, peso formatting and key/search helpers
- Application bootstrap in standalone mode
"""

import io
import json
import logging

import pytest

from aleya.auth import is_privileged
from aleya.config import AppConfig
from aleya.logger import JSONFormatter, StructuredLogger
from aleya.utils.audit import log_activity
from aleya.utils.formatting import format_cop
from aleya.utils.string_helpers import (
    normalize_keys,
    sanitize_postgrest_value,
    to_camel_case,
    to_snake_case,
)


# =============================================================================
# CONFIGURATION
# =============================================================================


class TestAppConfig:

    def test_defaults(self):
        config = AppConfig(_env_file=None)
        assert config.MIN_REASON_LENGTH == 10
        assert config.AUDIT_CANCELLATION_REJECTIONS is False
        assert config.NOTIFICATIONS_UNREAD_LIMIT == 50
        assert config.NOTIFICATIONS_PAGE_SIZE == 30

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("AUDIT_CANCELLATION_REJECTIONS", "true")
        monkeypatch.setenv("NOTIFICATIONS_PAGE_SIZE", "10")
        config = AppConfig(_env_file=None)
        assert config.AUDIT_CANCELLATION_REJECTIONS is True
        assert config.NOTIFICATIONS_PAGE_SIZE == 10

    def test_reason_length_is_not_configurable(self, monkeypatch):
        monkeypatch.setenv("MIN_REASON_LENGTH", "3")
        assert AppConfig(_env_file=None).MIN_REASON_LENGTH == 10

    def test_service_role_key_preferred(self):
        config = AppConfig(
            _env_file=None,
            SUPABASE_ANON_KEY="anon",
            SUPABASE_SERVICE_ROLE_KEY="service",
        )
        assert config.supabase_key() == "service"
        assert AppConfig(_env_file=None, SUPABASE_ANON_KEY="anon").supabase_key() == "anon"


# =============================================================================
# LOGGING
# =============================================================================


class TestLogging:

    def test_json_formatter_includes_extra(self):
        record = logging.LogRecord(
            name="aleya.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Expense %s cancelled",
            args=("e-1",),
            exc_info=None,
        )
        record.expense_id = "e-1"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger_name"] == "aleya.test"
        assert entry["message"] == "Expense e-1 cancelled"
        assert entry["extra"] == {"expense_id": "e-1"}

    def test_structured_logger_writes_json_lines(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(
            name="aleya.test.stream",
            stream=stream,
            log_file=str(tmp_path / "stream.log"),
        )
        log.warning("Notification for %s failed", "user-1")
        entry = json.loads(stream.getvalue().splitlines()[-1])
        assert entry["level"] == "WARNING"
        assert entry["message"] == "Notification for user-1 failed"

    def test_log_activity_without_repo_only_logs(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(
            name="aleya.test.audit",
            stream=stream,
            log_file=str(tmp_path / "audit.log"),
        )
        log_activity(
            logger=log,
            user_id="user-owner",
            action="expense_cancel",
            module="egresos",
            details={"expenseId": "e-1", "amount": 500000},
        )
        message = json.loads(stream.getvalue().splitlines()[-1])["message"]
        assert message.startswith("AUDIT: ")
        event = json.loads(message[len("AUDIT: "):])
        assert event["action"] == "expense_cancel"
        assert event["details"] == {"expenseId": "e-1", "amount": 500000}


# =============================================================================
# HELPERS
# =============================================================================


class TestIsPrivileged:

    @pytest.mark.parametrize("role", ["superadmin", "Super Admin", "Super Administrador"])
    def test_super_admin_labels(self, role):
        assert is_privileged(role)

    @pytest.mark.parametrize("role", ["admin", "SUPERADMIN", "super admin", "vendedor", "", None])
    def test_other_roles(self, role):
        assert not is_privileged(role)


class TestFormatting:

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (500000, "$ 500.000"),
            (35000, "$ 35.000"),
            (999, "$ 999"),
            (1234567, "$ 1.234.567"),
            (-1500, "-$ 1.500"),
        ],
    )
    def test_format_cop(self, amount, expected):
        assert format_cop(amount) == expected


class TestStringHelpers:

    def test_case_conversion(self):
        assert to_snake_case("cancellationRequestedBy") == "cancellation_requested_by"
        assert to_camel_case("expense_id") == "expenseId"

    def test_normalize_nested_keys(self):
        assert normalize_keys({"paymentMethod": "cash", "meta": [{"storeId": "s"}]}) == {
            "payment_method": "cash",
            "meta": [{"store_id": "s"}],
        }

    def test_sanitize_keeps_accents_and_slashes(self):
        assert sanitize_postgrest_value("Sueldos/Nómina") == "Sueldos/Nómina"
        assert sanitize_postgrest_value("a%,b).c_") == "abc"


# =============================================================================
# BOOTSTRAP
# =============================================================================


class TestBootstrap:

    def test_standalone_bootstrap(self, tmp_path):
        from main import bootstrap

        config = AppConfig(
            _env_file=None,
            SUPABASE_URL="",
            SQLITE_PATH=str(tmp_path / "boot.db"),
            LOG_FILE=str(tmp_path / "boot.log"),
        )
        db, services = bootstrap(config)
        try:
            assert not db.is_online
            assert set(services) == {
                "expense_service",
                "expense_cancellation_workflow",
                "notification_service",
            }
            assert services["expense_service"].get_all_expenses().data == []
        finally:
            db.close()
