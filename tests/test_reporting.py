import logging

import pytest

from walletguard.reporting import (
    AppError,
    ErrorSeverity,
    ErrorType,
    LoggingErrorReporter,
    user_message,
)
from walletguard.types import AuthErrorKind


class TestUserMessage:
    """Test user-facing error text."""

    def test_every_kind_has_a_message(self):
        for kind in AuthErrorKind:
            assert user_message(kind)

    def test_locked_message_includes_remaining_minutes(self):
        message = user_message(AuthErrorKind.ACCOUNT_LOCKED, 14 * 60_000 + 1)

        assert message == "Account is temporarily locked. Try again in 15 minutes."

    def test_locked_message_singular_minute(self):
        assert user_message(AuthErrorKind.ACCOUNT_LOCKED, 5_000).endswith(
            "Try again in 1 minute."
        )

    def test_remaining_time_only_for_lockout(self):
        assert user_message(AuthErrorKind.INVALID_SIGNATURE, 60_000) == "Invalid signature"


class TestAppError:
    """Test error classification."""

    @pytest.mark.parametrize(
        "kind, error_type, severity",
        [
            (AuthErrorKind.ACCOUNT_LOCKED, ErrorType.SECURITY_ERROR, ErrorSeverity.HIGH),
            (AuthErrorKind.SIGNATURE_REJECTED, ErrorType.WALLET_ERROR, ErrorSeverity.LOW),
            (AuthErrorKind.VALIDATION_ERROR, ErrorType.VALIDATION_ERROR, ErrorSeverity.LOW),
        ],
    )
    def test_from_kind(self, kind, error_type, severity):
        error = AppError.from_kind(kind, timestamp=123)

        assert error.type is error_type
        assert error.severity is severity
        assert error.message == user_message(kind)
        assert error.timestamp == 123

    def test_custom_message_and_details(self):
        error = AppError.from_kind(
            AuthErrorKind.INVALID_SIGNATURE, "Bad signature", {"address": "0xab"}
        )

        assert error.message == "Bad signature"
        assert error.details == {"address": "0xab"}


class TestLoggingErrorReporter:
    """Test the bounded logging reporter."""

    def test_recent_is_newest_first_and_bounded(self):
        reporter = LoggingErrorReporter(max_log_size=3)
        errors = [
            AppError.from_kind(AuthErrorKind.INVALID_SIGNATURE, f"error {i}") for i in range(5)
        ]
        for error in errors:
            reporter.report(error)

        assert reporter.recent() == [errors[4], errors[3], errors[2]]
        assert reporter.recent(limit=1) == [errors[4]]

        reporter.clear()
        assert reporter.recent() == []

    def test_logs_at_severity_level(self, caplog):
        reporter = LoggingErrorReporter()

        with caplog.at_level(logging.INFO, logger="walletguard.reporting"):
            reporter.report(AppError.from_kind(AuthErrorKind.ACCOUNT_LOCKED))
            reporter.report(AppError.from_kind(AuthErrorKind.SESSION_EXPIRED))

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.ERROR, logging.INFO]
        assert "SECURITY_ERROR/ACCOUNT_LOCKED" in caplog.records[0].getMessage()
