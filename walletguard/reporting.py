"""
Error normalization and reporting.

Failures from the authentication core are turned into ``AppError`` records
and handed to an ``ErrorReporter``. The UI layer decides how to show them;
``user_message`` gives it the stock wording for each error kind.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .types import AuthErrorKind
from .utils import MINUTE_MS, now_ms

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    WALLET_ERROR = "WALLET_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SECURITY_ERROR = "SECURITY_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ErrorSeverity(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


ERROR_MESSAGES = {
    AuthErrorKind.ACCOUNT_LOCKED: "Account is temporarily locked",
    AuthErrorKind.SIGNATURE_REJECTED: "Signature request was rejected",
    AuthErrorKind.INVALID_SIGNATURE: "Invalid signature",
    AuthErrorKind.CHALLENGE_EXPIRED: "Challenge expired, please try again",
    AuthErrorKind.SESSION_EXPIRED: "Session expired, please sign in again",
    AuthErrorKind.SESSION_CREATION_FAILED: "Failed to create session",
    AuthErrorKind.WALLET_DISCONNECTED: "Wallet not connected",
    AuthErrorKind.RATE_LIMIT_EXCEEDED: "Too many attempts, please wait and try again",
    AuthErrorKind.VALIDATION_ERROR: "Invalid request",
    AuthErrorKind.AUTHENTICATION_FAILED: "Authentication failed",
}

# (type, severity) per error kind
_CLASSIFICATION = {
    AuthErrorKind.ACCOUNT_LOCKED: (ErrorType.SECURITY_ERROR, ErrorSeverity.HIGH),
    AuthErrorKind.SIGNATURE_REJECTED: (ErrorType.WALLET_ERROR, ErrorSeverity.LOW),
    AuthErrorKind.INVALID_SIGNATURE: (ErrorType.AUTH_ERROR, ErrorSeverity.HIGH),
    AuthErrorKind.CHALLENGE_EXPIRED: (ErrorType.AUTH_ERROR, ErrorSeverity.MEDIUM),
    AuthErrorKind.SESSION_EXPIRED: (ErrorType.AUTH_ERROR, ErrorSeverity.LOW),
    AuthErrorKind.SESSION_CREATION_FAILED: (ErrorType.AUTH_ERROR, ErrorSeverity.HIGH),
    AuthErrorKind.WALLET_DISCONNECTED: (ErrorType.WALLET_ERROR, ErrorSeverity.MEDIUM),
    AuthErrorKind.RATE_LIMIT_EXCEEDED: (ErrorType.SECURITY_ERROR, ErrorSeverity.MEDIUM),
    AuthErrorKind.VALIDATION_ERROR: (ErrorType.VALIDATION_ERROR, ErrorSeverity.LOW),
    AuthErrorKind.AUTHENTICATION_FAILED: (ErrorType.UNKNOWN_ERROR, ErrorSeverity.CRITICAL),
}


def user_message(kind: AuthErrorKind, retry_after_ms: int | None = None) -> str:
    """User-facing text for an error kind.

    A locked account also states how long the lockout has left.
    """
    message = ERROR_MESSAGES.get(kind, ERROR_MESSAGES[AuthErrorKind.AUTHENTICATION_FAILED])
    if kind is AuthErrorKind.ACCOUNT_LOCKED and retry_after_ms:
        minutes = max(1, math.ceil(retry_after_ms / MINUTE_MS))
        unit = "minute" if minutes == 1 else "minutes"
        message = f"{message}. Try again in {minutes} {unit}."
    return message


@dataclass(frozen=True)
class AppError:
    """A normalized error notification."""

    kind: AuthErrorKind
    type: ErrorType
    severity: ErrorSeverity
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=now_ms)

    @classmethod
    def from_kind(
        cls,
        kind: AuthErrorKind,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        timestamp: int | None = None,
    ) -> "AppError":
        error_type, severity = _CLASSIFICATION.get(
            kind, (ErrorType.UNKNOWN_ERROR, ErrorSeverity.MEDIUM)
        )
        return cls(
            kind=kind,
            type=error_type,
            severity=severity,
            message=message or ERROR_MESSAGES.get(kind, "Unknown error occurred"),
            details=details or {},
            timestamp=now_ms() if timestamp is None else timestamp,
        )


class ErrorReporter(ABC):
    """Receives normalized errors for display or remote reporting."""

    @abstractmethod
    def report(self, error: AppError) -> None:
        pass


class LoggingErrorReporter(ErrorReporter):
    """Logs every error and keeps the most recent ones in memory."""

    _LEVELS = {
        ErrorSeverity.LOW: logging.INFO,
        ErrorSeverity.MEDIUM: logging.WARNING,
        ErrorSeverity.HIGH: logging.ERROR,
        ErrorSeverity.CRITICAL: logging.CRITICAL,
    }

    def __init__(self, max_log_size: int = 100):
        self._errors: deque[AppError] = deque(maxlen=max_log_size)

    def report(self, error: AppError) -> None:
        self._errors.appendleft(error)
        logger.log(
            self._LEVELS[error.severity],
            f"{error.type.value}/{error.kind.value}: {error.message}",
        )

    def recent(self, limit: int = 20) -> list[AppError]:
        return list(self._errors)[:limit]

    def clear(self) -> None:
        self._errors.clear()
