"""Core data types for wallet authentication and security policy.

All timestamps are integer milliseconds since the Unix epoch.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class AuthErrorKind(Enum):
    """Failure kinds returned by public operations."""

    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    SIGNATURE_REJECTED = "SIGNATURE_REJECTED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SESSION_CREATION_FAILED = "SESSION_CREATION_FAILED"
    WALLET_DISCONNECTED = "WALLET_DISCONNECTED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"


class SecurityEventType(Enum):
    """Types of security events kept in the event log."""

    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    TRANSACTION_ATTEMPT = "TRANSACTION_ATTEMPT"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SESSION_EXPIRED = "SESSION_EXPIRED"

    @property
    def is_activity(self) -> bool:
        """Whether the event reflects user activity rather than a policy outcome."""
        return self in _ACTIVITY_EVENTS


_ACTIVITY_EVENTS = frozenset(
    {
        SecurityEventType.LOGIN_SUCCESS,
        SecurityEventType.LOGIN_FAILURE,
        SecurityEventType.TRANSACTION_ATTEMPT,
    }
)


class WalletEvent(str, Enum):
    """Names of notifications emitted to registered listeners."""

    AUTHENTICATED = "authenticated"
    LOGGED_OUT = "logged_out"
    WALLET_CONNECTED = "wallet_connected"
    SECURITY_EVENT = "security_event"
    SECURITY_ALERT = "security_alert"
    ERROR = "error"


@dataclass(frozen=True)
class Challenge:
    """A time-bound message the wallet signs to prove control of an address."""

    message: str
    timestamp: int
    nonce: str
    address: str

    def age(self, now: int) -> int:
        return now - self.timestamp

    def is_expired(self, now: int, expiry_ms: int) -> bool:
        """Check whether the challenge is older than the allowed age."""
        return self.age(now) > expiry_ms


@dataclass
class AuthUser:
    """The wallet owner bound to a session."""

    address: str
    is_verified: bool
    login_time: int
    last_activity: int
    session_id: str
    ens_name: str | None = None
    avatar: str | None = None

    def __post_init__(self):
        """Validate and canonicalize the user after creation."""
        if not self.address or not self.address.strip():
            from .exceptions import ValidationError

            raise ValidationError("User address cannot be empty")
        if not self.session_id or not self.session_id.strip():
            from .exceptions import ValidationError

            raise ValidationError("Session ID cannot be empty")
        self.address = self.address.strip().lower()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthUser":
        return cls(
            address=data["address"],
            is_verified=bool(data.get("is_verified", False)),
            login_time=int(data["login_time"]),
            last_activity=int(data["last_activity"]),
            session_id=data["session_id"],
            ens_name=data.get("ens_name"),
            avatar=data.get("avatar"),
        )


@dataclass
class Session:
    """An authenticated context bound to one wallet address."""

    user: AuthUser
    token: str
    expires_at: int
    refresh_token: str | None = None

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at

    def is_valid(self, now: int) -> bool:
        """Check if the session is still inside its lifetime."""
        return not self.is_expired(now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "token": self.token,
            "expires_at": self.expires_at,
            "refresh_token": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            user=AuthUser.from_dict(data["user"]),
            token=data["token"],
            expires_at=int(data["expires_at"]),
            refresh_token=data.get("refresh_token"),
        )


@dataclass
class AuthResult:
    """Outcome of authenticate() and refresh_session()."""

    success: bool
    user: AuthUser | None = None
    token: str | None = None
    error: AuthErrorKind | None = None
    message: str | None = None
    retry_after_ms: int | None = None

    @classmethod
    def ok(cls, session: Session) -> "AuthResult":
        return cls(success=True, user=session.user, token=session.token)

    @classmethod
    def failure(
        cls,
        error: AuthErrorKind,
        message: str,
        retry_after_ms: int | None = None,
    ) -> "AuthResult":
        return cls(
            success=False, error=error, message=message, retry_after_ms=retry_after_ms
        )


@dataclass(frozen=True)
class SecurityEvent:
    """One entry of the security event log."""

    type: SecurityEventType
    timestamp: int
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecurityEvent":
        return cls(
            type=SecurityEventType(data["type"]),
            timestamp=int(data["timestamp"]),
            details=data.get("details"),
        )


@dataclass
class SecurityMetrics:
    """Aggregate counters and lockout state for one account context."""

    login_attempts: int = 0
    failed_logins: int = 0
    successful_logins: int = 0
    transactions_attempted: int = 0
    suspicious_activities: int = 0
    last_activity: int = 0
    is_locked: bool = False
    lockout_until: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecurityMetrics":
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass(frozen=True)
class TransactionRequest:
    """The parts of an outgoing transaction the policy engine inspects."""

    to: str | None = None
    value: Decimal | str | int | float | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_transaction() and validate_address()."""

    valid: bool
    error: AuthErrorKind | None = None
    reason: str | None = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def rejected(cls, error: AuthErrorKind, reason: str) -> "ValidationResult":
        return cls(valid=False, error=error, reason=reason)


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single sliding-window rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after_ms: int | None = None
