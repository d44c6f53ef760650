"""
Security policy engine.

The engine owns the event log, aggregate metrics, rate limiter and lockout
state for one account context. Decisions are delegated to the pure functions
in ``walletguard.security.policy``; this class applies them to its state,
persists the result and notifies listeners.

In-memory state is authoritative for the life of the process. Storage
failures are logged and otherwise ignored, and no public method lets an
internal fault escape.
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from ..addresses import is_valid_address, normalize_address
from ..config.schema import SecurityPolicyConfig
from ..emitter import EventEmitter
from ..exceptions import StorageError
from ..protocols import SecureStore
from ..types import (
    AuthErrorKind,
    SecurityEvent,
    SecurityEventType,
    SecurityMetrics,
    TransactionRequest,
    ValidationResult,
    WalletEvent,
)
from ..utils import Clock, minutes_to_ms, now_ms
from . import policy
from .rate_limiter import SlidingWindowRateLimiter
from .state import SecurityState, SecurityStateRepository

logger = logging.getLogger(__name__)


class SecurityPolicyEngine:
    """
    Tracks login and transaction activity and enforces the security policy.

    Lock state machine: UNLOCKED -> LOCKED through a policy violation or
    ``lock_account``; LOCKED -> UNLOCKED through ``unlock_account`` or the lazy
    expiry check in ``is_account_locked``. There is no timer.

    Examples:
        ```python
        engine = SecurityPolicyEngine(store)
        await engine.initialize()

        if not await engine.check_rate_limit(address, "send"):
            ...
        result = await engine.validate_transaction(
            TransactionRequest(to=recipient, value="25")
        )
        ```
    """

    def __init__(
        self,
        store: SecureStore,
        config: SecurityPolicyConfig | None = None,
        *,
        deny_list: Iterable[str] | None = None,
        clock: Clock = now_ms,
        emitter: EventEmitter | None = None,
    ):
        """
        Initialize the policy engine.

        Args:
            store: Persistence for metrics, event log and rate-limit entries
            config: Policy thresholds; defaults to the stock policy
            deny_list: Flagged addresses; defaults to ``config.deny_list``
            clock: Millisecond clock, injectable for tests
            emitter: Shared emitter; a private one is created when omitted
        """
        self.config = config or SecurityPolicyConfig()
        self._clock = clock
        self._repository = SecurityStateRepository(store)
        self._emitter = emitter or EventEmitter("security")

        self._metrics = SecurityMetrics()
        self._events: deque[SecurityEvent] = deque(maxlen=self.config.event_log_capacity)
        self._rate_limiter = SlidingWindowRateLimiter(self.config.rate_limit)

        source = self.config.deny_list if deny_list is None else deny_list
        self._deny_list = {normalize_address(address) for address in source}

    def on(self, event: WalletEvent | str, handler: Callable[[Any], Any]) -> None:
        self._emitter.on(event, handler)

    def off(self, event: WalletEvent | str, handler: Callable[[Any], Any]) -> None:
        self._emitter.off(event, handler)

    async def initialize(self) -> None:
        """Load persisted state and settle any lockout that has run out."""
        try:
            state = await self._repository.load()
        except StorageError as e:
            logger.error(f"Failed to load security data, starting fresh: {e.details}")
            return

        self._metrics = state.metrics
        # Persisted newest-first; deque keeps that order and drops the oldest tail
        self._events = deque(state.events, maxlen=self.config.event_log_capacity)
        self._rate_limiter.restore(state.rate_limits)

        if self._metrics.is_locked and self._metrics.lockout_until is None:
            logger.warning("Persisted lock had no deadline, clearing it")
            await self.unlock_account()
        elif policy.lockout_expired(self._metrics, self._clock()):
            await self.unlock_account()

        logger.info(
            f"Security engine initialized with {len(self._events)} events, "
            f"locked={self._metrics.is_locked}"
        )

    async def record_event(
        self, event_type: SecurityEventType, details: dict[str, Any] | None = None
    ) -> SecurityEvent | None:
        """
        Record a security event and apply the abuse policy.

        The event is in the log and the metrics are updated before this
        coroutine returns. Never raises.

        Args:
            event_type: Kind of event
            details: Free-form context stored with the event

        Returns:
            The recorded event, or None if recording failed
        """
        try:
            now = self._clock()
            event = self._append(event_type, now, details)

            violation = None
            if event_type.is_activity and not self.is_account_locked():
                violation = policy.evaluate_activity(self._events, now, self.config)

            alert_event = None
            if violation is not None:
                self._metrics = policy.lock(
                    self._metrics, now, minutes_to_ms(self.config.lockout_duration_minutes)
                )
                alert_event = self._append(
                    SecurityEventType.SUSPICIOUS_ACTIVITY,
                    now,
                    {"reason": violation.reason, "rule": violation.rule, "count": violation.count},
                )
                logger.warning(
                    f"Suspicious activity detected: {violation.reason} "
                    f"({violation.count}); account locked for "
                    f"{self.config.lockout_duration_minutes} minutes"
                )

            await self._save()

            self._emitter.emit(WalletEvent.SECURITY_EVENT, event)
            if alert_event is not None:
                self._emitter.emit(WalletEvent.SECURITY_EVENT, alert_event)
                self._emitter.emit(
                    WalletEvent.SECURITY_ALERT,
                    {
                        "reason": violation.reason,
                        "rule": violation.rule,
                        "timestamp": now,
                        "lockout_until": self._metrics.lockout_until,
                    },
                )

            logger.debug(f"Recorded security event {event_type.value}: {details}")
            return event
        except Exception:
            logger.exception(f"Failed to record security event {event_type}")
            return None

    async def lock_account(self, duration_minutes: float | None = None) -> None:
        """Lock the account for ``duration_minutes`` (policy default when None)."""
        minutes = (
            self.config.lockout_duration_minutes
            if duration_minutes is None
            else duration_minutes
        )
        self._metrics = policy.lock(self._metrics, self._clock(), minutes_to_ms(minutes))
        await self._save()
        logger.info(f"Account locked for {minutes} minutes")

    async def unlock_account(self) -> None:
        self._metrics = policy.unlock(self._metrics)
        await self._save()
        logger.info("Account unlocked")

    def is_account_locked(self) -> bool:
        """Effective lock state, clearing an expired lock in place.

        The cleared state reaches storage with the next save; a stale lock
        read back after a restart is settled again by ``initialize``.
        """
        if policy.lockout_expired(self._metrics, self._clock()):
            self._metrics = policy.unlock(self._metrics)
            logger.info("Lockout period elapsed, account unlocked")
            return False
        return self._metrics.is_locked

    def remaining_lockout_ms(self) -> int:
        return policy.remaining_lockout_ms(self._metrics, self._clock())

    async def check_rate_limit(self, identifier: str, action: str) -> bool:
        """
        Count one attempt of ``action`` by ``identifier``.

        Returns:
            True if the attempt is within the limit, False if it was denied
        """
        try:
            decision = self._rate_limiter.hit(identifier, action, self._clock())
        except Exception:
            logger.exception(f"Rate limit check failed for {identifier}/{action}")
            # Fail open
            return True

        if not decision.allowed:
            await self.record_event(
                SecurityEventType.RATE_LIMIT_EXCEEDED,
                {
                    "identifier": identifier,
                    "action": action,
                    "retry_after_ms": decision.retry_after_ms,
                },
            )
            return False

        await self._save()
        return True

    async def enforce_rate_limit(self, identifier: str, action: str) -> ValidationResult:
        """``check_rate_limit`` as a result value for callers that surface errors."""
        if await self.check_rate_limit(identifier, action):
            return ValidationResult.accepted()
        return ValidationResult.rejected(
            AuthErrorKind.RATE_LIMIT_EXCEEDED,
            f"Too many '{action}' attempts, please wait and try again",
        )

    async def validate_transaction(
        self, transaction: TransactionRequest | Mapping[str, Any]
    ) -> ValidationResult:
        """
        Check an outgoing transaction against lockout and amount/recipient rules.

        A transaction that passes is recorded as a TRANSACTION_ATTEMPT.
        """
        try:
            if isinstance(transaction, Mapping):
                transaction = TransactionRequest(
                    to=transaction.get("to"), value=transaction.get("value")
                )

            if self.is_account_locked():
                return ValidationResult.rejected(
                    AuthErrorKind.ACCOUNT_LOCKED, "Account is temporarily locked"
                )

            if transaction.value is not None and transaction.value != "":
                amount = policy.parse_amount(transaction.value)
                if amount is None or amount < 0:
                    return ValidationResult.rejected(
                        AuthErrorKind.VALIDATION_ERROR, "Invalid transaction amount"
                    )
                if amount > self.config.max_transaction_amount:
                    return ValidationResult.rejected(
                        AuthErrorKind.VALIDATION_ERROR,
                        "Transaction amount exceeds maximum limit of "
                        f"{self.config.max_transaction_amount}",
                    )

            if transaction.to is not None:
                recipient = self.validate_address(transaction.to)
                if not recipient.valid:
                    return ValidationResult.rejected(
                        AuthErrorKind.VALIDATION_ERROR,
                        f"Invalid recipient address: {recipient.reason}",
                    )

            await self.record_event(
                SecurityEventType.TRANSACTION_ATTEMPT,
                {
                    "to": transaction.to,
                    "value": None if transaction.value is None else str(transaction.value),
                },
            )
            return ValidationResult.accepted()
        except Exception:
            logger.exception("Transaction validation failed")
            return ValidationResult.rejected(
                AuthErrorKind.VALIDATION_ERROR, "Validation error"
            )

    def validate_address(self, address: str | None) -> ValidationResult:
        if not address:
            return ValidationResult.rejected(
                AuthErrorKind.VALIDATION_ERROR, "Address is required"
            )
        if not is_valid_address(address):
            return ValidationResult.rejected(
                AuthErrorKind.VALIDATION_ERROR, "Invalid address format"
            )
        if normalize_address(address) in self._deny_list:
            return ValidationResult.rejected(
                AuthErrorKind.VALIDATION_ERROR, "This address is flagged as suspicious"
            )
        return ValidationResult.accepted()

    def get_security_metrics(self) -> SecurityMetrics:
        self.is_account_locked()
        return replace(self._metrics)

    def get_recent_events(self, limit: int = 50) -> list[SecurityEvent]:
        """Most recent events first."""
        return list(self._events)[: max(0, limit)]

    async def clear_security_data(self) -> None:
        """Reset metrics, the event log and rate limits, in memory and in storage."""
        self._metrics = SecurityMetrics()
        self._events.clear()
        self._rate_limiter.clear()
        try:
            await self._repository.clear()
        except StorageError as e:
            logger.error(f"Failed to clear security data: {e.details}")
        logger.info("Security data cleared")

    def _append(
        self, event_type: SecurityEventType, now: int, details: dict[str, Any] | None
    ) -> SecurityEvent:
        event = SecurityEvent(type=event_type, timestamp=now, details=details)
        self._events.appendleft(event)
        self._metrics = policy.apply_event(self._metrics, event)
        return event

    async def _save(self) -> None:
        state = SecurityState(
            metrics=self._metrics,
            events=list(self._events),
            rate_limits=self._rate_limiter.snapshot(),
        )
        try:
            await self._repository.save(state)
        except StorageError as e:
            logger.warning(f"Failed to save security data: {e.details}")
