"""
Pure decision logic for abuse detection and lockout.

Every function here takes the current time, the relevant state and the policy
and returns a decision. Nothing in this module touches storage, emits
notifications or reads the clock, so the policy can be exercised with plain
values.

The event log is ordered most-recent-first throughout.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

from ..config.schema import SecurityPolicyConfig
from ..types import SecurityEvent, SecurityEventType, SecurityMetrics
from ..utils import minutes_to_ms


@dataclass(frozen=True)
class PolicyViolation:
    """A detected abuse pattern that should lock the account."""

    rule: str
    reason: str
    count: int


def events_in_window(
    events: Sequence[SecurityEvent], now: int, window_ms: int
) -> list[SecurityEvent]:
    """Events younger than ``window_ms``, preserving log order."""
    return [event for event in events if now - event.timestamp < window_ms]


def count_events(events: Sequence[SecurityEvent], event_type: SecurityEventType) -> int:
    return sum(1 for event in events if event.type is event_type)


def detect_rapid_events(
    events: Sequence[SecurityEvent], gap_ms: int
) -> list[SecurityEvent]:
    """Return each event that followed its predecessor within ``gap_ms``.

    Only activity events are considered; policy outcomes such as
    SUSPICIOUS_ACTIVITY are produced in bursts by the engine itself.
    """
    activity = [event for event in events if event.type.is_activity]
    rapid = []
    for newer, older in zip(activity, activity[1:]):
        if newer.timestamp - older.timestamp < gap_ms:
            rapid.append(newer)
    return rapid


def evaluate_activity(
    events: Sequence[SecurityEvent], now: int, policy: SecurityPolicyConfig
) -> PolicyViolation | None:
    """Check the trailing window of the event log against the abuse rules.

    Rules are checked in order and the first match wins: excessive failed
    logins, excessive transaction attempts, then repeated rapid-fire activity.
    """
    recent = events_in_window(events, now, minutes_to_ms(policy.activity_window_minutes))

    failed_logins = count_events(recent, SecurityEventType.LOGIN_FAILURE)
    if failed_logins >= policy.max_failed_logins:
        return PolicyViolation(
            rule="failed_logins",
            reason="Excessive failed login attempts",
            count=failed_logins,
        )

    transaction_attempts = count_events(recent, SecurityEventType.TRANSACTION_ATTEMPT)
    if transaction_attempts >= policy.max_transaction_attempts:
        return PolicyViolation(
            rule="transaction_attempts",
            reason="Excessive transaction attempts",
            count=transaction_attempts,
        )

    rapid = detect_rapid_events(recent, int(policy.rapid_event_gap_seconds * 1000))
    if len(rapid) >= policy.rapid_event_threshold:
        return PolicyViolation(
            rule="rapid_events",
            reason="Rapid successive events detected",
            count=len(rapid),
        )

    return None


def apply_event(
    metrics: SecurityMetrics, event: SecurityEvent
) -> SecurityMetrics:
    """Return metrics updated for one recorded event."""
    match event.type:
        case SecurityEventType.LOGIN_SUCCESS:
            return replace(
                metrics,
                login_attempts=metrics.login_attempts + 1,
                successful_logins=metrics.successful_logins + 1,
                last_activity=event.timestamp,
            )
        case SecurityEventType.LOGIN_FAILURE:
            return replace(
                metrics,
                login_attempts=metrics.login_attempts + 1,
                failed_logins=metrics.failed_logins + 1,
            )
        case SecurityEventType.TRANSACTION_ATTEMPT:
            return replace(
                metrics,
                transactions_attempted=metrics.transactions_attempted + 1,
                last_activity=event.timestamp,
            )
        case SecurityEventType.SUSPICIOUS_ACTIVITY:
            return replace(
                metrics, suspicious_activities=metrics.suspicious_activities + 1
            )
        case _:
            return metrics


def lock(metrics: SecurityMetrics, now: int, duration_ms: int) -> SecurityMetrics:
    return replace(metrics, is_locked=True, lockout_until=now + duration_ms)


def unlock(metrics: SecurityMetrics) -> SecurityMetrics:
    return replace(metrics, is_locked=False, lockout_until=None)


def lockout_expired(metrics: SecurityMetrics, now: int) -> bool:
    """True when a recorded lock has run past its deadline."""
    return (
        metrics.is_locked
        and metrics.lockout_until is not None
        and now > metrics.lockout_until
    )


def is_locked(metrics: SecurityMetrics, now: int) -> bool:
    """Effective lock state, treating an expired lock as unlocked."""
    return metrics.is_locked and not lockout_expired(metrics, now)


def remaining_lockout_ms(metrics: SecurityMetrics, now: int) -> int:
    if not is_locked(metrics, now) or metrics.lockout_until is None:
        return 0
    return max(0, metrics.lockout_until - now)


def parse_amount(value) -> Decimal | None:
    """Parse a transaction value; None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount
