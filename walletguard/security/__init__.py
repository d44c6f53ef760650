"""Security policy: abuse detection, lockout and rate limiting."""

from .engine import SecurityPolicyEngine
from .policy import PolicyViolation, evaluate_activity
from .rate_limiter import SlidingWindowRateLimiter
from .state import SecurityState, SecurityStateRepository, SecurityStorageKeys

__all__ = [
    "PolicyViolation",
    "SecurityPolicyEngine",
    "SecurityState",
    "SecurityStateRepository",
    "SecurityStorageKeys",
    "SlidingWindowRateLimiter",
    "evaluate_activity",
]
