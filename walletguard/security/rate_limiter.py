"""
Sliding-window rate limiter.

Attempts are tracked per ``(identifier, action)`` as ordered timestamps.
Timestamps that have slid out of the window are dropped lazily whenever that
key is checked; there is no cleanup timer.

Security considerations:
- Denied attempts are not recorded, so a blocked caller is not locked out
  for longer than the window
- The limiter holds no I/O; the policy engine persists its snapshot
"""

import logging
from collections import defaultdict, deque
from typing import Any

from ..config.schema import RateLimitConfig
from ..types import RateLimitDecision
from ..utils import minutes_to_ms

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """In-memory sliding window over attempt timestamps."""

    def __init__(self, config: RateLimitConfig | None = None):
        self.config = config or RateLimitConfig()
        self.window_ms = minutes_to_ms(self.config.window_minutes)
        self.max_attempts = self.config.max_attempts

        # Storage: {identifier: {action: deque([timestamp, ...])}}
        self._attempts: dict[str, dict[str, deque[int]]] = defaultdict(
            lambda: defaultdict(deque)
        )

    def hit(self, identifier: str, action: str, now: int) -> RateLimitDecision:
        """Check the limit and, when allowed, record the attempt."""
        attempts = self._prune(identifier, action, now)

        current_count = len(attempts)
        allowed = current_count < self.max_attempts
        if allowed:
            attempts.append(now)

        retry_after_ms = None
        if not allowed and attempts:
            retry_after_ms = max(1, attempts[0] + self.window_ms - now)

        logger.debug(
            f"Rate limit check: {identifier}/{action} = {current_count}/{self.max_attempts} "
            f"(allowed: {allowed})"
        )

        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_attempts,
            remaining=max(0, self.max_attempts - len(attempts)),
            retry_after_ms=retry_after_ms,
        )

    def clear(self) -> None:
        self._attempts.clear()

    def snapshot(self) -> dict[str, dict[str, list[int]]]:
        """Plain-data copy suitable for JSON persistence."""
        return {
            identifier: {action: list(times) for action, times in actions.items() if times}
            for identifier, actions in self._attempts.items()
            if any(actions.values())
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Replace tracked attempts with a snapshot produced by ``snapshot()``."""
        self._attempts.clear()
        for identifier, actions in (data or {}).items():
            for action, times in actions.items():
                self._attempts[identifier][action] = deque(sorted(int(t) for t in times))

    def _prune(self, identifier: str, action: str, now: int) -> deque[int]:
        attempts = self._attempts[identifier][action]
        window_start = now - self.window_ms
        while attempts and attempts[0] <= window_start:
            attempts.popleft()
        return attempts
