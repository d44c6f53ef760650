"""Small helpers shared across the package."""

import time
from collections.abc import Callable

Clock = Callable[[], int]

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def minutes_to_ms(minutes: float) -> int:
    return int(minutes * MINUTE_MS)


def hours_to_ms(hours: float) -> int:
    return int(hours * HOUR_MS)
