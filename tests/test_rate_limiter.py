from tests.helpers import START_MS
from walletguard.config import RateLimitConfig
from walletguard.security import SlidingWindowRateLimiter

WINDOW_MS = 5 * 60_000


class TestSlidingWindowRateLimiter:
    """Test sliding-window rate limiting."""

    def test_allows_up_to_limit(self):
        limiter = SlidingWindowRateLimiter()

        decisions = [limiter.hit("alice", "send", START_MS + i) for i in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert decisions[2].remaining == 0
        assert decisions[3].retry_after_ms == WINDOW_MS - 3

    def test_denied_attempts_are_not_recorded(self):
        limiter = SlidingWindowRateLimiter()
        for i in range(3):
            limiter.hit("alice", "send", START_MS + i * 1_000)

        for _ in range(5):
            assert not limiter.hit("alice", "send", START_MS + 10_000).allowed

        recorded = limiter.snapshot()["alice"]["send"]
        assert recorded == [START_MS, START_MS + 1_000, START_MS + 2_000]

    def test_window_slides(self):
        limiter = SlidingWindowRateLimiter()
        for i in range(3):
            limiter.hit("alice", "send", START_MS + i * 60_000)

        # The first attempt leaves the window exactly WINDOW_MS after it happened
        assert not limiter.hit("alice", "send", START_MS + WINDOW_MS - 1).allowed
        assert limiter.hit("alice", "send", START_MS + WINDOW_MS).allowed

    def test_keys_are_independent(self):
        limiter = SlidingWindowRateLimiter(RateLimitConfig(max_attempts=1))

        assert limiter.hit("alice", "send", START_MS).allowed
        assert limiter.hit("alice", "swap", START_MS).allowed
        assert limiter.hit("bob", "send", START_MS).allowed
        assert not limiter.hit("alice", "send", START_MS).allowed

    def test_snapshot_restore(self):
        limiter = SlidingWindowRateLimiter()
        limiter.hit("alice", "send", START_MS)
        limiter.hit("alice", "send", START_MS + 1_000)

        snapshot = limiter.snapshot()
        assert snapshot == {"alice": {"send": [START_MS, START_MS + 1_000]}}

        restored = SlidingWindowRateLimiter()
        restored.restore(snapshot)
        assert not restored.hit("alice", "send", START_MS + 2_000).remaining
        assert not restored.hit("alice", "send", START_MS + 3_000).allowed

    def test_snapshot_omits_empty_keys(self):
        limiter = SlidingWindowRateLimiter()
        limiter.restore({"alice": {"send": []}})
        limiter.hit("bob", "send", START_MS)
        limiter.hit("bob", "send", START_MS + WINDOW_MS + 1)

        assert limiter.snapshot() == {"bob": {"send": [START_MS + WINDOW_MS + 1]}}
