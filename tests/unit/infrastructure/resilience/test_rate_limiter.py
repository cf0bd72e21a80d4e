import random

import pytest

from issuerelay.domain.models.config import RateLimitConfig
from issuerelay.infrastructure.resilience.rate_limiter import SlidingWindowLimiter


@pytest.fixture
def limiter() -> SlidingWindowLimiter:
    return SlidingWindowLimiter(RateLimitConfig(max_requests=3, window_seconds=10.0))


def test_admits_up_to_budget_then_denies(limiter: SlidingWindowLimiter):
    assert [limiter.admit(100.0) for _ in range(4)] == [True, True, True, False]
    assert len(limiter.timestamps) == 3


def test_denial_does_not_record(limiter: SlidingWindowLimiter):
    for _ in range(3):
        limiter.admit(100.0)
    for _ in range(5):
        assert limiter.admit(101.0) is False
    assert list(limiter.timestamps) == [100.0, 100.0, 100.0]


def test_timestamp_leaves_window_exactly_at_window_length(limiter: SlidingWindowLimiter):
    limiter.admit(100.0)
    limiter.admit(101.0)
    limiter.admit(102.0)

    assert limiter.admit(109.999) is False
    assert limiter.admit(110.0) is True
    assert list(limiter.timestamps) == [101.0, 102.0, 110.0]


def test_in_window_prunes_expired_entries(limiter: SlidingWindowLimiter):
    limiter.admit(0.0)
    limiter.admit(5.0)
    assert limiter.in_window(9.0) == 2
    assert limiter.in_window(10.0) == 1
    assert limiter.in_window(15.0) == 0


def test_reset_clears_log(limiter: SlidingWindowLimiter):
    for _ in range(3):
        limiter.admit(1.0)
    limiter.reset()
    assert limiter.admit(1.0) is True
    assert len(limiter.timestamps) == 1


def test_reconfigure_keeps_newest_timestamps(limiter: SlidingWindowLimiter):
    limiter.admit(1.0)
    limiter.admit(2.0)
    limiter.admit(3.0)

    limiter.reconfigure(RateLimitConfig(max_requests=2, window_seconds=10.0))

    assert list(limiter.timestamps) == [2.0, 3.0]
    assert limiter.admit(4.0) is False


def test_reconfigure_to_larger_budget_admits_more(limiter: SlidingWindowLimiter):
    for _ in range(3):
        limiter.admit(1.0)
    limiter.reconfigure(RateLimitConfig(max_requests=5, window_seconds=10.0))
    assert limiter.admit(1.5) is True
    assert limiter.admit(1.5) is True
    assert limiter.admit(1.5) is False


def test_trailing_window_never_exceeds_budget():
    """For any non-decreasing sequence of calls, admitted timestamps fit the budget."""
    rng = random.Random(1234)
    config = RateLimitConfig(max_requests=4, window_seconds=5.0)
    limiter = SlidingWindowLimiter(config)
    now = 0.0
    admitted = []
    for _ in range(500):
        now += rng.choice([0.0, 0.25, 0.5, 1.0, 2.5])
        if limiter.admit(now):
            admitted.append(now)
        assert len(limiter.timestamps) <= config.max_requests

    for t in admitted:
        in_window = [a for a in admitted if a <= t and t - a < config.window_seconds]
        assert len(in_window) <= config.max_requests
