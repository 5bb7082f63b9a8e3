"""Tests for the narration rate limiter."""

from __future__ import annotations

import pytest

from dnd_director.dm.ratelimit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimiter:
    """Tests for sliding-window limiting."""

    def test_allows_up_to_limit(self, clock: FakeClock) -> None:
        """Test the limit is exact and remaining counts down."""
        limiter = RateLimiter(3, 60.0, clock=clock)

        decisions = [limiter.check("p1-c1") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]

    def test_retry_after(self, clock: FakeClock) -> None:
        """Test a throttled decision says when to retry."""
        limiter = RateLimiter(1, 60.0, clock=clock)
        limiter.check("k")
        clock.now += 20

        decision = limiter.check("k")

        assert decision.allowed is False
        assert decision.retry_after_seconds == pytest.approx(40.0)

    def test_window_slides(self, clock: FakeClock) -> None:
        """Test requests leave the window one at a time."""
        limiter = RateLimiter(2, 60.0, clock=clock)
        limiter.check("k")
        clock.now += 30
        limiter.check("k")
        clock.now += 30

        assert limiter.check("k").allowed is True
        assert limiter.check("k").allowed is False

    def test_keys_are_independent(self, clock: FakeClock) -> None:
        """Test one participant cannot exhaust another's window."""
        limiter = RateLimiter(1, 60.0, clock=clock)
        limiter.check("alice-c1")

        assert limiter.check("bob-c1").allowed is True
        assert limiter.check("alice-c2").allowed is True

    def test_throttled_requests_not_counted(self, clock: FakeClock) -> None:
        """Test rejected requests do not extend the window."""
        limiter = RateLimiter(1, 60.0, clock=clock)
        limiter.check("k")
        clock.now += 59
        limiter.check("k")
        clock.now += 1

        assert limiter.check("k").allowed is True

    def test_cleanup(self, clock: FakeClock) -> None:
        """Test expired keys are dropped."""
        limiter = RateLimiter(5, 60.0, clock=clock)
        limiter.check("old")
        clock.now += 61
        limiter.check("new")

        assert limiter.cleanup() == 1
        assert limiter.cleanup() == 0

    @pytest.mark.parametrize(("max_requests", "window"), [(0, 60.0), (5, 0.0)])
    def test_invalid_config(self, max_requests: int, window: float) -> None:
        """Test nonsensical limits are rejected."""
        with pytest.raises(ValueError):
            RateLimiter(max_requests, window)
