import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from streamcmd.model import Allowed, RateLimitPolicy, Rejected
from streamcmd.ratelimit import RateLimiter
from tests.fakes import FakeClock


def test_scenario_two_per_minute(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=2, window_minutes=1)

    results = [limiter.check_and_record("alice", "ping", policy) for _ in range(4)]

    assert isinstance(results[0], Allowed)
    assert isinstance(results[1], Allowed)
    expires_at = clock.now + timedelta(minutes=1)
    assert results[2] == Rejected(count=3, limit=2, expires_at=expires_at)
    assert results[3] == Rejected(count=3, limit=2, expires_at=expires_at)


@pytest.mark.parametrize("max_count", [1, 3, 5])
def test_counter_saturates_one_past_limit(clock: FakeClock, max_count: int) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=max_count, window_minutes=10)

    decisions = [
        limiter.check_and_record("alice", "ping", policy)
        for _ in range(max_count + 3)
    ]

    assert [d.allowed for d in decisions] == [True] * max_count + [False] * 3
    window = limiter.window("alice", "ping")
    assert window is not None
    assert window.count == max_count + 1
    assert window.limit == max_count


def test_window_resets_after_expiry(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=1, window_minutes=5)

    assert limiter.check_and_record("alice", "ping", policy).allowed
    assert not limiter.check_and_record("alice", "ping", policy).allowed

    clock.advance(minutes=5)
    decision = limiter.check_and_record("alice", "ping", policy)

    assert decision.allowed
    window = limiter.window("alice", "ping")
    assert window is not None
    assert window.count == 1
    assert window.expires_at == clock.now + timedelta(minutes=5)


def test_window_still_open_just_before_expiry(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=1, window_minutes=5)
    limiter.check_and_record("alice", "ping", policy)

    clock.advance(minutes=4, seconds=59)

    assert not limiter.check_and_record("alice", "ping", policy).allowed


def test_windows_are_keyed_per_user_and_command(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=1, window_minutes=1)

    assert limiter.check_and_record("alice", "ping", policy).allowed
    assert limiter.check_and_record("bob", "ping", policy).allowed
    assert limiter.check_and_record("alice", "echo", policy).allowed
    assert not limiter.check_and_record("alice", "ping", policy).allowed
    assert len(limiter) == 3


def test_window_limit_is_copied_at_creation(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    limiter.check_and_record("alice", "ping", RateLimitPolicy(1, 1))

    decision = limiter.check_and_record("alice", "ping", RateLimitPolicy(5, 1))

    assert decision == Rejected(
        count=2, limit=1, expires_at=clock.now + timedelta(minutes=1)
    )


def test_window_returns_copy(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=3, window_minutes=1)
    limiter.check_and_record("alice", "ping", policy)

    snapshot = limiter.window("alice", "ping")
    assert snapshot is not None
    snapshot.count = 99

    assert limiter.window("alice", "ping").count == 1
    assert limiter.window("bob", "ping") is None


def test_prune_drops_only_expired_windows(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    limiter.check_and_record("alice", "ping", RateLimitPolicy(1, 1))
    limiter.check_and_record("bob", "ping", RateLimitPolicy(1, 10))

    clock.advance(minutes=2)

    assert limiter.prune() == 1
    assert limiter.window("alice", "ping") is None
    assert limiter.window("bob", "ping") is not None
    assert limiter.prune() == 0


@pytest.mark.parametrize(
    ("max_count", "window_minutes"),
    [(0, 1), (1, 0), (-1, 5), (True, 1)],
)
def test_policy_rejects_non_positive_values(
    max_count: int, window_minutes: int
) -> None:
    with pytest.raises(ValueError, match="positive integer"):
        RateLimitPolicy(max_count=max_count, window_minutes=window_minutes)


def test_concurrent_checks_admit_exactly_the_limit(clock: FakeClock) -> None:
    limiter = RateLimiter(clock=clock)
    policy = RateLimitPolicy(max_count=5, window_minutes=1)
    workers = 8
    start = threading.Barrier(workers)

    def hammer(_: int) -> list[object]:
        start.wait()
        return [
            limiter.check_and_record("alice", "ping", policy) for _ in range(50)
        ]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        decisions = [d for batch in pool.map(hammer, range(workers)) for d in batch]

    assert len(decisions) == workers * 50
    assert sum(isinstance(d, Allowed) for d in decisions) == 5
    window = limiter.window("alice", "ping")
    assert window is not None
    assert window.count == 6
