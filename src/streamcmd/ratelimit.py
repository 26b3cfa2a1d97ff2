from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from .logging import get_logger
from .model import (
    ALLOWED,
    CommandId,
    RateDecision,
    RateLimitPolicy,
    RateWindow,
    Rejected,
    UserId,
)

logger = get_logger(__name__)

type Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class RateLimiter:
    """Per-user, per-command call counter with expiring windows.

    A window opens on the first call for a key and lasts
    ``policy.window_minutes``. Expired windows are replaced lazily on the
    next call for that key.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._windows: dict[tuple[UserId, CommandId], RateWindow] = {}
        self._lock = threading.Lock()

    def check_and_record(
        self, user_id: UserId, command_slug: CommandId, policy: RateLimitPolicy
    ) -> RateDecision:
        key = (user_id, command_slug)
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or window.expired(now):
                window = RateWindow(
                    expires_at=now + timedelta(minutes=policy.window_minutes),
                    count=0,
                    limit=policy.max_count,
                )
            # The counter stops one past the limit.
            if window.count < window.limit + 1:
                window.count += 1
            self._windows[key] = window
            if window.count <= window.limit:
                return ALLOWED
            decision = Rejected(
                count=window.count,
                limit=window.limit,
                expires_at=window.expires_at,
            )
        logger.warning(
            "command.rate_limited",
            command=command_slug,
            user=user_id,
            count=decision.count,
            limit=decision.limit,
            expires_at=decision.expires_at.isoformat(),
        )
        return decision

    def window(self, user_id: UserId, command_slug: CommandId) -> RateWindow | None:
        with self._lock:
            window = self._windows.get((user_id, command_slug))
            return None if window is None else replace(window)

    def prune(self, now: datetime | None = None) -> int:
        """Drop expired windows and return how many were removed."""
        with self._lock:
            current = self._clock() if now is None else now
            expired = [
                key for key, window in self._windows.items() if window.expired(current)
            ]
            for key in expired:
                del self._windows[key]
        if expired:
            logger.debug("ratelimit.pruned", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
