"""streamcmd domain model types (commands, rate-limit policies, windows)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

type CommandId = str
type UserId = str

type CommandHandler = Callable[..., Any]

type DispatchStatus = Literal[
    "dispatched",
    "unauthorized",
    "rate_limited",
    "unknown",
    "failed",
]


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    max_count: int
    window_minutes: int

    def __post_init__(self) -> None:
        for name in ("max_count", "window_minutes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True, slots=True)
class CommandDefinition:
    slug: CommandId
    handler: CommandHandler = field(compare=False)
    private: bool = False
    rate_limit: RateLimitPolicy | None = None


@dataclass(slots=True)
class RateWindow:
    """Counting bucket for one (user, command) pair.

    ``count`` is allowed to reach ``limit + 1``; going past ``limit`` is
    what marks a call as rejected.
    """

    expires_at: datetime
    count: int
    limit: int

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True, slots=True)
class Allowed:
    allowed: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True, slots=True)
class Rejected:
    count: int
    limit: int
    expires_at: datetime
    allowed: Literal[False] = field(default=False, init=False)


type RateDecision = Allowed | Rejected

ALLOWED = Allowed()
