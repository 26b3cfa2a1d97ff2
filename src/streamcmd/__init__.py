"""Mention-triggered command dispatch with owner-only commands and rate limits."""

from __future__ import annotations

from .authorizer import Authorizer
from .commands import CommandSet
from .config import ConfigError
from .dispatch import (
    DispatchOutcome,
    Dispatcher,
    Invocation,
    open_batch_stream,
)
from .model import (
    Allowed,
    CommandDefinition,
    RateLimitPolicy,
    RateWindow,
    Rejected,
)
from .ratelimit import RateLimiter
from .registry import CommandRegistry
from .transport import Message, Notice, NoticeSink, User

__version__ = "0.1.0"

__all__ = [
    "Allowed",
    "Authorizer",
    "CommandDefinition",
    "CommandRegistry",
    "CommandSet",
    "ConfigError",
    "DispatchOutcome",
    "Dispatcher",
    "Invocation",
    "Message",
    "Notice",
    "NoticeSink",
    "RateLimitPolicy",
    "RateLimiter",
    "RateWindow",
    "Rejected",
    "User",
    "open_batch_stream",
]
