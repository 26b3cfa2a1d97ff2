from __future__ import annotations

from datetime import datetime

from .model import Rejected


def _stamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def unauthorized_text(handle: str, *, now: datetime) -> str:
    return f"@{handle} this command is only available to the owner. ({_stamp(now)})"


def rate_limited_text(handle: str, decision: Rejected, *, now: datetime) -> str:
    return (
        f"@{handle} request temporarily refused. "
        f"(Limit: {decision.count}/{decision.limit}, "
        f"Expires: {_stamp(decision.expires_at)}, Now: {_stamp(now)})"
    )
