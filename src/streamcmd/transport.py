from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


class Sender(Protocol):
    @property
    def handle(self) -> str: ...

    @property
    def is_me(self) -> bool: ...


class IncomingMessage(Protocol):
    @property
    def created_at(self) -> datetime: ...

    @property
    def sender(self) -> Sender: ...

    @property
    def body(self) -> str: ...


@dataclass(frozen=True, slots=True)
class User:
    handle: str
    is_me: bool = False


@dataclass(frozen=True, slots=True)
class Message:
    created_at: datetime
    sender: User
    body: str
    raw: Any | None = field(default=None, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class Notice:
    service: Any
    reply_to: IncomingMessage
    text: str


class NoticeSink(Protocol):
    async def send(self, notice: Notice) -> None: ...
