from datetime import UTC, datetime, timedelta

from streamcmd.transport import Message, Notice, User

STARTED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
OPERATOR = "bot"


class FakeClock:
    def __init__(self, now: datetime = STARTED_AT + timedelta(minutes=1)) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeNoticeSink:
    def __init__(self) -> None:
        self.sent: list[Notice] = []

    async def send(self, notice: Notice) -> None:
        self.sent.append(notice)


class FailingNoticeSink:
    async def send(self, notice: Notice) -> None:
        raise RuntimeError(f"send failed: {notice.text}")


class HandlerSpy:
    def __init__(self) -> None:
        self.calls: list[tuple[Message, tuple[str, ...]]] = []

    def __call__(self, message: Message, *args: str) -> None:
        self.calls.append((message, args))


def make_message(
    body: str,
    *,
    handle: str = "alice",
    is_me: bool = False,
    created_at: datetime | None = None,
) -> Message:
    return Message(
        created_at=created_at or STARTED_AT + timedelta(seconds=30),
        sender=User(handle=handle, is_me=is_me),
        body=body,
    )
