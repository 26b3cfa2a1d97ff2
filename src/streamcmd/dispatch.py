from __future__ import annotations

import inspect
import re
from collections.abc import AsyncIterable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from .authorizer import Authorizer
from .logging import get_logger
from .model import CommandId, DispatchStatus, Rejected
from .notices import rate_limited_text, unauthorized_text
from .ratelimit import Clock, RateLimiter, utc_now
from .registry import CommandRegistry
from .transport import IncomingMessage, Notice, NoticeSink

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Invocation:
    command: CommandId
    args: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    message: IncomingMessage
    command: CommandId
    args: tuple[str, ...]
    status: DispatchStatus


def command_pattern(operator: str) -> re.Pattern[str]:
    handle = operator.removeprefix("@")
    # Anchors are per line; the first matching line of the body wins.
    return re.compile(rf"^@{re.escape(handle)} ([a-z_]+) (.+)$", re.MULTILINE)


def parse_invocation(pattern: re.Pattern[str], body: str) -> Invocation | None:
    match = pattern.search(body)
    if match is None:
        return None
    return Invocation(command=match.group(1), args=tuple(match.group(2).split()))


type Batch = Sequence[IncomingMessage]


def open_batch_stream(
    max_buffer_size: float = 16,
) -> tuple[MemoryObjectSendStream[Batch], MemoryObjectReceiveStream[Batch]]:
    """Channel for hosts that receive batches from several connections.

    Each connection sends into a clone of the send side; a single
    :meth:`Dispatcher.run` drains the receive side so batches never
    overlap.
    """
    return anyio.create_memory_object_stream(max_buffer_size)


class Dispatcher:
    def __init__(
        self,
        *,
        registry: CommandRegistry,
        limiter: RateLimiter,
        notices: NoticeSink,
        operator: str,
        started_at: datetime,
        service: Any | None = None,
        authorizer: Authorizer | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._registry = registry
        self._limiter = limiter
        self._notices = notices
        self._authorizer = authorizer or Authorizer(registry)
        self._pattern = command_pattern(operator)
        self._service = service
        self._clock = clock
        self.started_at = started_at

    def extract(self, message: IncomingMessage) -> Invocation | None:
        if message.created_at <= self.started_at:
            return None
        return parse_invocation(self._pattern, message.body)

    async def dispatch(
        self, messages: Iterable[IncomingMessage]
    ) -> tuple[DispatchOutcome, ...]:
        outcomes: list[DispatchOutcome] = []
        for message in messages:
            invocation = self.extract(message)
            if invocation is None:
                continue
            command = self._registry.resolve(invocation.command)
            status = await self._handle(message, command, invocation.args)
            outcomes.append(
                DispatchOutcome(
                    message=message,
                    command=command,
                    args=invocation.args,
                    status=status,
                )
            )
        return tuple(outcomes)

    async def run(self, batches: AsyncIterable[Iterable[IncomingMessage]]) -> int:
        dispatched = 0
        async for batch in batches:
            outcomes = await self.dispatch(batch)
            dispatched += sum(1 for o in outcomes if o.status == "dispatched")
        logger.debug("dispatcher.stopped", dispatched=dispatched)
        return dispatched

    async def _handle(
        self, message: IncomingMessage, command: CommandId, args: tuple[str, ...]
    ) -> DispatchStatus:
        sender = message.sender
        if not self._authorizer.is_authorized(command, sender):
            await self._notify(
                message, unauthorized_text(sender.handle, now=self._clock())
            )
            return "unauthorized"

        definition = self._registry.lookup(command)
        if definition is not None and definition.rate_limit is not None:
            decision = self._limiter.check_and_record(
                sender.handle, command, definition.rate_limit
            )
            if isinstance(decision, Rejected):
                await self._notify(
                    message,
                    rate_limited_text(sender.handle, decision, now=self._clock()),
                )
                return "rate_limited"

        if definition is None:
            logger.debug("command.unknown", command=command, user=sender.handle)
            return "unknown"

        logger.info(
            "command.dispatched",
            command=command,
            user=sender.handle,
            args=list(args),
        )
        try:
            result = definition.handler(message, *args)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "command.failed",
                command=command,
                user=sender.handle,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return "failed"
        return "dispatched"

    async def _notify(self, message: IncomingMessage, text: str) -> None:
        notice = Notice(service=self._service, reply_to=message, text=text)
        try:
            await self._notices.send(notice)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "notice.failed",
                user=message.sender.handle,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
