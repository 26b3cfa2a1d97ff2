"""Startup-time registration surface for commands and aliases.

Commands are collected on a :class:`CommandSet` and frozen into a
:class:`~streamcmd.registry.CommandRegistry` with :meth:`CommandSet.build`::

    commands = CommandSet()

    @commands.define_command("ping", rate_limit=2, rate_limit_reset=1)
    async def ping(message, *args):
        ...

    commands.define_alias("p", "ping")
    registry = commands.build()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .config import ConfigError
from .logging import get_logger
from .model import CommandDefinition, CommandHandler, CommandId, RateLimitPolicy
from .registry import CommandRegistry

logger = get_logger(__name__)


def _policy_from(
    slug: CommandId,
    rate_limit: int | Mapping[str, Any] | None,
    rate_limit_reset: int | None,
) -> RateLimitPolicy | None:
    if isinstance(rate_limit, Mapping):
        max_count = rate_limit.get("max_count")
        window_minutes = rate_limit.get("window_minutes")
    else:
        max_count = rate_limit
        window_minutes = rate_limit_reset
    if max_count is None or window_minutes is None:
        if max_count is not None or window_minutes is not None:
            logger.debug(
                "command.rate_limit_incomplete",
                command=slug,
                max_count=max_count,
                window_minutes=window_minutes,
            )
        return None
    return RateLimitPolicy(max_count=max_count, window_minutes=window_minutes)


class CommandSet:
    def __init__(self) -> None:
        self._definitions: dict[CommandId, CommandDefinition] = {}
        self._aliases: dict[CommandId, CommandId] = {}

    def define_command(
        self,
        slug: CommandId,
        *,
        private: bool = False,
        rate_limit: int | Mapping[str, Any] | None = None,
        rate_limit_reset: int | None = None,
        handler: CommandHandler | None = None,
    ) -> Any:
        """Register ``handler`` under ``slug``.

        ``rate_limit`` is the number of calls allowed per ``rate_limit_reset``
        minutes. A policy is attached only when both are given; a mapping
        with ``max_count`` and ``window_minutes`` keys is accepted in place of
        the pair. Without ``handler`` this returns a decorator.
        """
        policy = _policy_from(slug, rate_limit, rate_limit_reset)

        def _register(func: CommandHandler) -> CommandHandler:
            if slug in self._definitions:
                logger.debug("command.redefined", command=slug)
            self._definitions[slug] = CommandDefinition(
                slug=slug,
                handler=func,
                private=private,
                rate_limit=policy,
            )
            return func

        if handler is None:
            return _register
        return _register(handler)

    def define_alias(self, alias_slug: CommandId, target_slug: CommandId) -> None:
        self._aliases[alias_slug] = target_slug

    @property
    def slugs(self) -> tuple[CommandId, ...]:
        return tuple(self._definitions)

    def build(self, *, strict_aliases: bool = False) -> CommandRegistry:
        registry = CommandRegistry()
        for slug, definition in self._definitions.items():
            registry.register(slug, definition)
        for alias, target in self._aliases.items():
            registry.register_alias(alias, target)
        missing = registry.unresolved_aliases()
        if missing and strict_aliases:
            details = ", ".join(
                f"{alias!r} -> {target!r}" for alias, target in sorted(missing.items())
            )
            raise ConfigError(f"Aliases point at undefined commands: {details}")
        for alias, target in missing.items():
            logger.warning("command.alias_unresolved", alias=alias, target=target)
        return registry


__all__ = ["CommandSet"]
