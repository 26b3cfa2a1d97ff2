from __future__ import annotations

from importlib.metadata import EntryPoint

from .commands import CommandSet
from .config import ConfigError
from .logging import get_logger
from .model import CommandHandler
from .registry import CommandRegistry
from .settings import StreamCommandSettings

logger = get_logger(__name__)

HANDLER_GROUP = "streamcmd.handlers"


def load_handler(slug: str, reference: str) -> CommandHandler:
    entrypoint = EntryPoint(name=slug, value=reference, group=HANDLER_GROUP)
    try:
        handler = entrypoint.load()
    except (ImportError, AttributeError) as exc:
        raise ConfigError(
            f"Failed to load handler {reference!r} for command {slug!r}: {exc}"
        ) from exc
    if not callable(handler):
        raise ConfigError(
            f"Handler {reference!r} for command {slug!r} is not callable."
        )
    return handler


def command_set_from_settings(settings: StreamCommandSettings) -> CommandSet:
    commands = CommandSet()
    for slug, entry in settings.commands.items():
        commands.define_command(
            slug,
            private=entry.private,
            rate_limit=entry.rate_limit,
            rate_limit_reset=entry.rate_limit_reset,
            handler=load_handler(slug, entry.handler),
        )
    for alias, target in settings.aliases.items():
        commands.define_alias(alias, target)
    return commands


def build_registry(settings: StreamCommandSettings) -> CommandRegistry:
    registry = command_set_from_settings(settings).build(
        strict_aliases=settings.strict_aliases
    )
    logger.debug(
        "registry.loaded",
        commands=len(registry.commands),
        aliases=len(registry.aliases),
    )
    return registry
