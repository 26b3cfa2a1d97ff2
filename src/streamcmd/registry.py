from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .model import CommandDefinition, CommandId


class CommandRegistry:
    def __init__(self) -> None:
        self._commands: dict[CommandId, CommandDefinition] = {}
        self._aliases: dict[CommandId, CommandId] = {}

    @property
    def commands(self) -> Mapping[CommandId, CommandDefinition]:
        return MappingProxyType(self._commands)

    @property
    def aliases(self) -> Mapping[CommandId, CommandId]:
        return MappingProxyType(self._aliases)

    def __contains__(self, slug: object) -> bool:
        return slug in self._commands

    def register(self, slug: CommandId, definition: CommandDefinition) -> None:
        self._commands[slug] = definition

    def register_alias(self, alias_slug: CommandId, target_slug: CommandId) -> None:
        # Target existence is checked lazily, at lookup time.
        self._aliases[alias_slug] = target_slug

    def resolve(self, slug: CommandId) -> CommandId:
        # Single hop: an alias pointing at another alias stays unresolved.
        return self._aliases.get(slug, slug)

    def lookup(self, slug: CommandId) -> CommandDefinition | None:
        return self._commands.get(slug)

    def unresolved_aliases(self) -> dict[CommandId, CommandId]:
        return {
            alias: target
            for alias, target in self._aliases.items()
            if target not in self._commands
        }
