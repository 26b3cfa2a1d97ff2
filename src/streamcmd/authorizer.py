from __future__ import annotations

from .logging import get_logger
from .model import CommandId
from .registry import CommandRegistry
from .transport import Sender

logger = get_logger(__name__)


class Authorizer:
    def __init__(self, registry: CommandRegistry) -> None:
        self._registry = registry

    def is_authorized(self, command_slug: CommandId, caller: Sender) -> bool:
        definition = self._registry.lookup(command_slug)
        if definition is None or not definition.private or caller.is_me:
            return True
        logger.warning(
            "command.unauthorized",
            command=command_slug,
            user=caller.handle,
        )
        return False
