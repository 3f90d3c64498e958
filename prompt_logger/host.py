"""Host-side collaborators: the event bus and the context snapshot."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

MESSAGE_SENT = "message_sent"

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    """Named events with async handlers, dispatched one at a time in order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def off(self, event_type: str, handler: Handler) -> None:
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)

    def handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, []))

    async def emit(self, event_type: str, payload: Any = None) -> None:
        handlers = list(self._handlers.get(event_type, []))
        logger.debug("Dispatching %s to %d handler(s)", event_type, len(handlers))
        for handler in handlers:
            await handler(payload)


@dataclass
class HostContext:
    """Live snapshot of the host's chat state. Every field is opaque."""

    name2: str | None = None
    chat: list | None = None
    world_info: Any = None
    characters: Any = None
    groups: Any = None
    chat_metadata: Any = None
    extra: dict = field(default_factory=dict)

    _ALIASES = {
        "name2": "name2",
        "chat": "chat",
        "worldInfo": "world_info",
        "world_info": "world_info",
        "characters": "characters",
        "groups": "groups",
        "chatMetadata": "chat_metadata",
        "chat_metadata": "chat_metadata",
    }

    @classmethod
    def from_mapping(cls, raw: dict | None) -> "HostContext":
        """Accept the host's camelCase or snake_case keys; keep the rest in ``extra``."""
        values: dict = {}
        extra = {}
        for key, value in (raw or {}).items():
            attr = cls._ALIASES.get(key)
            if attr:
                values[attr] = value
            else:
                extra[key] = value
        return cls(extra=extra, **values)


def static_context(context: HostContext) -> Callable[[], HostContext]:
    """Context provider that always returns the same snapshot."""
    return lambda: context
