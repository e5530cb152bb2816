"""Event-driven observability for the chat broker.

The broker emits lifecycle events on an EventBus; handlers turn them into
logs and traces without the broker knowing which backends are wired in.
"""

from .bus import EventBus
from .types import (
    ChatCompletedEvent,
    ChatEndedEvent,
    ChatFailedEvent,
    ChatStartedEvent,
    ChatTurnEvent,
    Event,
    EventType,
    RequestContext,
)

__all__ = [
    # Bus
    "EventBus",
    # Types
    "ChatCompletedEvent",
    "ChatEndedEvent",
    "ChatFailedEvent",
    "ChatStartedEvent",
    "ChatTurnEvent",
    "Event",
    "EventType",
    "RequestContext",
]
