"""In-process publish/subscribe for chat lifecycle events.

The broker publishes; logging and tracing observers subscribe. Observers
never see each other's failures and never affect the request outcome.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable

import structlog

from .types import Event, EventType

logger = structlog.get_logger()

EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """Routes each event to handlers registered for its type plus wildcard handlers.

    Handlers for one event run concurrently; events themselves are delivered
    in the order they are emitted because ``emit`` waits for every handler.
    """

    def __init__(self) -> None:
        self._by_type: dict[str, list[EventHandler]] = defaultdict(list)
        self._wildcard: list[EventHandler] = []

    def subscribe(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Register ``handler`` for one event type.

        Args:
            event_type: Event type, as enum member or its string value
            handler: Coroutine function receiving the event
        """
        key = str(event_type)
        self._by_type[key].append(handler)
        logger.debug("event_handler_subscribed", event_type=key)

    def subscribe_all(self, handler: EventHandler) -> None:
        """Register ``handler`` for every event type."""
        self._wildcard.append(handler)
        logger.debug("event_handler_subscribed", event_type="*")

    def unsubscribe(self, event_type: EventType | str, handler: EventHandler) -> bool:
        """Remove a type-specific registration.

        Returns:
            True if the handler was registered for ``event_type``
        """
        registered = self._by_type.get(str(event_type))
        if not registered or handler not in registered:
            return False
        registered.remove(handler)
        return True

    async def emit(self, event: Event) -> None:
        """Deliver ``event`` to its subscribers.

        Handler exceptions are logged with the request id and dropped.

        Args:
            event: Event to publish
        """
        key = str(event.type)
        targets = [*self._by_type.get(key, ()), *self._wildcard]
        if not targets:
            return

        outcomes = await asyncio.gather(
            *(target(event) for target in targets),
            return_exceptions=True,
        )

        for target, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.error(
                    "event_handler_failed",
                    event_type=key,
                    request_id=event.request_id,
                    handler=getattr(target, "__qualname__", repr(target)),
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )

    def clear(self) -> None:
        """Drop every registration."""
        self._by_type.clear()
        self._wildcard.clear()
