"""Event type definitions for the event bus.

Chat broker lifecycle events. Every event carries the request correlation
ids so handlers can stitch a request back together.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

__all__ = [
    "EventType",
    "RequestContext",
    "Event",
    "ChatStartedEvent",
    "ChatTurnEvent",
    "ChatCompletedEvent",
    "ChatFailedEvent",
    "ChatEndedEvent",
]


class EventType(StrEnum):
    """All event types in the system."""

    CHAT_STARTED = "chat.started"
    CHAT_TURN = "chat.turn"
    CHAT_COMPLETED = "chat.completed"
    CHAT_FAILED = "chat.failed"
    CHAT_ENDED = "chat.ended"


class RequestContext(BaseModel):
    """Per-request correlation ids. Never persisted."""

    request_id: str
    thread_id: str
    thread_run_id: str

    @classmethod
    def create(cls, request_id: str | None = None) -> RequestContext:
        """Build a context, reusing an inbound request id when available.

        Args:
            request_id: Id assigned by RequestIDMiddleware, if any

        Returns:
            Fresh RequestContext
        """
        return cls(
            request_id=request_id or str(uuid.uuid4()),
            thread_id=f"thread_{uuid.uuid4().hex}",
            thread_run_id=f"run_{uuid.uuid4().hex}",
        )


class Event(BaseModel):
    """Base class for all events.

    All events must include the correlation ids and a timestamp.
    """

    type: EventType
    request_id: str
    thread_id: str
    thread_run_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"use_enum_values": True}


class ChatStartedEvent(Event):
    """Emitted when a chat request enters the broker."""

    type: EventType = EventType.CHAT_STARTED
    body_bytes: int = 0


class ChatTurnEvent(Event):
    """Emitted once per normalized turn, in conversation order."""

    type: EventType = EventType.CHAT_TURN
    index: int  # 0-based position in the conversation sent upstream
    role: str
    characters: int


class ChatCompletedEvent(Event):
    """Emitted when a completion is ready to return."""

    type: EventType = EventType.CHAT_COMPLETED
    mode: str
    simulated: bool = False
    message_count: int
    system_injected: bool = False
    characters: int
    warning_count: int = 0
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ChatFailedEvent(Event):
    """Emitted when the request ends in an error."""

    type: EventType = EventType.CHAT_FAILED
    error: str
    code: str
    status_code: int | None = None  # upstream status when known
    mode: str | None = None
    message_count: int = 0
    input_characters: int = 0


class ChatEndedEvent(Event):
    """Emitted last for every request, whatever the outcome."""

    type: EventType = EventType.CHAT_ENDED
    outcome: Literal["success", "error"]
    duration_ms: float
