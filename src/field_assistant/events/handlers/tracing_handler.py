"""Tracing event handler.

Maps chat lifecycle events onto Langfuse spans: a root span per request
opened on ``chat.started`` and closed on ``chat.ended``, with a child span
per conversation turn.
"""

from __future__ import annotations

from typing import Any

import structlog

from field_assistant.events.types import (
    ChatCompletedEvent,
    ChatEndedEvent,
    ChatFailedEvent,
    ChatStartedEvent,
    ChatTurnEvent,
    Event,
)
from field_assistant.tracing import LangfuseTracer, get_langfuse_tracer

logger = structlog.get_logger()


class TracingEventHandler:
    """Forwards broker events to Langfuse.

    Open spans are keyed by the server-minted run id, so requests sharing a
    client-supplied request id still get separate spans.
    """

    def __init__(self, tracer: LangfuseTracer | None = None) -> None:
        """Initialize tracing handler.

        Args:
            tracer: Tracer to use (defaults to the global tracer)
        """
        self.tracer = tracer or get_langfuse_tracer()
        self._spans: dict[str, Any] = {}

    async def handle(self, event: Event) -> None:
        """Record the event on the request's span.

        Args:
            event: Event to trace
        """
        if not self.tracer.enabled:
            return

        if isinstance(event, ChatStartedEvent):
            self._start(event)
            return

        span = self._spans.get(event.thread_run_id)
        if span is None:
            return

        if isinstance(event, ChatTurnEvent):
            child = span.start_span(
                name="chat.turn",
                metadata={
                    "role": event.role,
                    "position": event.index,
                    "characters": event.characters,
                },
            )
            child.end()
        elif isinstance(event, ChatCompletedEvent):
            span.update(
                output={"characters": event.characters, "warnings": event.warning_count},
                metadata={
                    "mode": event.mode,
                    "simulated": event.simulated,
                    "message_count": event.message_count,
                    "prompt_tokens": event.prompt_tokens,
                    "completion_tokens": event.completion_tokens,
                    "total_tokens": event.total_tokens,
                },
            )
        elif isinstance(event, ChatFailedEvent):
            span.update(
                level="ERROR",
                status_message=event.error,
                metadata={
                    "code": event.code,
                    "upstream_status": event.status_code,
                    "mode": event.mode,
                    "input_characters": event.input_characters,
                },
            )
        elif isinstance(event, ChatEndedEvent):
            self._spans.pop(event.thread_run_id, None)
            span.update(metadata={"outcome": event.outcome, "duration_ms": event.duration_ms})
            span.end()

    def _start(self, event: ChatStartedEvent) -> None:
        span = self.tracer.start_request_span(
            event.request_id,
            metadata={
                "thread_id": event.thread_id,
                "thread_run_id": event.thread_run_id,
                "body_bytes": event.body_bytes,
            },
        )
        if span is not None:
            self._spans[event.thread_run_id] = span
