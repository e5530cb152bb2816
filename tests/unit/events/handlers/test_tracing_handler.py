"""Tests for TracingEventHandler."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from field_assistant.events.handlers.tracing_handler import TracingEventHandler
from field_assistant.events.types import (
    ChatCompletedEvent,
    ChatEndedEvent,
    ChatFailedEvent,
    ChatStartedEvent,
    ChatTurnEvent,
    RequestContext,
)


@pytest.fixture
def context() -> RequestContext:
    return RequestContext.create("req-trace")


@pytest.fixture
def span() -> MagicMock:
    return MagicMock()


@pytest.fixture
def tracer(span: MagicMock) -> MagicMock:
    """Enabled tracer returning a mock root span."""
    mock_tracer = MagicMock()
    mock_tracer.enabled = True
    mock_tracer.start_request_span.return_value = span
    return mock_tracer


class TestTracingEventHandler:
    """Tests for TracingEventHandler."""

    async def test_disabled_tracer_is_noop(self, context: RequestContext) -> None:
        tracer = MagicMock()
        tracer.enabled = False
        handler = TracingEventHandler(tracer)

        await handler.handle(ChatStartedEvent(**context.model_dump()))

        tracer.start_request_span.assert_not_called()

    async def test_started_opens_request_span(
        self, tracer: MagicMock, context: RequestContext
    ) -> None:
        handler = TracingEventHandler(tracer)

        await handler.handle(ChatStartedEvent(**context.model_dump(), body_bytes=64))

        tracer.start_request_span.assert_called_once()
        call = tracer.start_request_span.call_args
        assert call.args == ("req-trace",)
        assert call.kwargs["metadata"]["body_bytes"] == 64

    async def test_turn_creates_child_span(
        self, tracer: MagicMock, span: MagicMock, context: RequestContext
    ) -> None:
        handler = TracingEventHandler(tracer)
        await handler.handle(ChatStartedEvent(**context.model_dump()))

        await handler.handle(
            ChatTurnEvent(**context.model_dump(), index=0, role="user", characters=5)
        )

        span.start_span.assert_called_once()
        assert span.start_span.call_args.kwargs["metadata"] == {
            "role": "user",
            "position": 0,
            "characters": 5,
        }
        span.start_span.return_value.end.assert_called_once()

    async def test_completed_records_usage(
        self, tracer: MagicMock, span: MagicMock, context: RequestContext
    ) -> None:
        handler = TracingEventHandler(tracer)
        await handler.handle(ChatStartedEvent(**context.model_dump()))

        await handler.handle(
            ChatCompletedEvent(
                **context.model_dump(),
                mode="direct",
                message_count=1,
                characters=7,
                prompt_tokens=5,
                completion_tokens=2,
                total_tokens=7,
            )
        )

        metadata = span.update.call_args.kwargs["metadata"]
        assert metadata["total_tokens"] == 7
        assert metadata["mode"] == "direct"

    async def test_failed_marks_error_level(
        self, tracer: MagicMock, span: MagicMock, context: RequestContext
    ) -> None:
        handler = TracingEventHandler(tracer)
        await handler.handle(ChatStartedEvent(**context.model_dump()))

        await handler.handle(
            ChatFailedEvent(
                **context.model_dump(),
                error="upstream down",
                code="UPSTREAM_ERROR",
                status_code=500,
            )
        )

        kwargs = span.update.call_args.kwargs
        assert kwargs["level"] == "ERROR"
        assert kwargs["status_message"] == "upstream down"

    async def test_ended_closes_and_forgets_span(
        self, tracer: MagicMock, span: MagicMock, context: RequestContext
    ) -> None:
        handler = TracingEventHandler(tracer)
        await handler.handle(ChatStartedEvent(**context.model_dump()))

        await handler.handle(
            ChatEndedEvent(**context.model_dump(), outcome="success", duration_ms=3.0)
        )

        span.end.assert_called_once()
        assert handler._spans == {}

    async def test_unsampled_request_is_ignored(
        self, tracer: MagicMock, context: RequestContext
    ) -> None:
        """Events for a request without a span are dropped."""
        tracer.start_request_span.return_value = None
        handler = TracingEventHandler(tracer)
        await handler.handle(ChatStartedEvent(**context.model_dump()))

        await handler.handle(
            ChatEndedEvent(**context.model_dump(), outcome="error", duration_ms=1.0)
        )

        assert handler._spans == {}

    async def test_shared_request_id_keeps_spans_apart(self, tracer: MagicMock) -> None:
        """Two in-flight requests with the same request id own separate spans."""
        first_ctx = RequestContext.create("dup")
        second_ctx = RequestContext.create("dup")
        first_span, second_span = MagicMock(), MagicMock()
        tracer.start_request_span.side_effect = [first_span, second_span]
        handler = TracingEventHandler(tracer)

        await handler.handle(ChatStartedEvent(**first_ctx.model_dump()))
        await handler.handle(ChatStartedEvent(**second_ctx.model_dump()))
        await handler.handle(
            ChatEndedEvent(**first_ctx.model_dump(), outcome="success", duration_ms=2.0)
        )
        await handler.handle(
            ChatTurnEvent(**second_ctx.model_dump(), index=0, role="user", characters=5)
        )

        first_span.end.assert_called_once()
        second_span.end.assert_not_called()
        second_span.start_span.assert_called_once()
        first_span.start_span.assert_not_called()
        assert list(handler._spans) == [second_ctx.thread_run_id]
