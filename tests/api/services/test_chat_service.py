"""Chat service tests."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from field_assistant.api.exceptions import InvalidRequestError, UpstreamServiceError
from field_assistant.api.services.chat_service import ChatService
from field_assistant.config import ProviderMode, ProviderSettings
from field_assistant.events import EventBus, RequestContext
from field_assistant.llm import (
    ChatDispatcher,
    CompletionResult,
    DispatchOutcome,
    UpstreamError,
    UsageInfo,
)


def _body(payload: object) -> bytes:
    return json.dumps(payload).encode()


@pytest.fixture
def event_bus() -> MagicMock:
    bus = MagicMock(spec=EventBus)
    bus.emit = AsyncMock()
    return bus


@pytest.fixture
def dispatcher() -> MagicMock:
    mock = MagicMock(spec=ChatDispatcher)
    mock.dispatch = AsyncMock(
        return_value=DispatchOutcome(
            result=CompletionResult(
                content="Inspect the pump.",
                usage=UsageInfo(prompt_tokens=5, completion_tokens=2, total_tokens=7),
            ),
            mode=ProviderMode.DIRECT,
        )
    )
    return mock


@pytest.fixture
def context() -> RequestContext:
    return RequestContext.create("req-svc")


def _service(
    event_bus: MagicMock,
    dispatcher: MagicMock,
    settings: ProviderSettings | None = None,
    **kwargs,
) -> ChatService:
    return ChatService(
        settings=settings or ProviderSettings(),
        event_bus=event_bus,
        dispatcher=dispatcher,
        **kwargs,
    )


def _emitted(event_bus: MagicMock) -> list:
    return [call.args[0] for call in event_bus.emit.await_args_list]


class TestCompleteChat:
    """Tests for ChatService.complete_chat."""

    async def test_returns_dispatched_result(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        service = _service(event_bus, dispatcher)

        result = await service.complete_chat(
            _body({"messages": [{"role": "user", "content": "Pump pressure low?"}]}),
            context,
        )

        assert result.content == "Inspect the pump."
        conversation = dispatcher.dispatch.await_args.args[0]
        assert [(t.role, t.content) for t in conversation] == [("user", "Pump pressure low?")]

    async def test_normalizes_before_dispatch(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        settings = ProviderSettings(system_prompt="You help field technicians.")
        service = _service(event_bus, dispatcher, settings)

        await service.complete_chat(
            _body({"messages": [{"content": "x" * 7000}]}),
            context,
        )

        conversation = dispatcher.dispatch.await_args.args[0]
        assert conversation[0].role == "system"
        assert conversation[1].role == "user"
        assert len(conversation[1].content) == 6000
        assert dispatcher.dispatch.await_args.args[1] is settings

    async def test_emits_lifecycle_events(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        service = _service(event_bus, dispatcher)

        await service.complete_chat(
            _body(
                {
                    "messages": [
                        {"role": "user", "content": "Hi"},
                        {"role": "assistant", "content": "Hello"},
                        {"role": "user", "content": "Status?"},
                    ]
                }
            ),
            context,
        )

        events = _emitted(event_bus)
        assert [str(e.type) for e in events] == [
            "chat.started",
            "chat.turn",
            "chat.turn",
            "chat.turn",
            "chat.completed",
            "chat.ended",
        ]
        assert all(e.request_id == "req-svc" for e in events)
        assert all(e.thread_id == context.thread_id for e in events)
        assert [e.index for e in events[1:4]] == [0, 1, 2]
        completed = events[4]
        assert completed.mode == "direct"
        assert completed.message_count == 3
        assert completed.characters == len("HiHelloStatus?") + len("Inspect the pump.")
        assert completed.prompt_tokens == 5
        assert completed.total_tokens == 7
        assert events[-1].outcome == "success"

    async def test_simulated_completion_is_flagged(
        self, event_bus: MagicMock, context: RequestContext
    ) -> None:
        service = _service(event_bus, ChatDispatcher())

        result = await service.complete_chat(
            _body({"messages": [{"role": "user", "content": "Hello"}]}),
            context,
        )

        assert result.content.startswith("WARNING:")
        completed = _emitted(event_bus)[-2]
        assert completed.simulated is True
        assert completed.warning_count == 1
        assert completed.total_tokens is None


class TestInvalidPayloads:
    """Tests for payload validation."""

    @pytest.mark.parametrize(
        "body",
        [
            b"{broken",
            b"[]",
            b"null",
            b'{"messages": "hello"}',
            b'{"messages": [{"role": "robot", "content": "x"}]}',
            b'{"messages": [{"role": "user", "content": 42}]}',
        ],
    )
    async def test_invalid_json_payload(
        self,
        event_bus: MagicMock,
        dispatcher: MagicMock,
        context: RequestContext,
        body: bytes,
    ) -> None:
        service = _service(event_bus, dispatcher)

        with pytest.raises(InvalidRequestError, match="Invalid JSON payload"):
            await service.complete_chat(body, context)

        dispatcher.dispatch.assert_not_called()

    @pytest.mark.parametrize("payload", [{}, {"messages": []}, {"messages": None}])
    async def test_missing_messages(
        self,
        event_bus: MagicMock,
        dispatcher: MagicMock,
        context: RequestContext,
        payload: dict,
    ) -> None:
        service = _service(event_bus, dispatcher)

        with pytest.raises(InvalidRequestError, match="Missing chat messages"):
            await service.complete_chat(_body(payload), context)

    async def test_body_size_limit(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        service = _service(event_bus, dispatcher, max_body_size=10)

        with pytest.raises(InvalidRequestError, match="Invalid JSON payload"):
            await service.complete_chat(
                _body({"messages": [{"role": "user", "content": "Hello"}]}),
                context,
            )

    async def test_invalid_request_events(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        service = _service(event_bus, dispatcher)

        with pytest.raises(InvalidRequestError):
            await service.complete_chat(b"{}", context)

        events = _emitted(event_bus)
        assert [str(e.type) for e in events] == ["chat.started", "chat.failed", "chat.ended"]
        assert events[1].code == "INVALID_REQUEST"
        assert events[2].outcome == "error"


class TestUpstreamFailures:
    """Tests for provider failures."""

    async def test_wraps_upstream_error(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        dispatcher.dispatch.side_effect = UpstreamError(
            "Azure AI Foundry request failed: (429) Too many requests",
            status_code=429,
        )
        service = _service(event_bus, dispatcher)

        with pytest.raises(UpstreamServiceError) as exc_info:
            await service.complete_chat(
                _body({"messages": [{"role": "user", "content": "Hi"}]}),
                context,
            )

        assert exc_info.value.message == "Azure AI Foundry request failed: (429) Too many requests"
        assert exc_info.value.status_code == 502
        assert exc_info.value.upstream_status == 429

        events = _emitted(event_bus)
        assert [str(e.type) for e in events] == [
            "chat.started",
            "chat.turn",
            "chat.failed",
            "chat.ended",
        ]
        failed = events[2]
        assert failed.status_code == 429
        assert failed.input_characters == 2
        assert failed.message_count == 1

    async def test_traceback_only_when_verbose(
        self, event_bus: MagicMock, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        dispatcher.dispatch.side_effect = UpstreamError("down")
        body = _body({"messages": [{"role": "user", "content": "Hi"}]})

        with patch("field_assistant.api.services.chat_service.logger") as mock_logger:
            with pytest.raises(UpstreamServiceError):
                await _service(event_bus, dispatcher).complete_chat(body, context)
            mock_logger.exception.assert_not_called()
            mock_logger.warning.assert_called()

            with pytest.raises(UpstreamServiceError):
                await _service(event_bus, dispatcher, verbose=True).complete_chat(body, context)
            mock_logger.exception.assert_called_once()


class TestEventEmissionFailures:
    """Event bus failures never change the response."""

    async def test_emit_failure_is_swallowed(
        self, dispatcher: MagicMock, context: RequestContext
    ) -> None:
        failing_bus = MagicMock(spec=EventBus)
        failing_bus.emit = AsyncMock(side_effect=RuntimeError("bus down"))
        service = _service(failing_bus, dispatcher)

        result = await service.complete_chat(
            _body({"messages": [{"role": "user", "content": "Hi"}]}),
            context,
        )

        assert result.content == "Inspect the pump."
