"""Chat request broker service."""

from __future__ import annotations

import time
from typing import Any

import structlog
from pydantic import ValidationError

from field_assistant.config import ProviderSettings
from field_assistant.events import (
    ChatCompletedEvent,
    ChatEndedEvent,
    ChatFailedEvent,
    ChatStartedEvent,
    ChatTurnEvent,
    Event,
    EventBus,
    RequestContext,
)
from field_assistant.llm import (
    ChatDispatcher,
    ChatTurn,
    CompletionResult,
    RawChatTurn,
    UpstreamError,
    normalize_turns,
)

from ..exceptions import (
    INVALID_JSON_MESSAGE,
    MISSING_MESSAGES_MESSAGE,
    InvalidRequestError,
    UpstreamServiceError,
)
from ..schemas import ChatRequest

logger = structlog.get_logger()

PREVIEW_LENGTH = 120


class ChatService:
    """Broker for a single chat request.

    Parses the payload, normalizes the conversation, dispatches it to the
    configured provider and reports every stage on the event bus. Built
    per request; holds no state between requests.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        event_bus: EventBus,
        dispatcher: ChatDispatcher,
        max_body_size: int | None = None,
        verbose: bool = False,
    ) -> None:
        """Initialize chat service.

        Args:
            settings: Provider settings read for this request
            event_bus: Bus receiving lifecycle events
            dispatcher: Provider router
            max_body_size: Reject bodies larger than this many bytes
            verbose: Log previews, latency and upstream tracebacks
        """
        self.settings = settings
        self.event_bus = event_bus
        self.dispatcher = dispatcher
        self.max_body_size = max_body_size
        self.verbose = verbose

    async def complete_chat(
        self,
        body: bytes,
        context: RequestContext,
    ) -> CompletionResult:
        """Run one chat request through the broker.

        Args:
            body: Raw request body
            context: Correlation ids for this request

        Returns:
            Completion to return to the client

        Raises:
            InvalidRequestError: Payload is malformed or has no messages
            UpstreamServiceError: Provider call failed
        """
        started = time.perf_counter()
        outcome = "error"
        conversation: list[ChatTurn] = []

        await self._emit(ChatStartedEvent, context, body_bytes=len(body))

        try:
            turns = self._parse(body)
            conversation = normalize_turns(turns, self.settings.system_prompt)
            system_injected = len(conversation) > len(turns)

            if self.verbose:
                latest = conversation[-1].content if conversation else ""
                logger.debug(
                    "chat_request_received",
                    request_id=context.request_id,
                    message_count=len(conversation),
                    system_injected=system_injected,
                    preview=latest[:PREVIEW_LENGTH],
                )

            for index, turn in enumerate(conversation):
                await self._emit(
                    ChatTurnEvent,
                    context,
                    index=index,
                    role=turn.role,
                    characters=len(turn.content),
                )

            try:
                dispatched = await self.dispatcher.dispatch(conversation, self.settings)
            except UpstreamError as e:
                self._log_upstream_failure(e, context)
                await self._emit(
                    ChatFailedEvent,
                    context,
                    error=e.message,
                    code="UPSTREAM_ERROR",
                    status_code=e.status_code,
                    mode=str(self.settings.mode),
                    message_count=len(conversation),
                    input_characters=_count_characters(conversation),
                )
                raise UpstreamServiceError(e.message, upstream_status=e.status_code) from e

            result = dispatched.result
            usage = result.usage
            await self._emit(
                ChatCompletedEvent,
                context,
                mode=str(dispatched.mode),
                simulated=dispatched.simulated,
                message_count=len(conversation),
                system_injected=system_injected,
                characters=_count_characters(conversation) + len(result.content),
                warning_count=len(result.warnings or []),
                prompt_tokens=usage.prompt_tokens if usage else None,
                completion_tokens=usage.completion_tokens if usage else None,
                total_tokens=usage.total_tokens if usage else None,
            )
            outcome = "success"
            return result

        except InvalidRequestError as e:
            await self._emit(
                ChatFailedEvent,
                context,
                error=e.message,
                code=e.code,
            )
            raise

        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            if self.verbose:
                logger.debug(
                    "chat_request_finished",
                    request_id=context.request_id,
                    outcome=outcome,
                    duration_ms=round(duration_ms, 2),
                )
            await self._emit(
                ChatEndedEvent,
                context,
                outcome=outcome,
                duration_ms=round(duration_ms, 2),
            )

    def _parse(self, body: bytes) -> list[RawChatTurn]:
        """Validate the raw body into client turns.

        Raises:
            InvalidRequestError: Malformed, oversized or empty payload
        """
        if self.max_body_size is not None and len(body) > self.max_body_size:
            logger.warning(
                "chat_request_too_large",
                size=len(body),
                limit=self.max_body_size,
            )
            raise InvalidRequestError(INVALID_JSON_MESSAGE)

        try:
            request = ChatRequest.model_validate_json(body)
        except ValidationError as e:
            logger.warning("chat_request_invalid", errors=e.error_count())
            raise InvalidRequestError(INVALID_JSON_MESSAGE) from e

        if not request.messages:
            raise InvalidRequestError(MISSING_MESSAGES_MESSAGE)
        return request.messages

    def _log_upstream_failure(self, error: UpstreamError, context: RequestContext) -> None:
        if self.verbose:
            logger.exception(
                "chat_upstream_failed",
                request_id=context.request_id,
                status_code=error.status_code,
                error=error.message,
            )
        else:
            logger.warning(
                "chat_upstream_failed",
                request_id=context.request_id,
                status_code=error.status_code,
                error=error.message,
            )

    async def _emit(
        self,
        event_cls: type[Event],
        context: RequestContext,
        **fields: Any,
    ) -> None:
        """Publish a lifecycle event; failures never reach the caller."""
        try:
            event = event_cls(
                request_id=context.request_id,
                thread_id=context.thread_id,
                thread_run_id=context.thread_run_id,
                **fields,
            )
            await self.event_bus.emit(event)
        except Exception as e:
            logger.warning(
                "chat_event_emit_failed",
                request_id=context.request_id,
                event_type=event_cls.__name__,
                error=str(e),
            )


def _count_characters(conversation: list[ChatTurn]) -> int:
    return sum(len(turn.content) for turn in conversation)
