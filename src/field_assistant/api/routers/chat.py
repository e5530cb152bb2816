"""Chat completion endpoint."""

from fastapi import APIRouter, Request

from field_assistant.events import RequestContext

from ..dependencies import (
    APIConfig,
    AppDispatcher,
    AppEventBus,
    LoggingConfig,
    ProviderConfig,
)
from ..schemas import CompletionResult, ErrorResponse
from ..services import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "",
    response_model=CompletionResult,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Complete a chat conversation",
)
async def complete_chat(
    request: Request,
    provider: ProviderConfig,
    api_settings: APIConfig,
    logging_settings: LoggingConfig,
    event_bus: AppEventBus,
    dispatcher: AppDispatcher,
) -> CompletionResult:
    """Answer a conversation through the configured Azure AI Foundry mode.

    The body is read raw so that malformed payloads are reported with the
    chat error contract rather than FastAPI's validation format.

    Args:
        request: Incoming request carrying ``{messages: [{role, content}]}``
        provider: Provider settings read for this request
        api_settings: API settings (body size limit)
        logging_settings: Logging settings (verbosity)
        event_bus: Lifecycle event bus
        dispatcher: Provider router

    Returns:
        Completion with optional warnings and usage
    """
    body = await request.body()
    context = RequestContext.create(getattr(request.state, "request_id", None))

    service = ChatService(
        settings=provider,
        event_bus=event_bus,
        dispatcher=dispatcher,
        max_body_size=api_settings.max_request_body_size,
        verbose=logging_settings.verbose,
    )
    return await service.complete_chat(body, context)
