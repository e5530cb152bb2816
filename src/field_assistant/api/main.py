"""FastAPI application factory.

Run with ``uvicorn field_assistant.api:create_app --factory``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from field_assistant.config import APISettings, get_api_settings, get_logging_settings
from field_assistant.events import EventBus
from field_assistant.events.handlers import LoggingEventHandler, TracingEventHandler
from field_assistant.llm import ChatDispatcher
from field_assistant.tracing import get_langfuse_tracer
from field_assistant.utils import setup_logging

from .handlers import register_exception_handlers
from .middleware import LoggingMiddleware, RequestIDMiddleware
from .routers import chat_router, health_router

logger = structlog.get_logger()

OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness and readiness probes"},
    {"name": "chat", "description": "Chat completion through Azure AI Foundry"},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Flush pending traces when the server stops."""
    logger.info("starting_application")
    yield
    logger.info("shutting_down_application")
    get_langfuse_tracer().shutdown()


def create_event_bus() -> EventBus:
    """Event bus with the logging and tracing observers attached.

    Returns:
        EventBus ready for the chat service
    """
    event_bus = EventBus()
    event_bus.subscribe_all(LoggingEventHandler().handle)
    event_bus.subscribe_all(TracingEventHandler(get_langfuse_tracer()).handle)
    return event_bus


def _add_middleware(app: FastAPI, settings: APISettings) -> None:
    # Last added runs first: CORS, then request id, then access log
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_api_settings()
    log_settings = get_logging_settings()
    setup_logging(
        verbose=log_settings.verbose or settings.debug,
        json_output=log_settings.json_output,
    )

    app = FastAPI(
        title=settings.title,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.event_bus = create_event_bus()
    app.state.dispatcher = ChatDispatcher()

    _add_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(chat_router, prefix=settings.api_prefix)

    logger.info(
        "application_configured",
        version=settings.version,
        api_prefix=settings.api_prefix,
        verbose=log_settings.verbose,
    )
    return app
