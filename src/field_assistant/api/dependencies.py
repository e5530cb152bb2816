"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from field_assistant.config import (
    APISettings,
    LoggingSettings,
    ProviderSettings,
    get_api_settings,
    get_logging_settings,
    get_provider_settings,
)
from field_assistant.events import EventBus
from field_assistant.llm import ChatDispatcher


def get_event_bus(request: Request) -> EventBus:
    """Application event bus created in ``create_app``."""
    return request.app.state.event_bus


def get_dispatcher(request: Request) -> ChatDispatcher:
    """Application provider dispatcher created in ``create_app``."""
    return request.app.state.dispatcher


# Type aliases for cleaner route signatures
ProviderConfig = Annotated[ProviderSettings, Depends(get_provider_settings)]
APIConfig = Annotated[APISettings, Depends(get_api_settings)]
LoggingConfig = Annotated[LoggingSettings, Depends(get_logging_settings)]
AppEventBus = Annotated[EventBus, Depends(get_event_bus)]
AppDispatcher = Annotated[ChatDispatcher, Depends(get_dispatcher)]
