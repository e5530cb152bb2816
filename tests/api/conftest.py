"""API test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from field_assistant.api.main import create_app
from field_assistant.config import ProviderSettings, get_provider_settings
from field_assistant.events import Event
from field_assistant.llm import AgentClient, ChatDispatcher


class EventRecorder:
    """Collects every event published on the app bus."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def handle(self, event: Event) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [str(event.type) for event in self.events]


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI app with an unconfigured provider."""
    app = create_app()
    app.dependency_overrides[get_provider_settings] = lambda: ProviderSettings()
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def recorder(app: FastAPI) -> EventRecorder:
    """Record lifecycle events emitted during a test."""
    recorder = EventRecorder()
    app.state.event_bus.subscribe_all(recorder.handle)
    return recorder


@pytest.fixture
def use_provider(app: FastAPI) -> Callable[[ProviderSettings], None]:
    """Inject provider settings for subsequent requests."""

    def _use(settings: ProviderSettings) -> None:
        app.dependency_overrides[get_provider_settings] = lambda: settings

    return _use


@pytest.fixture
def use_agent_transport(app: FastAPI) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """Route agent calls to an in-process handler."""

    def _use(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        app.state.dispatcher = ChatDispatcher(
            agent=AgentClient(transport=httpx.MockTransport(handler)),
        )

    return _use
