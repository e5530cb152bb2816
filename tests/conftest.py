"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from field_assistant.config import (
    ProviderSettings,
    get_api_settings,
    get_langfuse_settings,
    get_logging_settings,
)
from field_assistant.llm import ChatTurn
from field_assistant.tracing import get_langfuse_tracer

_ISOLATED_PREFIXES = ("AI_FOUNDRY_", "LANGFUSE_", "API_", "LOG_")


def _clear_caches() -> None:
    get_api_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_langfuse_settings.cache_clear()
    get_langfuse_tracer.cache_clear()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Run every test without provider, tracing or .env configuration."""
    for key in list(os.environ):
        if key.startswith(_ISOLATED_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the settings sources
    monkeypatch.chdir(tmp_path)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def direct_settings() -> ProviderSettings:
    """Complete direct-mode configuration."""
    return ProviderSettings(
        endpoint="https://example.services.ai.azure.com",
        api_key="test-key",
        chat_deployment="gpt-4o-mini",
    )


@pytest.fixture
def agent_settings() -> ProviderSettings:
    """Complete agent-mode configuration."""
    return ProviderSettings(
        endpoint="https://example.services.ai.azure.com",
        api_key="test-key",
        agent_id="asst_123",
    )


@pytest.fixture
def conversation() -> list[ChatTurn]:
    """Short normalized conversation."""
    return [
        ChatTurn(role="system", content="Be brief."),
        ChatTurn(role="user", content="Hello"),
    ]
