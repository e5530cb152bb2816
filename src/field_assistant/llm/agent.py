"""Azure AI Foundry agent client.

Invokes the preview Agents "create response" operation. Instructions,
tools and safety policy live on the agent itself; this client only sends
the conversation as input items and never synthesizes agent configuration.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from field_assistant.config import ProviderSettings

from .exceptions import EmptyResponseError, UpstreamError
from .retry import transient_retry
from .schemas import ChatTurn, CompletionResult, build_usage

logger = structlog.get_logger()

AGENT_CLIENT_NAME = "field-assistant"
AGENT_ERROR_PREFIX = "Azure AI Foundry agent request failed"


# =============================================================================
# Response payload
# =============================================================================


@dataclass(frozen=True)
class TextValue:
    """Content part shaped ``{"type": "output_text", "text": {"value": ...}}``."""

    text: str


@dataclass(frozen=True)
class RawValue:
    """Content part shaped ``{"type": "text", "value": ...}``."""

    text: str


AgentContent = TextValue | RawValue


class AgentOutputBlock(BaseModel):
    """One output item of an agent response."""

    type: str | None = None
    role: str | None = None
    content: list[Any] | None = None

    model_config = ConfigDict(extra="ignore")


class AgentResponsePayload(BaseModel):
    """Subset of the agent response we rely on."""

    id: str | None = None
    status: str | None = None
    output: list[AgentOutputBlock] | None = Field(default=None)
    usage: dict[str, Any] | None = None
    warnings: Any = None

    model_config = ConfigDict(extra="ignore")


def parse_content_part(part: Any) -> AgentContent | None:
    """Resolve a raw content part into one of the known shapes.

    Preview API versions disagree on where assistant text lives; this is the
    only place that knows about either layout.

    Args:
        part: Raw content entry from an output block

    Returns:
        Tagged content, or None for unrecognized parts
    """
    if not isinstance(part, dict):
        return None

    nested = part.get("text")
    if isinstance(nested, dict):
        value = nested.get("value")
        if isinstance(value, str) and value:
            return TextValue(value)

    value = part.get("value")
    if isinstance(value, str):
        return RawValue(value)

    return None


def warning_messages(raw: Any) -> list[str]:
    """Warning texts; entries without a usable message get a generic one."""
    if not isinstance(raw, list):
        return []
    messages = []
    for entry in raw:
        message = entry.get("message") if isinstance(entry, dict) else None
        messages.append(message if isinstance(message, str) and message else "Agent warning")
    return messages


def content_text(content: AgentContent) -> str:
    match content:
        case TextValue(text=text) | RawValue(text=text):
            return text


def extract_assistant_text(payload: AgentResponsePayload) -> str:
    """Concatenate trimmed assistant fragments separated by a blank line."""
    fragments: list[str] = []
    for block in payload.output or []:
        if block.role != "assistant" or not block.content:
            continue
        for part in block.content:
            content = parse_content_part(part)
            if content is None:
                continue
            text = content_text(content).strip()
            if text:
                fragments.append(text)
    return "\n\n".join(fragments)


# =============================================================================
# Client
# =============================================================================


class AgentClient:
    """Stateless agent invocation; every request starts a fresh run."""

    mode = "agent"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize agent client.

        Args:
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self._transport = transport

    async def complete(
        self,
        conversation: Sequence[ChatTurn],
        settings: ProviderSettings,
    ) -> CompletionResult:
        """Invoke the agent with the conversation as input items.

        Args:
            conversation: Normalized turns
            settings: Complete provider settings (agent mode)

        Returns:
            Normalized completion result

        Raises:
            UpstreamError: Error status, request failure or empty output
        """
        url = build_agent_url(settings)
        payload = build_agent_payload(conversation)
        headers = {"Content-Type": "application/json", "api-key": settings.api_key or ""}

        logger.debug(
            "agent_request_sending",
            url=url,
            api_version=settings.effective_api_version,
            message_count=len(conversation),
        )

        try:
            async with httpx.AsyncClient(
                timeout=settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                async for attempt in transient_retry(settings.max_retries):
                    with attempt:
                        response = await client.post(
                            url,
                            params={"api-version": settings.effective_api_version},
                            json=payload,
                            headers=headers,
                        )
        except httpx.HTTPError as e:
            reason = str(e) or type(e).__name__
            raise UpstreamError(f"{AGENT_ERROR_PREFIX}: {reason}", cause=e) from e

        if not response.is_success:
            detail = response.text or response.reason_phrase
            raise UpstreamError(
                f"{AGENT_ERROR_PREFIX}: Agent invocation failed "
                f"({response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            data = AgentResponsePayload.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(
                f"{AGENT_ERROR_PREFIX}: Agent returned an unreadable payload",
                status_code=response.status_code,
                cause=e,
            ) from e

        logger.debug("agent_response_received", response_id=data.id, status=data.status)

        return self._to_result(data)

    def _to_result(self, data: AgentResponsePayload) -> CompletionResult:
        combined = extract_assistant_text(data)
        if not combined:
            raise EmptyResponseError(f"{AGENT_ERROR_PREFIX}: Agent returned empty output segment")

        warnings = warning_messages(data.warnings)

        logger.debug("agent_text_parsed", characters=len(combined))

        return CompletionResult(
            content=combined,
            usage=build_usage(data.usage),
            warnings=warnings or None,
        )


def build_agent_url(settings: ProviderSettings) -> str:
    agent_id = quote(settings.agent_id or "", safe="")
    return f"{settings.endpoint}/openai/agents/{agent_id}/responses"


def build_agent_payload(conversation: Sequence[ChatTurn]) -> dict[str, Any]:
    return {
        "input": [{"role": turn.role, "content": turn.content} for turn in conversation],
        "metadata": {
            "client": AGENT_CLIENT_NAME,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    }
