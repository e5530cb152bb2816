"""Direct deployment client.

Calls a single Azure AI Foundry model deployment through LiteLLM's Azure
route, which issues
``POST {endpoint}/openai/deployments/{deployment}/chat/completions``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import litellm
import structlog

from field_assistant.config import ProviderSettings

from .exceptions import EmptyResponseError, UpstreamError
from .retry import transient_retry
from .schemas import ChatTurn, CompletionResult, build_usage, read_field

logger = structlog.get_logger()

DIRECT_ERROR_PREFIX = "Azure AI Foundry request failed"


class DeploymentClient:
    """Chat completions against a configured model deployment."""

    mode = "direct"

    async def complete(
        self,
        conversation: Sequence[ChatTurn],
        settings: ProviderSettings,
    ) -> CompletionResult:
        """Send the conversation verbatim to the deployment.

        Args:
            conversation: Normalized turns, system turn included
            settings: Complete provider settings (direct mode)

        Returns:
            Normalized completion result

        Raises:
            UpstreamError: Transport failure, error status or empty output
        """
        params = self._build_params(conversation, settings)

        logger.debug(
            "deployment_request_sending",
            endpoint=settings.endpoint,
            deployment=settings.chat_deployment,
            api_version=settings.api_version,
            message_count=len(conversation),
            temperature=settings.temperature,
            top_p=settings.top_p,
        )

        try:
            async for attempt in transient_retry(settings.max_retries):
                with attempt:
                    response = await litellm.acompletion(**params)
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            reason = getattr(e, "message", None) or str(e) or type(e).__name__
            if status_code is not None:
                reason = f"({status_code}) {reason}"
            raise UpstreamError(
                f"{DIRECT_ERROR_PREFIX}: {reason}",
                status_code=status_code,
                cause=e,
            ) from e

        return self._parse_response(response)

    def _build_params(
        self,
        conversation: Sequence[ChatTurn],
        settings: ProviderSettings,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": f"azure/{settings.chat_deployment}",
            "messages": [{"role": turn.role, "content": turn.content} for turn in conversation],
            "api_base": settings.endpoint,
            "api_key": settings.api_key,
            "api_version": settings.api_version,
            "timeout": settings.timeout_seconds,
            # transient_retry owns retries; the SDK client must not add its own
            "max_retries": 0,
        }

        if settings.temperature is not None:
            params["temperature"] = settings.temperature

        if settings.top_p is not None:
            params["top_p"] = settings.top_p

        return params

    def _parse_response(self, response: Any) -> CompletionResult:
        choices = read_field(response, "choices") or []
        first = choices[0] if isinstance(choices, list) and choices else None
        content = read_field(read_field(first, "message"), "content")
        text = content.strip() if isinstance(content, str) else ""

        if not text:
            logger.warning("deployment_empty_response")
            raise EmptyResponseError(
                f"{DIRECT_ERROR_PREFIX}: Azure AI Foundry returned an empty response"
            )

        usage = build_usage(read_field(response, "usage"))

        logger.debug(
            "deployment_response_received",
            characters=len(text),
            preview=text[:120],
            total_tokens=usage.total_tokens if usage else None,
        )

        return CompletionResult(content=text, usage=usage)
