"""Provider mode selection.

Chooses the agent client when an agent id is configured, the deployment
client otherwise. Incomplete configuration is detected here, once, and
answered by the fallback responder without touching either client.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from field_assistant.config import ProviderMode, ProviderSettings

from .agent import AgentClient
from .direct import DeploymentClient
from .fallback import build_fallback_result
from .schemas import ChatTurn, CompletionResult

logger = structlog.get_logger()


class ProviderClient(Protocol):
    """Uniform contract shared by both provider modes."""

    mode: str

    async def complete(
        self,
        conversation: Sequence[ChatTurn],
        settings: ProviderSettings,
    ) -> CompletionResult:
        """Return a normalized completion or raise UpstreamError."""
        ...


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of a dispatch plus how it was produced."""

    result: CompletionResult
    mode: ProviderMode
    simulated: bool = False


class ChatDispatcher:
    """Stateless router between deployment and agent clients."""

    def __init__(
        self,
        direct: ProviderClient | None = None,
        agent: ProviderClient | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            direct: Client for direct deployment calls
            agent: Client for agent invocations
        """
        self.direct = direct or DeploymentClient()
        self.agent = agent or AgentClient()

    def select(self, settings: ProviderSettings) -> ProviderClient:
        if settings.mode is ProviderMode.AGENT:
            return self.agent
        return self.direct

    async def dispatch(
        self,
        conversation: Sequence[ChatTurn],
        settings: ProviderSettings,
    ) -> DispatchOutcome:
        """Route the conversation for this request.

        Args:
            conversation: Normalized turns
            settings: Provider settings read for this request

        Returns:
            DispatchOutcome with the completion

        Raises:
            UpstreamError: Propagated from the selected client
        """
        mode = settings.mode

        if not settings.is_complete:
            logger.warning(
                "provider_configuration_incomplete",
                mode=str(mode),
                missing=settings.missing_variables(),
            )
            return DispatchOutcome(
                result=build_fallback_result(conversation, settings),
                mode=mode,
                simulated=True,
            )

        client = self.select(settings)
        result = await client.complete(conversation, settings)
        return DispatchOutcome(result=result, mode=mode)
