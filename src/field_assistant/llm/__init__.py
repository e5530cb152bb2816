"""LLM client layer.

Azure AI Foundry access in two modes (direct deployment and agent), with a
deterministic fallback when the provider is not configured.
"""

from .agent import AgentClient
from .direct import DeploymentClient
from .dispatcher import ChatDispatcher, DispatchOutcome, ProviderClient
from .exceptions import EmptyResponseError, UpstreamError
from .fallback import FALLBACK_WARNING_PREFIX, build_fallback_result
from .normalizer import normalize_turns
from .schemas import ChatTurn, CompletionResult, RawChatTurn, UsageInfo

__all__ = [
    # Clients
    "AgentClient",
    "DeploymentClient",
    # Dispatch
    "ChatDispatcher",
    "DispatchOutcome",
    "ProviderClient",
    # Errors
    "EmptyResponseError",
    "UpstreamError",
    # Helpers
    "FALLBACK_WARNING_PREFIX",
    "build_fallback_result",
    "normalize_turns",
    # Schemas
    "ChatTurn",
    "CompletionResult",
    "RawChatTurn",
    "UsageInfo",
]
