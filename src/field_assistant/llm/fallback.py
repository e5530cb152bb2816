"""Simulated replies for incomplete provider configuration.

Keeps the assistant usable with zero configuration. Nothing here raises.
"""

from collections.abc import Sequence

from field_assistant.config import ProviderMode, ProviderSettings

from .schemas import ChatTurn, CompletionResult

FALLBACK_WARNING_PREFIX = "WARNING:"

_HEADLINES = {
    ProviderMode.DIRECT: (
        "Azure AI Foundry credentials are not configured yet. "
        "Here's a simulated response so you can keep exploring the assistant."
    ),
    ProviderMode.AGENT: (
        "Azure AI Foundry agent configuration is incomplete. "
        "Here's a simulated response so you can keep exploring the assistant."
    ),
}

_SETUP_HINTS = {
    ProviderMode.DIRECT: "in .env to connect to your Azure project.",
    ProviderMode.AGENT: "to use agent mode.",
}


def build_fallback_result(
    conversation: Sequence[ChatTurn],
    settings: ProviderSettings,
) -> CompletionResult:
    """Build the deterministic simulated reply for ``settings.mode``.

    Args:
        conversation: Normalized conversation
        settings: Provider settings that failed the completeness check

    Returns:
        CompletionResult with a single setup warning
    """
    mode = settings.mode
    content = f"{FALLBACK_WARNING_PREFIX} {_HEADLINES[mode]}\n\n{build_demo_response(conversation)}"
    return CompletionResult(
        content=content,
        warnings=[f"Set {_join_names(settings.required_variables())} {_SETUP_HINTS[mode]}"],
    )


def build_demo_response(conversation: Sequence[ChatTurn]) -> str:
    """Echo the latest user turn inside an explanatory template."""
    latest = next((turn for turn in reversed(conversation) if turn.role == "user"), None)
    if latest is None:
        return "Ask a question to see the assistant's recommendations."

    return (
        f'I understand you\'re asking: "{latest.content}".'
        "\n\nOnce the Azure AI Foundry deployment is wired up, this response will come "
        "directly from your configured model. For now, consider drafting a follow-up "
        "action plan or requesting field data when the integration is ready."
    )


def _join_names(names: list[str]) -> str:
    if len(names) <= 2:
        return " and ".join(names)
    return f"{', '.join(names[:-1])}, and {names[-1]}"
