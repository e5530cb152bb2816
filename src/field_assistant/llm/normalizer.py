"""Inbound message normalization.

Turns untrusted client turns into a bounded conversation ready to leave
the broker.
"""

from __future__ import annotations

from collections.abc import Sequence

from .schemas import MAX_CONTENT_LENGTH, ChatTurn, RawChatTurn


def normalize_turns(
    turns: Sequence[RawChatTurn],
    system_prompt: str | None = None,
    max_length: int = MAX_CONTENT_LENGTH,
) -> list[ChatTurn]:
    """Normalize raw client turns.

    Missing roles default to ``user``, content is truncated to
    ``max_length`` and a default system instruction is prepended when
    configured and no system turn exists yet.

    Args:
        turns: Raw turns from the client, already shape-validated
        system_prompt: Default instruction to inject
        max_length: Maximum characters per turn

    Returns:
        Normalized conversation
    """
    conversation = [
        ChatTurn(
            role=turn.role or "user",
            content=(turn.content or "")[:max_length],
        )
        for turn in turns
    ]
    return apply_system_prompt(conversation, system_prompt)


def apply_system_prompt(
    conversation: list[ChatTurn],
    system_prompt: str | None,
) -> list[ChatTurn]:
    """Prepend ``system_prompt`` unless a system turn is already present."""
    if not system_prompt or has_system_turn(conversation):
        return conversation
    return [ChatTurn(role="system", content=system_prompt), *conversation]


def has_system_turn(conversation: Sequence[ChatTurn]) -> bool:
    return any(turn.role == "system" for turn in conversation)
