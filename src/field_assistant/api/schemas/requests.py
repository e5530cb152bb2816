"""Request schemas for API endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from field_assistant.llm.schemas import RawChatTurn


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``.

    Turns are validated for shape only; defaults and truncation are applied
    by the message normalizer.
    """

    messages: list[RawChatTurn] | None = Field(
        default=None,
        description="Ordered conversation turns",
    )

    model_config = ConfigDict(extra="ignore")
