"""LLM request/response schemas.

Type-safe Pydantic models shared by both provider modes.
"""

from typing import Literal

from pydantic import BaseModel, Field, computed_field

ChatRole = Literal["system", "user", "assistant"]

MAX_CONTENT_LENGTH = 6_000


class ChatTurn(BaseModel):
    """Individual chat message."""

    role: ChatRole
    content: str


class RawChatTurn(BaseModel):
    """Client-supplied turn before normalization; every field optional."""

    role: ChatRole | None = None
    content: str | None = None


class UsageInfo(BaseModel):
    """Token usage information.

    ``input_tokens``/``output_tokens`` are legacy aliases kept for clients
    that predate the prompt/completion naming.
    """

    prompt_tokens: int | None = Field(default=None, ge=0)
    completion_tokens: int | None = Field(default=None, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def input_tokens(self) -> int | None:
        return self.prompt_tokens

    @computed_field  # type: ignore[prop-decorator]
    @property
    def output_tokens(self) -> int | None:
        return self.completion_tokens


class CompletionResult(BaseModel):
    """Normalized completion produced by every provider path."""

    content: str = Field(min_length=1)
    warnings: list[str] | None = None
    usage: UsageInfo | None = None


def build_usage(raw: object) -> UsageInfo | None:
    """Map heterogeneous upstream token counters onto :class:`UsageInfo`.

    Accepts canonical ``prompt_tokens``/``completion_tokens`` or legacy
    ``input_tokens``/``output_tokens``. ``total_tokens`` is computed when
    the upstream omits it.

    Args:
        raw: Usage mapping or SDK object, may be None

    Returns:
        UsageInfo, or None when no usage was reported
    """
    if raw is None:
        return None

    prompt = _as_int(read_field(raw, "prompt_tokens"))
    if prompt is None:
        prompt = _as_int(read_field(raw, "input_tokens"))
    completion = _as_int(read_field(raw, "completion_tokens"))
    if completion is None:
        completion = _as_int(read_field(raw, "output_tokens"))
    total = _as_int(read_field(raw, "total_tokens"))
    if total is None:
        total = (prompt or 0) + (completion or 0)

    return UsageInfo(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=total,
    )


def read_field(obj: object, key: str) -> object:
    """Read ``key`` from a mapping or an SDK response object."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    return None
