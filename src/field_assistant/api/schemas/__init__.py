"""Pydantic schemas for API request/response validation."""

from field_assistant.llm.schemas import CompletionResult, UsageInfo

from .requests import ChatRequest
from .responses import ErrorResponse, LivenessResponse, ReadinessResponse

__all__ = [
    # Requests
    "ChatRequest",
    # Responses
    "CompletionResult",
    "ErrorResponse",
    "LivenessResponse",
    "ReadinessResponse",
    "UsageInfo",
]
