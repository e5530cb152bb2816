"""Langfuse tracing module for LLM observability.

Provides centralized tracing for chat broker requests, enabling
debugging, token accounting, and upstream failure analysis.
"""

from field_assistant.tracing.client import (
    LangfuseTracer,
    get_langfuse_tracer,
)

__all__ = [
    "LangfuseTracer",
    "get_langfuse_tracer",
]
