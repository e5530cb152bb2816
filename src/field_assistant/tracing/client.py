"""Langfuse client wrapper.

Owns the process-wide Langfuse client and opens one root span per chat
request. Every method degrades to a no-op when tracing is not configured
or the Langfuse SDK misbehaves.
"""

from __future__ import annotations

import random
from functools import lru_cache
from typing import Any

import structlog
from langfuse import Langfuse

from field_assistant.config import LangfuseSettings, get_langfuse_settings

logger = structlog.get_logger()


class LangfuseTracer:
    """Lazily connected Langfuse tracer.

    Attributes:
        settings: Langfuse configuration
    """

    def __init__(self, settings: LangfuseSettings | None = None) -> None:
        """Initialize the tracer without contacting Langfuse.

        Args:
            settings: Langfuse settings (defaults to the cached environment settings)
        """
        self.settings = settings or get_langfuse_settings()
        self._client: Langfuse | None = None
        self._initialized = False

    @property
    def enabled(self) -> bool:
        """True when tracing is switched on and both keys are present."""
        s = self.settings
        return bool(s.enabled and s.public_key and s.secret_key)

    @property
    def client(self) -> Langfuse | None:
        """Langfuse client, created on first access; None when disabled."""
        if not self.enabled:
            return None
        if not self._initialized:
            self._connect()
        return self._client

    def _connect(self) -> None:
        self._initialized = True
        try:
            self._client = Langfuse(
                public_key=self.settings.public_key,
                secret_key=self.settings.secret_key,
                host=self.settings.host,
                debug=self.settings.debug,
                flush_at=self.settings.flush_at,
                flush_interval=self.settings.flush_interval,
            )
        except Exception as e:
            logger.warning("langfuse_client_initialization_failed", error=str(e))
            self._client = None
            return
        logger.info("langfuse_client_initialized", host=self.settings.host)

    def start_request_span(
        self,
        request_id: str,
        name: str = "chat.request",
        metadata: dict[str, Any] | None = None,
    ) -> Any | None:
        """Open the root span for one chat request.

        The trace id is seeded from ``request_id`` so a trace can be looked
        up from the ``X-Request-ID`` response header.

        Args:
            request_id: Request correlation id
            name: Span name
            metadata: Extra span metadata

        Returns:
            Langfuse span, or None when disabled, unsampled or failing
        """
        client = self.client
        if client is None or random.random() >= self.settings.sample_rate:
            return None

        trace_id = Langfuse.create_trace_id(seed=request_id)
        try:
            span = client.start_span(
                name=name,
                metadata={**(metadata or {}), "request_id": request_id},
                trace_context={"trace_id": trace_id},
            )
        except Exception as e:
            logger.warning("langfuse_span_start_failed", request_id=request_id, error=str(e))
            return None

        logger.debug("langfuse_span_started", request_id=request_id, trace_id=trace_id)
        return span

    def shutdown(self) -> None:
        """Flush and release the client; a later access reconnects."""
        client, self._client, self._initialized = self._client, None, False
        if client is None:
            return
        try:
            client.shutdown()
        except Exception as e:
            logger.warning("langfuse_shutdown_failed", error=str(e))
        else:
            logger.info("langfuse_shutdown")


@lru_cache(maxsize=1)
def get_langfuse_tracer() -> LangfuseTracer:
    """Process-wide tracer."""
    return LangfuseTracer()
