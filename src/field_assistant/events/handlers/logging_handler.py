"""Structured log records for chat lifecycle events."""

from __future__ import annotations

from typing import Any

import structlog

from field_assistant.events.types import Event, EventType

logger = structlog.get_logger()

# Already emitted explicitly or redundant with the log record itself
_BASE_FIELDS = {"type", "request_id", "thread_id", "thread_run_id", "timestamp"}

_LEVELS: dict[EventType, str] = {
    EventType.CHAT_COMPLETED: "info",
    EventType.CHAT_ENDED: "info",
    EventType.CHAT_FAILED: "warning",
}

MAX_ERROR_LENGTH = 200


class LoggingEventHandler:
    """Writes one ``event_logged`` record per event.

    Starts and per-turn records use ``log_level``; completions and ends are
    info, failures are warnings.
    """

    def __init__(self, log_level: str = "debug") -> None:
        """Initialize logging handler.

        Args:
            log_level: Level for events without a fixed level
        """
        self.log_level = log_level

    async def handle(self, event: Event) -> None:
        """Log ``event`` with its correlation ids and payload."""
        level = self._get_log_level(EventType(event.type))
        log = getattr(logger, level)
        log(
            "event_logged",
            event_type=str(event.type),
            request_id=event.request_id,
            thread_id=event.thread_id,
            thread_run_id=event.thread_run_id,
            emitted_at=event.timestamp.isoformat(),
            **self._extract_extra_fields(event),
        )

    def _get_log_level(self, event_type: EventType) -> str:
        return _LEVELS.get(event_type, self.log_level)

    def _extract_extra_fields(self, event: Event) -> dict[str, Any]:
        extra = event.model_dump(exclude=_BASE_FIELDS, exclude_none=True)
        error = extra.get("error")
        if isinstance(error, str) and len(error) > MAX_ERROR_LENGTH:
            extra["error"] = error[:MAX_ERROR_LENGTH]
        return extra
