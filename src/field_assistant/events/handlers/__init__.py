"""Event handlers for the EventBus.

Each handler processes events and performs side effects like
structured logging or tracing.
"""

from .logging_handler import LoggingEventHandler
from .tracing_handler import TracingEventHandler

__all__ = [
    "LoggingEventHandler",
    "TracingEventHandler",
]
