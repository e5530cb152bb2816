"""API services for business logic."""

from .chat_service import ChatService

__all__ = [
    "ChatService",
]
