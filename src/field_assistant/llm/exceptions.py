"""Custom exceptions for provider calls."""

from __future__ import annotations


class UpstreamError(Exception):
    """Provider call failed.

    Raised on transport failures, non-success HTTP statuses and
    empty parsed output. Only ``message`` is ever shown to API clients.

    Attributes:
        message: Error description safe to forward to the caller
        status_code: Upstream HTTP status, when one was received
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize upstream error.

        Args:
            message: Error description
            status_code: Upstream HTTP status code
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.cause = cause


class EmptyResponseError(UpstreamError):
    """Provider answered successfully but produced no text."""

    pass
