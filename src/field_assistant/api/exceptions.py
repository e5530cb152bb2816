"""Custom exceptions for API layer."""

from fastapi import HTTPException

INVALID_JSON_MESSAGE = "Invalid JSON payload"
MISSING_MESSAGES_MESSAGE = "Missing chat messages"


class APIError(HTTPException):
    """Base exception for API errors.

    Extends HTTPException for native FastAPI integration.
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
    ) -> None:
        """Initialize API error.

        Args:
            message: Error message shown to the client
            code: Error code
            status_code: HTTP status code
        """
        super().__init__(
            status_code=status_code,
            detail={"message": message, "code": code},
        )
        self.message = message
        self.code = code


class InvalidRequestError(APIError):
    """Malformed or empty chat payload. Never retried."""

    def __init__(self, message: str = INVALID_JSON_MESSAGE) -> None:
        """Initialize invalid request error.

        Args:
            message: Error message
        """
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
            status_code=400,
        )


class UpstreamServiceError(APIError):
    """Provider call failed; only its message text is exposed."""

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
    ) -> None:
        """Initialize upstream service error.

        Args:
            message: Upstream error message
            upstream_status: Status returned by the provider, if any
        """
        super().__init__(
            message=message,
            code="UPSTREAM_ERROR",
            status_code=502,
        )
        self.upstream_status = upstream_status
