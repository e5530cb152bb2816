"""Retry policy for transient upstream transport failures."""

from __future__ import annotations

import httpx
import litellm
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

logger = structlog.get_logger()

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    litellm.APIConnectionError,
    litellm.Timeout,
)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "provider_call_retrying",
        attempt=retry_state.attempt_number,
        error=str(outcome.exception()) if outcome else None,
    )


def transient_retry(max_retries: int) -> AsyncRetrying:
    """Build a tenacity controller for a provider call.

    ``max_retries=0`` yields a single attempt. Only transport-level errors
    are retried; HTTP error statuses and empty output never are.

    Args:
        max_retries: Additional attempts after the first

    Returns:
        AsyncRetrying usable with ``async for attempt in ...``
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_random_exponential(multiplier=0.5, max=4),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )
