"""Response schemas for API endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str = Field(description="Error message")
    code: str | None = Field(default=None, description="Error code (e.g., UPSTREAM_ERROR)")
    request_id: str | None = Field(default=None, description="Request ID for tracking")


class LivenessResponse(BaseModel):
    """Liveness check response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    provider_mode: str
    provider_configured: bool
    missing_settings: list[str] = Field(default_factory=list)
