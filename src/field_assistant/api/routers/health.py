"""Health check endpoints for Kubernetes probes.

- /health (liveness): Is the app process alive?
- /ready (readiness): Is the provider configured well enough to answer?
"""

from fastapi import APIRouter

from ..dependencies import APIConfig, ProviderConfig
from ..schemas import LivenessResponse, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=LivenessResponse)
async def health_check(settings: APIConfig) -> LivenessResponse:
    """Liveness probe - checks if the app is alive.

    Does NOT contact Azure AI Foundry to avoid cascading failures.

    Returns:
        Simple alive status
    """
    return LivenessResponse(status="healthy", version=settings.version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(provider: ProviderConfig) -> ReadinessResponse:
    """Readiness probe - reports provider mode and configuration state.

    An incomplete configuration still serves traffic through the fallback
    responder, so this always answers 200 with status ``degraded`` instead
    of failing the probe.

    Returns:
        Provider mode and missing settings, if any
    """
    missing = provider.missing_variables()
    return ReadinessResponse(
        status="ready" if not missing else "degraded",
        provider_mode=str(provider.mode),
        provider_configured=not missing,
        missing_settings=missing,
    )
