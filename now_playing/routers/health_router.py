"""Health endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from now_playing import __version__
from now_playing.dependencies import get_spotify_auth_manager
from now_playing.models import DetailedHealthResponse, HealthResponse
from now_playing.state_managers import SpotifyAuthManager

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check for Docker/monitoring."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/health/ready", response_model=DetailedHealthResponse)
async def readiness_check(
    request: Request,
    auth_manager: SpotifyAuthManager = Depends(get_spotify_auth_manager),
):
    """Readiness probe - can the service answer with live data?

    Fails (503) when the Spotify tokens are missing or the last refresh
    attempt was rejected; both need an operator to fix the credentials.
    """
    checks = {
        "http_client": "ok" if getattr(request.app.state, "http_client", None) else "failed",
    }

    if not await auth_manager.has_credentials():
        checks["spotify_credentials"] = "not_configured"
    else:
        credential_error = await auth_manager.get_credential_error()
        checks["spotify_credentials"] = f"failed: {credential_error[:50]}" if credential_error else "ok"

    all_healthy = all(result == "ok" for result in checks.values())

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content=DetailedHealthResponse(
            status="healthy" if all_healthy else "unhealthy",
            version=__version__,
            timestamp=datetime.now(UTC),
            checks=checks,
        ).model_dump(mode="json"),
    )
