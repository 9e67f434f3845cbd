"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI

from now_playing import __version__
from now_playing.config import get_settings
from now_playing.core.lifespan import lifespan
from now_playing.core.middleware import setup_middleware
from now_playing.middleware.error_handlers import register_error_handlers
from now_playing.routers import health_router, playback_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Now Playing API",
        description="""
        Currently playing Spotify track for a single account.

        - `/api/now-playing` - current track (cached for 10 seconds)
        - `/health` - liveness probe
        - `/health/ready` - readiness probe (fails when Spotify credentials need attention)
        """,
        version=__version__,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    register_error_handlers(app)

    app.include_router(health_router.router, tags=["health"])
    app.include_router(playback_router.router, prefix="/api", tags=["playback"])

    return app
