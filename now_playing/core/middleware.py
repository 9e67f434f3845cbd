"""Middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address

from now_playing.config import Settings
from now_playing.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

# Shared by the app state and the route decorators
limiter = Limiter(key_func=get_remote_address)


def setup_middleware(app: FastAPI, settings: Settings) -> Limiter:
    """Configure CORS and rate limiting.

    Args:
        app: FastAPI application instance
        settings: Application settings

    Returns:
        Limiter instance for rate limiting
    """
    origins = settings.get_cors_origins()
    log_with_context(
        logger,
        "info",
        "Configuring CORS middleware",
        origins=origins,
        event_type="security_config",
    )
    # Read-only API embedded by a website: no cookies, GET only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter

    return limiter
