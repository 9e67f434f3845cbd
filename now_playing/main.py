"""Main FastAPI application entry point."""

from pathlib import Path

from dotenv import load_dotenv

from now_playing.config import get_settings
from now_playing.core.app_factory import create_app
from now_playing.logging_config import setup_logging

# Tokens and cache keys are read from the process environment at call time
load_dotenv(Path(__file__).parent.parent / ".env")

setup_logging(get_settings().log_level)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "now_playing.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )
