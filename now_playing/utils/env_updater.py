"""Write refreshed credentials back to the .env file."""

from pathlib import Path

from now_playing.logging_config import get_logger

logger = get_logger(__name__)


def update_env_file(env_path: Path, key: str, value: str) -> None:
    """Update or add a key-value pair in a .env file.

    Args:
        env_path: Path to .env file
        key: Environment variable name (e.g., "SPOTIFY_ACCESS_TOKEN")
        value: New value for the variable

    Raises:
        FileNotFoundError: If .env file doesn't exist
        PermissionError: If .env file is not writable
        ValueError: If key or value would break the line-based format
    """
    if not key or "=" in key or "\n" in key:
        raise ValueError(f"Invalid environment variable key: {key}")
    if "\n" in value:
        raise ValueError(f"Value for {key} must be a single line")

    if not env_path.exists():
        raise FileNotFoundError(f".env file not found at {env_path}")

    lines = env_path.read_text(encoding="utf-8").splitlines()

    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith(f"{key}=") or stripped.startswith(f"export {key}="):
            lines[i] = f"{key}={value}"
            logger.info(f"Updated {key} in .env file")
            break
    else:
        if lines and lines[-1].strip():
            lines.append("")
        lines.append(f"{key}={value}")
        logger.info(f"Added {key} to .env file")

    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def get_env_path() -> Path:
    """Path to the .env file in the project root (../../.env from here)."""
    return Path(__file__).parent.parent.parent / ".env"
