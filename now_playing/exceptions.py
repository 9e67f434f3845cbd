"""Custom exceptions for the Now Playing service with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    NOW_PLAYING_ERROR = "NOW_PLAYING_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Spotify errors
    SPOTIFY_ERROR = "SPOTIFY_ERROR"
    SPOTIFY_AUTH_ERROR = "SPOTIFY_AUTH_ERROR"
    SPOTIFY_NOT_AUTHENTICATED = "SPOTIFY_NOT_AUTHENTICATED"
    SPOTIFY_TOKEN_REFRESH_FAILED = "SPOTIFY_TOKEN_REFRESH_FAILED"
    SPOTIFY_API_ERROR = "SPOTIFY_API_ERROR"


class NowPlayingException(Exception):
    """Base exception for service errors with HTTP status code support.

    All custom exceptions inherit from this class so a single handler can
    turn them into structured JSON responses.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOW_PLAYING_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class SpotifyException(NowPlayingException):
    """Spotify-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SPOTIFY_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class SpotifyAuthException(SpotifyException):
    """Spotify rejected the bearer token (HTTP 401)."""

    def __init__(self, message: str = "Spotify authentication failed", details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_AUTH_ERROR,
            status_code=401,
            details=details,
        )


class SpotifyAPIException(SpotifyException):
    """Spotify API request failed for a reason other than authentication."""

    def __init__(self, message: str, status_code: int = 502, details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.SPOTIFY_API_ERROR,
            status_code=status_code,
            details=details,
        )


class CredentialError(SpotifyException):
    """Stored Spotify credentials are unusable; an operator has to fix them.

    Raised instead of aborting the process. Surfaces as 503 on the API and
    as a failed readiness check.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SPOTIFY_NOT_AUTHENTICATED,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, status_code=503, details=details)


class SpotifyNotAuthenticatedException(CredentialError):
    """Access or refresh token missing from configuration."""

    def __init__(
        self,
        message: str = "Access Token/Refresh Token not configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=ErrorCode.SPOTIFY_NOT_AUTHENTICATED, details=details)


class SpotifyTokenRefreshException(CredentialError):
    """Refresh-token exchange with the Spotify Accounts service failed."""

    def __init__(self, message: str = "Failed to refetch token", details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.SPOTIFY_TOKEN_REFRESH_FAILED, details=details)
