"""Redaction of credentials before URLs and headers reach the logs."""

import re

# Query/form parameters whose values must never be logged
SENSITIVE_PARAMS = [
    "token",
    "access_token",
    "refresh_token",
    "client_secret",
    "code",
    "authorization",
]

_BEARER_PATTERN = re.compile(r"Bearer\s+[^\s\"',]+", re.IGNORECASE)


def redact_sensitive_data(text: str) -> str:
    """Redact sensitive query parameters and bearer tokens from a URL or string."""
    redacted = text
    for param in SENSITIVE_PARAMS:
        redacted = re.sub(rf"(?<![A-Za-z_]){param}=([^&\s\"]+)", f"{param}=***REDACTED***", redacted)
    return _BEARER_PATTERN.sub("Bearer ***REDACTED***", redacted)
