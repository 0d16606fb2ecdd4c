"""
This module manages endpoint configuration for event stream sessions.
It resolves the stream URL from direct input or environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

ENV_URL = "EVENTSOURCE_URL"
ENV_HTTP_DEBUG = "EVENTSOURCE_HTTP_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class EndpointConfig:
    """
    Immutable target of an event stream session.
    Ensures the URL is present and uses an HTTP scheme.
    """

    url: str

    @staticmethod
    def from_env_or_value(url: str | None) -> EndpointConfig:
        """
        Create an EndpointConfig from a provided value or environment variable.

        Args:
            url: Optional stream URL provided by the caller.

        Returns:
            An initialized EndpointConfig holding the validated URL.

        Raises:
            ValueError: If no URL is found, or the URL is not http(s).
        """
        value = url or os.getenv(ENV_URL)

        if not value:
            raise ValueError(
                "Stream URL missing. Define EVENTSOURCE_URL in environment or pass url value"
            )

        try:
            parsed = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid stream URL {value!r}: {e}") from e

        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError(f"Stream URL must be an absolute http(s) URL, got {value!r}")
        return EndpointConfig(url=value)


def http_debug_enabled() -> bool:
    """True when EVENTSOURCE_HTTP_DEBUG asks for request/response logging."""
    return os.getenv(ENV_HTTP_DEBUG, "").lower() in _TRUTHY
