"""Connection configuration with validation.

Values are resolved in three layers, later layers winning:
built-in defaults, then LIARA_* environment variables, then explicit
values (CLI flags or library callers). The reconciler only ever sees the
fully resolved, validated Config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Configuration constants with documented bounds
DEFAULT_API_ENDPOINT = "https://api.iran.liara.ir"
DEFAULT_WEBSOCKET_ENDPOINT = "wss://api.iran.liara.ir"
DEFAULT_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 3600

# Security constraints - enforced limits to prevent abuse
MAX_SPEC_FILE_SIZE_BYTES = 256 * 1024  # 256KB max desired-state file

ENV_API_ENDPOINT = "LIARA_API_ENDPOINT"
ENV_WEBSOCKET_ENDPOINT = "LIARA_WEBSOCKET_ENDPOINT"
ENV_ACCESS_TOKEN = "LIARA_ACCESS_TOKEN"
ENV_TIMEOUT = "LIARA_TIMEOUT"


@dataclass(frozen=True)
class Config:
    """Resolved connection settings for the PaaS API.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing on the first
    remote call.
    """

    access_token: str = field(repr=False)
    api_endpoint: str = DEFAULT_API_ENDPOINT
    websocket_endpoint: str = DEFAULT_WEBSOCKET_ENDPOINT
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        All problems are collected so the user sees them in one pass.
        """
        errors: list[str] = []

        if not self.api_endpoint:
            errors.append(
                f"Missing API endpoint: set api_endpoint or the {ENV_API_ENDPOINT} "
                "environment variable"
            )
        elif not self.api_endpoint.startswith(("http://", "https://")):
            errors.append(f"API endpoint must be an http(s) URL: {self.api_endpoint}")

        if not self.websocket_endpoint:
            errors.append(
                f"Missing websocket endpoint: set websocket_endpoint or the "
                f"{ENV_WEBSOCKET_ENDPOINT} environment variable"
            )

        if not self.access_token:
            errors.append(
                f"Missing access token: set access_token or the {ENV_ACCESS_TOKEN} "
                "environment variable"
            )

        if not (0 < self.timeout_seconds <= MAX_TIMEOUT_SECONDS):
            errors.append(
                f"Timeout must be between 1 and {MAX_TIMEOUT_SECONDS} seconds: "
                f"{self.timeout_seconds}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from defaults overridden by environment variables.

        Environment Variables:
            LIARA_API_ENDPOINT: API base URL (default: https://api.iran.liara.ir)
            LIARA_WEBSOCKET_ENDPOINT: Websocket base URL (default: wss://api.iran.liara.ir)
            LIARA_ACCESS_TOKEN: Bearer token (required)
            LIARA_TIMEOUT: HTTP timeout in seconds (default: 30)
        """
        return cls.resolve()

    @classmethod
    def resolve(
        cls,
        *,
        api_endpoint: str | None = None,
        websocket_endpoint: str | None = None,
        access_token: str | None = None,
        timeout_seconds: int | None = None,
    ) -> Config:
        """Resolve configuration as defaults < environment < explicit values.

        Explicit arguments left as None fall through to the environment, and
        empty environment variables fall through to the defaults.
        """

        def get_str(key: str, default: str) -> str:
            value = os.environ.get(key, "")
            return value if value else default

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key, "")
            if not value:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        resolved_endpoint = get_str(ENV_API_ENDPOINT, DEFAULT_API_ENDPOINT)
        resolved_websocket = get_str(ENV_WEBSOCKET_ENDPOINT, DEFAULT_WEBSOCKET_ENDPOINT)
        resolved_token = get_str(ENV_ACCESS_TOKEN, "")
        resolved_timeout = get_int(ENV_TIMEOUT, DEFAULT_TIMEOUT_SECONDS)

        if api_endpoint is not None:
            resolved_endpoint = api_endpoint
        if websocket_endpoint is not None:
            resolved_websocket = websocket_endpoint
        if access_token is not None:
            resolved_token = access_token
        if timeout_seconds is not None:
            resolved_timeout = timeout_seconds

        return cls(
            access_token=resolved_token,
            api_endpoint=resolved_endpoint,
            websocket_endpoint=resolved_websocket,
            timeout_seconds=resolved_timeout,
        )
