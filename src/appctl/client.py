"""PaaS app API client.

One method per remote operation. Every method performs exactly one round
trip over a shared, connection-pooled httpx.Client and returns the status
code with the raw body text; the body is fully read and released before the
method returns. Transport failures raise TransportError. Non-200 responses
are returned as-is so the caller decides how fatal they are.

No retries and no per-call timeouts: the client-wide timeout comes from
Config and a single failure is terminal for that call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from .config import Config
from .diagnostics import TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/v1/projects"
VALID_SWITCH_MODES = ("enable", "disable")


@dataclass(frozen=True)
class ApiResponse:
    """Status code and raw body of one remote call."""

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        """Only an exact 200 counts as success."""
        return self.status_code == 200


class AppClient(Protocol):
    """Remote operations consumed by the reconciler."""

    def create_app(
        self, name: str, plan_id: str, platform: str, read_only_root_fs: bool
    ) -> ApiResponse: ...

    def get_app_by_name(self, name: str) -> ApiResponse: ...

    def change_plan(self, name: str, plan_id: str) -> ApiResponse: ...

    def delete_app_by_name(self, name: str) -> ApiResponse: ...

    def set_power(self, name: str) -> ApiResponse: ...

    def set_rolling_update(self, name: str, mode: str) -> ApiResponse: ...

    def set_envs(self, name: str, variables: dict[str, str]) -> ApiResponse: ...

    def set_static_ip(self, name: str, mode: str) -> ApiResponse: ...

    def set_default_subdomain(self, name: str, mode: str) -> ApiResponse: ...


def _check_mode(mode: str) -> str:
    if mode not in VALID_SWITCH_MODES:
        raise ValueError(f"mode must be one of {VALID_SWITCH_MODES}: {mode!r}")
    return mode


class PaasClient:
    """httpx-backed implementation of AppClient.

    Usage:
        with PaasClient.from_config(config) as client:
            response = client.get_app_by_name("my-app")
    """

    def __init__(self, http: httpx.Client) -> None:
        self._http = http

    @classmethod
    def from_config(
        cls, config: Config, *, transport: httpx.BaseTransport | None = None
    ) -> PaasClient:
        """Build a client with bearer auth and the configured timeout.

        Args:
            config: Resolved connection configuration.
            transport: Optional transport override (used by tests).
        """
        http = httpx.Client(
            base_url=config.api_endpoint,
            headers={
                "Authorization": f"Bearer {config.access_token}",
                "Accept": "application/json",
            },
            timeout=config.timeout_seconds,
            transport=transport,
        )
        return cls(http)

    def __enter__(self) -> PaasClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, *, json: Any = None) -> ApiResponse:
        try:
            response = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.debug(
                "Request failed before a response was received",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise TransportError(f"{method} {path}: {e}") from e

        logger.debug(
            "Request completed",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return ApiResponse(status_code=response.status_code, body=response.text)

    def create_app(
        self, name: str, plan_id: str, platform: str, read_only_root_fs: bool
    ) -> ApiResponse:
        payload = {
            "name": name,
            "planID": plan_id,
            "platform": platform,
            "readOnlyRootFilesystem": read_only_root_fs,
        }
        return self._request("POST", API_PREFIX, json=payload)

    def get_app_by_name(self, name: str) -> ApiResponse:
        return self._request("GET", f"{API_PREFIX}/{name}")

    def change_plan(self, name: str, plan_id: str) -> ApiResponse:
        return self._request("POST", f"{API_PREFIX}/{name}/resize", json={"planID": plan_id})

    def delete_app_by_name(self, name: str) -> ApiResponse:
        return self._request("DELETE", f"{API_PREFIX}/{name}")

    def set_power(self, name: str) -> ApiResponse:
        """Scale the app to zero, i.e. turn it off."""
        return self._request("POST", f"{API_PREFIX}/{name}/actions/scale", json={"scale": 0})

    def set_rolling_update(self, name: str, mode: str) -> ApiResponse:
        return self._request("POST", f"{API_PREFIX}/{name}/zero-downtime/{_check_mode(mode)}")

    def set_envs(self, name: str, variables: dict[str, str]) -> ApiResponse:
        payload = {
            "project": name,
            "variables": [{"key": key, "value": value} for key, value in variables.items()],
        }
        return self._request("POST", f"{API_PREFIX}/update-envs", json=payload)

    def set_static_ip(self, name: str, mode: str) -> ApiResponse:
        return self._request("POST", f"{API_PREFIX}/{name}/fixed-ip/{_check_mode(mode)}")

    def set_default_subdomain(self, name: str, mode: str) -> ApiResponse:
        return self._request(
            "POST", f"{API_PREFIX}/{name}/default-subdomain/{_check_mode(mode)}"
        )
