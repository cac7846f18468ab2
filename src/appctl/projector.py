"""Projection of the remote app representation into the declarative model.

The mapping is deliberately asymmetric: several wire fields are derived
rather than copied (scale -> turn_off, node IP -> static IP flags,
defaultSubdomain -> its negation), and `name` is taken from the remote
project id rather than any human-readable name. That last rule matches
what the PaaS integration has always persisted; whether it should be the
app name instead is an open question, so it is kept as observed.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from .diagnostics import DecodeError
from .models import AppEnvelope, AppSpec, RemoteAppState

logger = logging.getLogger(__name__)


def decode_app(body: str) -> RemoteAppState:
    """Decode a fetch-by-name response body.

    Raises:
        DecodeError: If the body is not JSON or does not have the app shape.
    """
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e

    try:
        envelope = AppEnvelope.model_validate(raw)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
        raise DecodeError("unexpected response shape: " + "; ".join(errors)) from e

    return envelope.project


def project(remote: RemoteAppState) -> AppSpec:
    """Map a remote app onto the flat declarative model.

    Encrypted env entries are reported with whatever plaintext value the
    API returned; the encrypted flag is not surfaced.
    """
    envs = {env.key: env.value for env in remote.envs}
    enable_static_ip = len(remote.node.ip) > 0

    spec = AppSpec.model_construct(
        id=remote.id,
        name=remote.id,
        plan_id=remote.plan_id,
        bundle_plan_id=remote.bundle_plan_id,
        platform=remote.type,
        read_only_root_filesystem=remote.read_only_root_filesystem,
        network_name=remote.network.name,
        rolling_update=remote.zero_downtime,
        turn_off=remote.scale == 0,
        envs=envs,
        static_ip=remote.node.ip if enable_static_ip else None,
        enable_static_ip=enable_static_ip,
        disable_default_subdomain=not remote.default_subdomain,
    )

    logger.debug(
        "Projected remote app",
        extra={"app_id": remote.id, "status": remote.status, "scale": remote.scale},
    )
    return spec
