"""PaaS API mock for reconciler tests.

Provides an in-memory stand-in for the app API that records every call
and supports per-operation failure injection.

Usage:
    from paas_mock import MockPaasClient

    client = MockPaasClient()
    client.fail("set_envs", status_code=500, body="boom")

    result = AppReconciler(client).create(spec)

    assert client.call_names() == ["create_app", "set_envs"]
"""

from .client import MockCall, MockPaasClient
from .state import MockAppState, remote_payload_from_spec

__all__ = [
    "MockAppState",
    "MockCall",
    "MockPaasClient",
    "remote_payload_from_spec",
]
