"""Read-only lookup of an existing app.

Unlike AppReconciler, the data source never mutates anything: it fetches
an app by name and exposes the projected attributes so other configuration
can reference them.
"""

from __future__ import annotations

from .client import AppClient
from .reconciler import Operation, ReconcileResult, fetch_app, finish_result


class AppDataSource:
    """Looks up apps by name."""

    def __init__(self, client: AppClient) -> None:
        self._client = client

    def read(self, name: str) -> ReconcileResult:
        result = ReconcileResult(operation=Operation.READ, name=name)
        result.spec = fetch_app(self._client, name, result)
        return finish_result(result)
