"""Create/Read/Update/Delete reconciliation of a single app.

Create and Update follow the same shape:
1. Issue one base call (create, or plan change). Failure here is fatal.
2. Apply the post-provisioning toggles in a fixed order:
   power, rolling-update, envs, static-ip, default-subdomain.
3. Return the desired spec as supplied, plus every diagnostic collected.

Toggles are best-effort: each one that fails records an error diagnostic
and the remaining toggles still run. Nothing is rolled back and nothing is
re-fetched; callers wanting ground truth issue a separate read().

The order is significant (power is settled before envs are applied), so
toggles run strictly one after another.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .client import ApiResponse, AppClient
from .diagnostics import AppctlError, DecodeError, Diagnostics, StatusError
from .models import AppSpec
from .projector import decode_app, project

logger = logging.getLogger(__name__)

CREATE_FAILED = "App creation failed"
UPDATE_FAILED = "App update failed"
READ_FAILED = "Reading App info failed"
DECODE_FAILED = "Decoding read response failed"
DELETE_FAILED = "Deleting app failed"
BUNDLE_PLAN_IGNORED = "Bundle plan not applied"


class Operation(str, Enum):
    """Reconciler entry points."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


@dataclass
class ReconcileResult:
    """Outcome of one operation.

    `spec` is None when the operation aborted on a fatal error. When only
    toggles failed, `spec` is still set and should be persisted, with the
    toggle errors attached in `diagnostics`.
    """

    operation: Operation
    name: str
    spec: AppSpec | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    calls: list[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate duration in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def success(self) -> bool:
        """True when nothing went wrong at all."""
        return not self.diagnostics.has_error()

    @property
    def aborted(self) -> bool:
        """True when a fatal error stopped the operation."""
        if self.operation is Operation.DELETE:
            return self.diagnostics.has_error()
        return self.spec is None

    @property
    def partial(self) -> bool:
        """True when the operation completed but some toggles failed."""
        return not self.aborted and self.diagnostics.has_error()


@dataclass(frozen=True)
class ToggleStep:
    """One conditional post-provisioning mutation."""

    name: str
    predicate: Callable[[AppSpec], bool]
    action: Callable[[AppClient, AppSpec], ApiResponse]
    title: str


def _set_power(client: AppClient, spec: AppSpec) -> ApiResponse:
    return client.set_power(spec.name)


def _set_rolling_update(client: AppClient, spec: AppSpec) -> ApiResponse:
    mode = "enable" if spec.rolling_update else "disable"
    return client.set_rolling_update(spec.name, mode)


def _set_envs(client: AppClient, spec: AppSpec) -> ApiResponse:
    return client.set_envs(spec.name, dict(spec.envs or {}))


def _set_static_ip(client: AppClient, spec: AppSpec) -> ApiResponse:
    mode = "enable" if spec.enable_static_ip else "disable"
    return client.set_static_ip(spec.name, mode)


def _set_default_subdomain(client: AppClient, spec: AppSpec) -> ApiResponse:
    # Negated flag: true switches the default subdomain off
    mode = "disable" if spec.disable_default_subdomain else "enable"
    return client.set_default_subdomain(spec.name, mode)


TOGGLE_STEPS: tuple[ToggleStep, ...] = (
    ToggleStep(
        name="power",
        predicate=lambda spec: spec.turn_off,
        action=_set_power,
        title="Turning off the app failed",
    ),
    ToggleStep(
        name="rolling-update",
        predicate=lambda spec: spec.rolling_update,
        action=_set_rolling_update,
        title="Updating rolling-update configuration failed",
    ),
    ToggleStep(
        name="envs",
        predicate=lambda spec: spec.envs is not None,
        action=_set_envs,
        title="Updating envs failed",
    ),
    ToggleStep(
        name="static-ip",
        predicate=lambda spec: spec.enable_static_ip,
        action=_set_static_ip,
        title="Enabling static ip failed",
    ),
    ToggleStep(
        name="default-subdomain",
        predicate=lambda spec: spec.disable_default_subdomain,
        action=_set_default_subdomain,
        title="Disabling default subdomain failed",
    ),
)


def _checked(response: ApiResponse) -> ApiResponse:
    if not response.ok:
        raise StatusError(response.status_code, response.body)
    return response


def fetch_app(client: AppClient, name: str, result: ReconcileResult) -> AppSpec | None:
    """Fetch, decode and project one app, recording failures on result.

    Shared by the managed resource and the read-only data source.
    """
    result.calls.append("get_app_by_name")
    try:
        response = _checked(client.get_app_by_name(name))
    except StatusError as e:
        result.diagnostics.add_error(READ_FAILED, f"Unable to read app info, got error: {e.body}")
        return None
    except AppctlError as e:
        result.diagnostics.add_error(READ_FAILED, f"Unable to read app info, got error: {e}")
        return None

    try:
        remote = decode_app(response.body)
    except DecodeError as e:
        result.diagnostics.add_error(
            DECODE_FAILED, f"Unable to decode read response, got error: {e}"
        )
        return None

    return project(remote)


def finish_result(result: ReconcileResult) -> ReconcileResult:
    """Stamp the end time and log the outcome."""
    result.end_time = datetime.now(UTC)
    _log_result(result)
    return result


def _log_result(result: ReconcileResult) -> None:
    """Log the operation outcome with structured data."""
    extra: dict[str, Any] = {
        "operation": result.operation.value,
        "app": result.name,
        "duration_seconds": result.duration_seconds,
        "calls": list(result.calls),
        "error_count": len(result.diagnostics.errors()),
    }

    if result.aborted:
        extra["errors"] = [str(d) for d in result.diagnostics.errors()]
        logger.error("Operation failed", extra=extra)
    elif result.partial:
        extra["errors"] = result.diagnostics.summaries()
        logger.warning("Operation completed with errors", extra=extra)
    else:
        logger.info("Operation completed", extra=extra)


class AppReconciler:
    """Drives a remote app towards an AppSpec.

    Holds no state between calls; each operation works on the spec it is
    given and on what the remote returns.
    """

    def __init__(self, client: AppClient) -> None:
        self._client = client

    def create(self, spec: AppSpec) -> ReconcileResult:
        """Create the app, then apply enabled toggles.

        The bundle plan id is accepted on the spec but not sent to the API.
        """
        result = ReconcileResult(operation=Operation.CREATE, name=spec.name)

        result.calls.append("create_app")
        try:
            _checked(
                self._client.create_app(
                    spec.name, spec.plan_id, spec.platform, spec.read_only_root_filesystem
                )
            )
        except AppctlError as e:
            result.diagnostics.add_error(
                CREATE_FAILED, f"Unable to create app, got error: {_detail(e)}"
            )
            return finish_result(result)

        logger.info("Created app", extra={"app": spec.name, "plan_id": spec.plan_id})
        if spec.bundle_plan_id:
            result.diagnostics.add_warning(
                BUNDLE_PLAN_IGNORED, "bundle_plan_id is recorded but not sent when creating an app"
            )
        self._apply_toggles(spec, result)
        result.spec = spec
        return finish_result(result)

    def read(self, name: str) -> ReconcileResult:
        """Fetch the app by name and project it into an AppSpec."""
        result = ReconcileResult(operation=Operation.READ, name=name)
        result.spec = fetch_app(self._client, name, result)
        return finish_result(result)

    def update(self, spec: AppSpec) -> ReconcileResult:
        """Change the plan, then apply enabled toggles."""
        result = ReconcileResult(operation=Operation.UPDATE, name=spec.name)

        result.calls.append("change_plan")
        try:
            _checked(self._client.change_plan(spec.name, spec.plan_id))
        except AppctlError as e:
            result.diagnostics.add_error(
                UPDATE_FAILED, f"Unable to update app, got error: {_detail(e)}"
            )
            return finish_result(result)

        logger.info("Changed app plan", extra={"app": spec.name, "plan_id": spec.plan_id})
        self._apply_toggles(spec, result)
        result.spec = spec
        return finish_result(result)

    def delete(self, name: str) -> ReconcileResult:
        """Delete the app. Toggle side effects are left as they are."""
        result = ReconcileResult(operation=Operation.DELETE, name=name)

        result.calls.append("delete_app_by_name")
        try:
            _checked(self._client.delete_app_by_name(name))
        except AppctlError as e:
            result.diagnostics.add_error(
                DELETE_FAILED, f"Unable to delete app, got error: {_detail(e)}"
            )

        return finish_result(result)

    def import_app(self, name: str) -> ReconcileResult:
        """Adopt an existing app using its name as the only key."""
        result = ReconcileResult(operation=Operation.IMPORT, name=name)
        result.spec = fetch_app(self._client, name, result)
        return finish_result(result)

    def _apply_toggles(self, spec: AppSpec, result: ReconcileResult) -> None:
        for step in TOGGLE_STEPS:
            if not step.predicate(spec):
                continue

            result.calls.append(step.name)
            try:
                _checked(step.action(self._client, spec))
            except AppctlError as e:
                logger.warning(
                    "Toggle failed, continuing with remaining toggles",
                    extra={"app": spec.name, "toggle": step.name, "error": _detail(e)},
                )
                result.diagnostics.add_error(step.title, f"got error: {_detail(e)}")
                continue

            logger.debug("Applied toggle", extra={"app": spec.name, "toggle": step.name})


def _detail(error: AppctlError) -> str:
    """Raw body for status errors, message text otherwise."""
    if isinstance(error, StatusError):
        return error.body
    return str(error)
