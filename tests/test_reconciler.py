"""Tests for create/read/update/delete reconciliation."""

from __future__ import annotations

import json

import pytest
from paas_mock import MockPaasClient
from paas_mock.state import MOCK_STATIC_IP, MockAppState

from appctl.models import AppSpec
from appctl.reconciler import (
    BUNDLE_PLAN_IGNORED,
    CREATE_FAILED,
    DECODE_FAILED,
    DELETE_FAILED,
    READ_FAILED,
    TOGGLE_STEPS,
    UPDATE_FAILED,
    AppReconciler,
    Operation,
)

ALL_TOGGLE_CALLS = [
    "set_power",
    "set_rolling_update",
    "set_envs",
    "set_static_ip",
    "set_default_subdomain",
]


def make_spec(**overrides: object) -> AppSpec:
    data: dict[str, object] = {
        "name": "shop-api",
        "plan_id": "small-g2",
        "platform": "docker",
        "read_only_root_filesystem": False,
    }
    data.update(overrides)
    return AppSpec.model_validate(data)


def make_full_spec() -> AppSpec:
    return make_spec(
        bundle_plan_id="standard",
        turn_off=True,
        rolling_update=True,
        envs={"DEBUG": "false", "PORT": "8080"},
        enable_static_ip=True,
        disable_default_subdomain=True,
    )


class TestCreate:
    """Tests for AppReconciler.create."""

    def test_no_toggles_issues_single_call(self) -> None:
        """Test that a spec with every toggle off only creates the app."""
        client = MockPaasClient()

        result = AppReconciler(client).create(make_spec())

        assert client.call_names() == ["create_app"]
        assert result.success is True
        assert result.spec == make_spec()

    def test_bundle_plan_id_is_not_forwarded(self) -> None:
        """Test that create sends name, plan, platform and rootfs flag only."""
        client = MockPaasClient()

        result = AppReconciler(client).create(make_spec(bundle_plan_id="standard"))

        assert client.calls[0].args == ("shop-api", "small-g2", "docker", False)
        assert result.success is True
        assert result.diagnostics.summaries() == [BUNDLE_PLAN_IGNORED]

    def test_all_toggles_in_order(self) -> None:
        """Test that every enabled toggle fires once, in fixed order."""
        client = MockPaasClient()

        result = AppReconciler(client).create(make_full_spec())

        assert client.call_names() == ["create_app", *ALL_TOGGLE_CALLS]
        assert result.success is True
        assert result.calls == ["create_app", *(step.name for step in TOGGLE_STEPS)]

    def test_toggle_arguments(self) -> None:
        """Test the mode strings and payloads sent by each toggle."""
        client = MockPaasClient()

        AppReconciler(client).create(make_full_spec())

        args = {call.operation: call.args for call in client.calls}
        assert args["set_power"] == ("shop-api",)
        assert args["set_rolling_update"] == ("shop-api", "enable")
        assert args["set_envs"] == ("shop-api", {"DEBUG": "false", "PORT": "8080"})
        assert args["set_static_ip"] == ("shop-api", "enable")
        assert args["set_default_subdomain"] == ("shop-api", "disable")

    def test_empty_envs_still_applied(self) -> None:
        """Test that an empty env mapping is sent, unlike an absent one."""
        client = MockPaasClient()

        AppReconciler(client).create(make_spec(envs={}))

        assert client.call_names() == ["create_app", "set_envs"]
        assert client.calls[1].args == ("shop-api", {})

    @pytest.mark.parametrize("failing", ALL_TOGGLE_CALLS)
    def test_failed_toggle_does_not_stop_later_toggles(self, failing: str) -> None:
        """Test best-effort toggles: one failure, all five still invoked."""
        client = MockPaasClient()
        client.fail(failing, status_code=500, body="toggle exploded")

        result = AppReconciler(client).create(make_full_spec())

        assert client.call_names() == ["create_app", *ALL_TOGGLE_CALLS]
        assert result.spec == make_full_spec()
        assert result.aborted is False
        assert result.partial is True
        assert len(result.diagnostics.errors()) == 1
        assert "toggle exploded" in result.diagnostics.errors()[0].detail

    def test_every_toggle_failing_collects_every_title(self) -> None:
        """Test that each failed toggle is reported under its own title."""
        client = MockPaasClient()
        for operation in ALL_TOGGLE_CALLS:
            client.fail_transport(operation)

        result = AppReconciler(client).create(make_full_spec())

        assert [d.summary for d in result.diagnostics.errors()] == [
            step.title for step in TOGGLE_STEPS
        ]
        assert result.spec is not None

    def test_create_status_failure_aborts(self) -> None:
        """Test that a failed base call skips toggles and returns no state."""
        client = MockPaasClient()
        client.fail("create_app", status_code=400, body='{"message":"invalid plan"}')

        result = AppReconciler(client).create(make_full_spec())

        assert client.call_names() == ["create_app"]
        assert result.spec is None
        assert result.aborted is True
        error = result.diagnostics.errors()[0]
        assert error.summary == CREATE_FAILED
        assert '{"message":"invalid plan"}' in error.detail

    def test_create_transport_failure_aborts(self) -> None:
        """Test that a transport error on create is fatal."""
        client = MockPaasClient()
        client.fail_transport("create_app", "connection reset by peer")

        result = AppReconciler(client).create(make_spec(turn_off=True))

        assert client.call_names() == ["create_app"]
        assert result.spec is None
        assert "connection reset by peer" in result.diagnostics.errors()[0].detail

    def test_non_200_success_codes_are_failures(self) -> None:
        """Test that only an exact 200 counts as success."""
        client = MockPaasClient()
        client.respond("create_app", status_code=201, body="created")

        result = AppReconciler(client).create(make_spec())

        assert result.aborted is True

    def test_create_does_not_refetch(self) -> None:
        """Test that the supplied spec is returned without a read-back."""
        client = MockPaasClient()
        spec = make_spec(turn_off=True)

        result = AppReconciler(client).create(spec)

        assert "get_app_by_name" not in client.call_names()
        assert result.spec is spec
        assert result.spec.id == ""


class TestRead:
    """Tests for AppReconciler.read and import_app."""

    def test_read_projects_remote_state(self) -> None:
        """Test reading back an app created with toggles."""
        client = MockPaasClient()
        reconciler = AppReconciler(client)
        reconciler.create(make_full_spec())

        result = reconciler.read("shop-api")

        app_id = client.apps["shop-api"].app_id
        assert result.success is True
        assert result.spec is not None
        assert result.spec.id == app_id
        assert result.spec.name == app_id
        assert result.spec.turn_off is True
        assert result.spec.rolling_update is True
        assert result.spec.envs == {"DEBUG": "false", "PORT": "8080"}
        assert result.spec.enable_static_ip is True
        assert result.spec.static_ip == MOCK_STATIC_IP
        assert result.spec.disable_default_subdomain is True

    @pytest.mark.parametrize("status_code", [404, 500])
    def test_non_200_is_read_failed_with_body(self, status_code: int) -> None:
        """Test that error bodies surface verbatim with no partial state."""
        client = MockPaasClient()
        client.fail("get_app_by_name", status_code=status_code, body="no such app: shop-api")

        result = AppReconciler(client).read("shop-api")

        assert result.spec is None
        error = result.diagnostics.errors()[0]
        assert error.summary == READ_FAILED
        assert "no such app: shop-api" in error.detail

    def test_missing_app(self) -> None:
        """Test reading an app that does not exist."""
        result = AppReconciler(MockPaasClient()).read("ghost")

        assert result.spec is None
        assert "project not found" in result.diagnostics.errors()[0].detail

    def test_transport_failure(self) -> None:
        """Test that a transport error on read is fatal."""
        client = MockPaasClient()
        client.fail_transport("get_app_by_name", "timed out")

        result = AppReconciler(client).read("shop-api")

        assert result.aborted is True
        assert result.diagnostics.summaries() == [READ_FAILED]

    def test_malformed_body_is_decode_failure(self) -> None:
        """Test that a 200 with a non-JSON body fails decoding."""
        client = MockPaasClient()
        client.respond("get_app_by_name", body="<html>gateway</html>")

        result = AppReconciler(client).read("shop-api")

        assert result.spec is None
        assert result.diagnostics.summaries() == [DECODE_FAILED]

    @pytest.mark.parametrize(
        "payload",
        [
            {"_id": "a1", "node": {"_id": "n1", "IP": None}},
            {"_id": "a1", "envs": [{"key": "PORT", "value": None, "encrypted": None}]},
            {"_id": "a1", "defaultSubdomain": None, "zeroDowntime": None},
            {"_id": "a1", "network": {"_id": None, "name": None}},
        ],
    )
    def test_nested_nulls_read_as_zero_values(self, payload: dict) -> None:
        """Test that nulls inside nested records do not fail the read."""
        client = MockPaasClient()
        client.respond("get_app_by_name", body=json.dumps({"project": payload}))

        result = AppReconciler(client).read("shop-api")

        assert result.success is True
        assert result.spec is not None
        assert result.spec.id == "a1"

    def test_import_reads_by_name(self) -> None:
        """Test that import adopts an existing app through a read."""
        existing = MockAppState(name="legacy", plan_id="free", platform="node", scale=2)
        client = MockPaasClient(initial_apps=[existing])

        result = AppReconciler(client).import_app("legacy")

        assert result.operation is Operation.IMPORT
        assert client.call_names() == ["get_app_by_name"]
        assert result.spec is not None
        assert result.spec.plan_id == "free"
        assert result.spec.turn_off is False


class TestUpdate:
    """Tests for AppReconciler.update."""

    def test_update_changes_plan_then_toggles(self) -> None:
        """Test that update replaces create with a plan change."""
        client = MockPaasClient(
            initial_apps=[MockAppState(name="shop-api", plan_id="small-g2", platform="docker")]
        )

        spec = make_full_spec().model_copy(update={"plan_id": "large-g2"})

        result = AppReconciler(client).update(spec)

        assert client.call_names() == ["change_plan", *ALL_TOGGLE_CALLS]
        assert client.calls[0].args == ("shop-api", "large-g2")
        assert client.apps["shop-api"].plan_id == "large-g2"
        assert result.success is True

    def test_update_without_toggles(self) -> None:
        """Test that update with no flags only changes the plan."""
        client = MockPaasClient(
            initial_apps=[MockAppState(name="shop-api", plan_id="small-g2", platform="docker")]
        )

        AppReconciler(client).update(make_spec())

        assert client.call_names() == ["change_plan"]

    def test_plan_change_failure_aborts(self) -> None:
        """Test that a failed plan change skips every toggle."""
        client = MockPaasClient()
        client.fail("change_plan", status_code=402, body="insufficient balance")

        result = AppReconciler(client).update(make_full_spec())

        assert client.call_names() == ["change_plan"]
        assert result.spec is None
        assert result.diagnostics.summaries() == [UPDATE_FAILED]
        assert "insufficient balance" in result.diagnostics.errors()[0].detail

    def test_plan_change_transport_failure_aborts(self) -> None:
        """Test that a transport error on the plan change skips every toggle."""
        client = MockPaasClient()
        client.fail_transport("change_plan", "connection reset by peer")

        result = AppReconciler(client).update(make_full_spec())

        assert client.call_names() == ["change_plan"]
        assert result.spec is None
        assert result.aborted is True
        assert result.diagnostics.summaries() == [UPDATE_FAILED]
        assert "connection reset by peer" in result.diagnostics.errors()[0].detail

    def test_update_toggle_failure_is_partial(self) -> None:
        """Test best-effort semantics on update."""
        client = MockPaasClient(
            initial_apps=[MockAppState(name="shop-api", plan_id="small-g2", platform="docker")]
        )
        client.fail("set_rolling_update", status_code=409, body="busy")

        result = AppReconciler(client).update(make_full_spec())

        assert result.partial is True
        assert client.call_names()[-1] == "set_default_subdomain"
        assert client.apps["shop-api"].node_ip == MOCK_STATIC_IP


class TestDelete:
    """Tests for AppReconciler.delete."""

    def test_delete_single_call(self) -> None:
        """Test that delete issues exactly one call and no toggles."""
        client = MockPaasClient(
            initial_apps=[MockAppState(name="shop-api", plan_id="small-g2", platform="docker")]
        )

        result = AppReconciler(client).delete("shop-api")

        assert client.call_names() == ["delete_app_by_name"]
        assert result.success is True
        assert "shop-api" not in client.apps

    def test_delete_failure_reported(self) -> None:
        """Test that a failed delete is fatal and carries the body."""
        client = MockPaasClient()
        client.fail("delete_app_by_name", status_code=500, body="try later")

        result = AppReconciler(client).delete("shop-api")

        assert client.call_names() == ["delete_app_by_name"]
        assert result.aborted is True
        assert result.diagnostics.summaries() == [DELETE_FAILED]
        assert "try later" in result.diagnostics.errors()[0].detail

    def test_delete_transport_failure(self) -> None:
        """Test that a transport error on delete is reported, not raised."""
        client = MockPaasClient()
        client.fail_transport("delete_app_by_name")

        result = AppReconciler(client).delete("shop-api")

        assert result.aborted is True
        assert len(client.calls) == 1
