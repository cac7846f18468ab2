"""Pydantic models for the declarative app and its wire representation.

These models provide:
1. The flat declarative AppSpec (desired and realized state)
2. The nested RemoteAppState exactly as the PaaS API returns it
3. Validation at the boundary (fail fast, fail loudly)
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator

SENSITIVE_PLACEHOLDER = "(sensitive)"

# =============================================================================
# Declarative model
# =============================================================================


class AppSpec(BaseModel):
    """Desired or realized state of a single app.

    Field names match the persisted attribute surface. `name` doubles as
    the remote lookup key and cannot change once the app exists.
    """

    model_config = {"extra": "forbid"}  # Reject unknown attributes

    id: str = ""
    name: Annotated[str, Field(min_length=1)]
    plan_id: Annotated[str, Field(min_length=1)]
    # Accepted and persisted but never sent on create
    bundle_plan_id: str | None = None
    platform: Annotated[str, Field(min_length=1)]
    read_only_root_filesystem: bool
    network_name: str | None = None

    # Post-provisioning toggles
    rolling_update: bool = False
    turn_off: bool = False
    # None means "not managed"; an empty mapping still clears remote envs
    envs: dict[str, str] | None = None
    static_ip: str | None = None
    enable_static_ip: bool = False
    disable_default_subdomain: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if v != v.strip() or "/" in v:
            raise ValueError("name must not contain surrounding whitespace or '/'")
        return v

    def requires_replace(self, other: AppSpec) -> bool:
        """Check whether moving from self to other needs destroy + recreate."""
        return self.name != other.name

    def to_state(self, *, reveal_sensitive: bool = False) -> dict[str, Any]:
        """Render the persisted attributes, masking env values by default."""
        state = self.model_dump()
        if state["envs"] is not None and not reveal_sensitive:
            state["envs"] = {key: SENSITIVE_PLACEHOLDER for key in state["envs"]}
        return state


# =============================================================================
# Wire model
# =============================================================================


class RemoteEnv(BaseModel):
    """One environment entry as stored remotely."""

    model_config = {"extra": "ignore"}

    key: str = ""
    value: str = ""
    encrypted: bool = False

    @field_validator("key", "value", mode="before")
    @classmethod
    def null_to_empty_string(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("encrypted", mode="before")
    @classmethod
    def null_to_false(cls, v: Any) -> Any:
        return False if v is None else v


class RemoteNetwork(BaseModel):
    """Network sub-record of a remote app."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str = Field("", alias="_id")
    name: str = ""

    @field_validator("id", "name", mode="before")
    @classmethod
    def null_to_empty_string(cls, v: Any) -> Any:
        return "" if v is None else v


class RemoteNode(BaseModel):
    """Node sub-record; a non-empty IP means a static IP is attached."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str = Field("", alias="_id")
    ip: str = Field("", alias="IP")

    @field_validator("id", "ip", mode="before")
    @classmethod
    def null_to_empty_string(cls, v: Any) -> Any:
        return "" if v is None else v


class RemoteAppState(BaseModel):
    """An app as returned by the fetch-by-name call.

    JSON nulls, including those inside nested records, decode to zero
    values, mirroring how the API omits unset fields. Billing fields are
    decoded but never surfaced.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    id: str = Field("", alias="_id")
    project_id: str = ""
    type: str = ""
    status: str = ""
    default_subdomain: bool = Field(False, alias="defaultSubdomain")
    read_only_root_filesystem: bool = Field(False, alias="readOnlyRootFilesystem")
    zero_downtime: bool = Field(False, alias="zeroDowntime")
    scale: int = 0
    envs: list[RemoteEnv] = Field(default_factory=list)
    plan_id: str = Field("", alias="planID")
    bundle_plan_id: str = Field("", alias="bundlePlanID")
    network: RemoteNetwork = Field(default_factory=RemoteNetwork)
    node: RemoteNode = Field(default_factory=RemoteNode)
    fixed_ip_status: str = Field("", alias="fixedIPStatus")
    created_at: str = ""

    # Billing
    hourly_price: int = Field(0, alias="hourlyPrice")
    is_deployed: bool = Field(False, alias="isDeployed")
    reserved_disk_space: int = Field(0, alias="reservedDiskSpace")

    @field_validator(
        "id",
        "project_id",
        "type",
        "status",
        "plan_id",
        "bundle_plan_id",
        "fixed_ip_status",
        "created_at",
        mode="before",
    )
    @classmethod
    def null_to_empty_string(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("scale", "hourly_price", "reserved_disk_space", mode="before")
    @classmethod
    def null_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator(
        "default_subdomain",
        "read_only_root_filesystem",
        "zero_downtime",
        "is_deployed",
        mode="before",
    )
    @classmethod
    def null_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("envs", mode="before")
    @classmethod
    def null_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("network", "node", mode="before")
    @classmethod
    def null_to_empty_record(cls, v: Any) -> Any:
        return {} if v is None else v


class AppEnvelope(BaseModel):
    """Top-level body of the fetch-by-name response."""

    model_config = {"extra": "ignore"}

    project: RemoteAppState
