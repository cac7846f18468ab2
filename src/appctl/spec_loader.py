"""Desired-state file loading with validation.

SECURITY: All file operations enforce size limits to prevent DoS attacks
via large files. Input validation is performed at the boundary.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .config import MAX_SPEC_FILE_SIZE_BYTES
from .models import AppSpec

logger = logging.getLogger(__name__)

SPEC_KIND = "App"


class SpecLoadError(Exception):
    """Raised when spec loading or validation fails."""

    pass


def load_app_spec(spec_path: Path) -> AppSpec:
    """Load and validate an app spec from YAML.

    Both a flat mapping of attributes and a Kubernetes-style wrapper
    (apiVersion, kind, metadata, spec) are accepted.

    Args:
        spec_path: Path to the YAML file.

    Returns:
        Validated AppSpec.

    Raises:
        SpecLoadError: If the spec cannot be loaded or fails validation.
    """
    if not spec_path.exists():
        raise SpecLoadError(f"Spec file not found: {spec_path}")

    # SECURITY: Check file size before reading to prevent DoS
    try:
        file_size = spec_path.stat().st_size
    except OSError as e:
        raise SpecLoadError(f"Failed to stat spec file {spec_path}: {e}") from e

    if file_size > MAX_SPEC_FILE_SIZE_BYTES:
        raise SpecLoadError(
            f"Spec file exceeds maximum size of {MAX_SPEC_FILE_SIZE_BYTES} bytes: {spec_path}"
        )

    try:
        content = spec_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError(f"Failed to read spec file {spec_path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Invalid YAML in {spec_path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise SpecLoadError(f"Spec file must contain a YAML mapping: {spec_path}")

    if "apiVersion" in raw_data and "spec" in raw_data:
        kind = raw_data.get("kind", SPEC_KIND)
        if kind != SPEC_KIND:
            raise SpecLoadError(f"Unsupported kind '{kind}' in {spec_path}, expected {SPEC_KIND}")
        spec_data = raw_data.get("spec", {})
        if not isinstance(spec_data, dict):
            raise SpecLoadError(f"Spec section must be a mapping: {spec_path}")
    else:
        spec_data = raw_data

    try:
        spec = AppSpec.model_validate(spec_data)
    except ValidationError as e:
        # Format Pydantic validation errors for readability
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            errors.append(f"  - {loc}: {msg}")

        error_list = "\n".join(errors)
        raise SpecLoadError(f"Validation failed for {spec_path}:\n{error_list}") from e

    logger.info("Loaded spec for app '%s' from %s", spec.name, spec_path)
    return spec


def dump_state(spec: AppSpec, *, reveal_sensitive: bool = False) -> str:
    """Render realized state as YAML."""
    return yaml.safe_dump(
        spec.to_state(reveal_sensitive=reveal_sensitive),
        sort_keys=False,
        default_flow_style=False,
    )
