"""
YAML loader for validation bundles and action catalogs.

A validation bundle carries everything one validation run needs:

    workflow:
      metadata: {name: swap-and-stake}
      actions:
        - {id: swap, action_type: swap-tokens, next_actions: [stake]}
        - {id: stake, action_type: stake-tokens}
    catalog: catalog.yaml          # optional, relative to the bundle file
    actions:                       # inline action metadata (list or mapping)
      - id: swap-tokens
        outputs: [{name: amountOut, type: UFix64}]
    values:
      swap: {amount: "10.0"}
      stake: {amount: swap.amountOut}

Inline ``actions`` override catalog entries with the same ID. Loading never
raises for bad files; failures come back as ``LoadResult.failure``.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .load_result import LoadResult
from .schema import ActionMetadata, Workflow

logger = logging.getLogger(__name__)


class ValidationBundle(BaseModel):
    """Workflow, action metadata keyed by action type, and the value bag."""

    workflow: Workflow
    actions: dict[str, ActionMetadata] = Field(default_factory=dict)
    values: dict[str, dict[str, Any]] = Field(default_factory=dict)
    source: str = "<string>"

    @property
    def name(self) -> str:
        """Workflow name, falling back to the bundle source."""
        return self.workflow.metadata.name or self.source


def _validation_failure(kind: str, source: str, error: Exception) -> str:
    error_msg = str(error)
    if "validation error" in error_msg.lower():
        return f"{kind} validation failed in {source}:\n{error_msg}"
    return f"{kind} validation failed in {source}: {error_msg}"


def _parse_catalog(data: Any, source: str) -> LoadResult[dict[str, ActionMetadata]]:
    """Accept a list of metadata records or a mapping ``action_type -> record``."""
    if isinstance(data, dict) and "actions" in data and len(data) == 1:
        data = data["actions"]

    catalog: dict[str, ActionMetadata] = {}
    try:
        if isinstance(data, list):
            for entry in data:
                metadata = ActionMetadata.model_validate(entry)
                catalog[metadata.id] = metadata
        elif isinstance(data, dict):
            for action_type, entry in data.items():
                if isinstance(entry, dict):
                    entry = {"id": action_type, **entry}
                catalog[str(action_type)] = ActionMetadata.model_validate(entry)
        elif data is not None:
            return LoadResult.failure(
                f"Action catalog {source} must be a list or mapping, got {type(data).__name__}"
            )
    except Exception as e:
        return LoadResult.failure(_validation_failure("Action metadata", source, e))

    return LoadResult.success(catalog)


def load_action_catalog(file_path: str | Path) -> LoadResult[dict[str, ActionMetadata]]:
    """
    Load action metadata from a YAML file.

    Args:
        file_path: YAML file holding a list of metadata records, a mapping
            keyed by action type, or a single ``actions:`` key with either

    Returns:
        LoadResult.success(dict action_type -> ActionMetadata)
        LoadResult.failure(error_message)
    """
    path = Path(file_path)
    if not path.is_file():
        return LoadResult.failure(f"Action catalog not found: {file_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return LoadResult.failure(f"Invalid YAML syntax in {file_path}: {e}")
    except OSError as e:
        return LoadResult.failure(f"Failed to read file '{file_path}': {e}")

    return _parse_catalog(data, str(file_path))


def load_bundle_from_yaml(
    yaml_content: str, source: str = "<string>", base_dir: Path | None = None
) -> LoadResult[ValidationBundle]:
    """
    Load a validation bundle from a YAML string.

    Args:
        yaml_content: YAML content as string
        source: Source identifier for error messages (default: "<string>")
        base_dir: Directory a ``catalog`` path is resolved against
            (default: current directory)

    Returns:
        LoadResult.success(ValidationBundle) if valid
        LoadResult.failure(error_message) otherwise
    """
    try:
        data = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        return LoadResult.failure(f"Invalid YAML syntax in {source}: {e}")

    if not isinstance(data, dict):
        return LoadResult.failure(
            f"Bundle {source} must be a YAML dictionary, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - {"workflow", "catalog", "actions", "values"})
    if unknown:
        return LoadResult.failure(f"Unknown top-level keys in {source}: {', '.join(unknown)}")

    try:
        workflow = Workflow.model_validate(data.get("workflow") or {})
    except Exception as e:
        return LoadResult.failure(_validation_failure("Workflow", source, e))

    actions: dict[str, ActionMetadata] = {}
    if data.get("catalog"):
        catalog_path = Path(base_dir or Path.cwd()) / str(data["catalog"])
        catalog_result = load_action_catalog(catalog_path)
        if not catalog_result.is_success:
            return LoadResult.failure(f"Bundle {source}: {catalog_result.error}")
        actions.update(catalog_result.unwrap_or({}))

    inline_result = _parse_catalog(data.get("actions"), source)
    if not inline_result.is_success:
        return LoadResult.failure(inline_result.error or f"Invalid actions in {source}")
    actions.update(inline_result.unwrap_or({}))

    values = data.get("values") or {}
    if not isinstance(values, dict) or not all(isinstance(v, dict) for v in values.values()):
        return LoadResult.failure(
            f"Bundle {source}: values must map action IDs to parameter mappings"
        )

    bundle = ValidationBundle(
        workflow=workflow,
        actions=actions,
        values={str(action_id): bag for action_id, bag in values.items()},
        source=source,
    )
    return LoadResult.success(bundle)


def load_bundle_from_file(file_path: str | Path) -> LoadResult[ValidationBundle]:
    """
    Load a validation bundle from a YAML file.

    Example:
        result = load_bundle_from_file("bundles/swap-and-stake.yaml")
        if result.is_success:
            bundle = result.value
            validator.validate_workflow(bundle.workflow, bundle.actions, bundle.values)
        else:
            print(f"Failed to load: {result.error}")
    """
    path = Path(file_path)

    if not path.exists():
        return LoadResult.failure(f"Bundle file not found: {file_path}")

    if not path.is_file():
        return LoadResult.failure(f"Path is not a file: {file_path}")

    try:
        with open(path, encoding="utf-8") as f:
            yaml_content = f.read()
    except OSError as e:
        return LoadResult.failure(f"Failed to read file '{file_path}': {e}")

    return load_bundle_from_yaml(yaml_content, source=str(file_path), base_dir=path.parent)


def discover_bundles(directory: str | Path) -> LoadResult[list[ValidationBundle]]:
    """
    Load every bundle (*.yaml, *.yml) in a directory.

    Files that fail to load are skipped with a logged warning; files that
    only hold an action catalog (no ``workflow`` key) are skipped silently.
    """
    dir_path = Path(directory)

    if not dir_path.exists():
        return LoadResult.failure(f"Directory not found: {directory}")

    if not dir_path.is_dir():
        return LoadResult.failure(f"Path is not a directory: {directory}")

    bundles: list[ValidationBundle] = []
    errors: list[tuple[str, str]] = []

    yaml_files = sorted(list(dir_path.glob("*.yaml")) + list(dir_path.glob("*.yml")))

    for yaml_file in yaml_files:
        if not _looks_like_bundle(yaml_file):
            logger.debug(f"Skipping {yaml_file.name}: no workflow key")
            continue
        result = load_bundle_from_file(yaml_file)
        if result.is_success and result.value is not None:
            bundles.append(result.value)
        else:
            errors.append((str(yaml_file), result.error or "unknown error"))

    if errors:
        logger.warning(f"{len(errors)} bundle(s) failed to load:")
        for source, error in errors:
            logger.warning(f"  - {source}: {error}")

    return LoadResult.success(bundles, metadata={"errors": errors})


def _looks_like_bundle(path: Path) -> bool:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        # Let load_bundle_from_file report the problem
        return True
    return isinstance(data, dict) and "workflow" in data
