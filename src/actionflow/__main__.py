"""Validate workflow bundles from the command line.

Usage:
    python -m actionflow <bundle_file_or_directory> [--json]
    python -m actionflow bundles/swap-and-stake.yaml
    python -m actionflow bundles/ --json

Each bundle is validated for execution and reported as markdown (or JSON with
``--json``). The exit code is 1 when any bundle fails to load or cannot be
executed, 2 on usage errors.

Environment variables:
    ACTIONFLOW_LOG_LEVEL   Log level for stderr logging (default: WARNING)
    ACTIONFLOW_*           Validator thresholds, see actionflow.engine.config
"""

import json
import logging
import os
import sys
from pathlib import Path

from .engine import (
    ExecutionValidator,
    ValidationBundle,
    ValidatorSettings,
    discover_bundles,
    load_bundle_from_file,
)
from .formatting import (
    format_execution_result_json,
    format_execution_result_markdown,
    format_load_error,
    format_summary_markdown,
)

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    log_level_str = os.getenv("ACTIONFLOW_LOG_LEVEL", "WARNING").upper()

    if log_level_str not in valid_log_levels:
        print(
            f"Warning: Invalid ACTIONFLOW_LOG_LEVEL '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(valid_log_levels))}. "
            "Using WARNING.",
            file=sys.stderr,
        )
        log_level_str = "WARNING"

    logging.basicConfig(
        level=getattr(logging, log_level_str),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _load_bundles(target: Path) -> tuple[list[ValidationBundle], list[tuple[str, str]]]:
    """Load one bundle file or every bundle in a directory."""
    if target.is_dir():
        result = discover_bundles(target)
    else:
        result = load_bundle_from_file(target).map(lambda bundle: [bundle])

    if not result.is_success:
        return [], [(str(target), result.error or "unknown error")]
    return result.unwrap(), result.load_errors


def main(argv: list[str] | None = None) -> int:
    """Entry point; returns the process exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    as_json = "--json" in args
    paths = [arg for arg in args if arg != "--json"]

    if len(paths) != 1:
        print(__doc__, file=sys.stderr)
        return 2

    _configure_logging()

    target = Path(paths[0])
    if not target.exists():
        print(f"Error: Path not found: {target}", file=sys.stderr)
        return 1

    bundles, load_failures = _load_bundles(target)
    validator = ExecutionValidator(settings=ValidatorSettings.from_env())

    reports = []
    passed = 0
    for bundle in bundles:
        result = validator.validate_for_execution(bundle.workflow, bundle.actions, bundle.values)
        if result.can_execute:
            passed += 1
        if as_json:
            reports.append(format_execution_result_json(bundle.name, result))
        else:
            reports.append(format_execution_result_markdown(bundle.name, result))

    failed = len(bundles) - passed + len(load_failures)
    if as_json:
        errors = [format_load_error(source, error, "json") for source, error in load_failures]
        print(json.dumps({"results": reports, "load_errors": errors}, indent=2))
    else:
        sections = [str(report) for report in reports]
        sections.extend(
            str(format_load_error(source, error, "markdown")) for source, error in load_failures
        )
        print("\n\n".join(sections))
        if len(bundles) + len(load_failures) > 1:
            print()
            print(format_summary_markdown(passed, failed))

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
