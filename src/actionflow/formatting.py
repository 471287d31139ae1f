"""Report formatting for validation results.

Markdown output is meant for people reading a terminal or a pull request;
JSON output is the pydantic dump of the result for tooling.
"""

from typing import Any

from .engine import ExecutionValidationResult, ValidationError

# =============================================================================
# Markdown Formatting Utilities
# =============================================================================


def _issue_line(issue: ValidationError) -> str:
    where = ".".join(part for part in (issue.action_id, issue.field) if part)
    line = f"- `{issue.type.value}`"
    if where:
        line += f" **{where}**"
    line += f": {issue.message}"
    if issue.suggestion:
        line += f" _(hint: {issue.suggestion})_"
    return line


def format_execution_result_markdown(name: str, result: ExecutionValidationResult) -> str:
    """Format an execution validation result as markdown.

    Args:
        name: Workflow or bundle name for the heading
        result: Result from ExecutionValidator.validate_for_execution

    Returns:
        Markdown report with readiness, errors, warnings and estimates
    """
    readiness = result.readiness
    status = "ready to execute" if result.can_execute else "not executable"
    graph = result.validation_result.dependency_graph

    lines = [
        f"# Workflow: {name}",
        "",
        f"**Status**: {status}",
        f"**Readiness**: {readiness.readiness_score}/100 - {readiness.readiness_message}",
        "",
        "## Checks",
        f"- **Parameters configured**: {'yes' if readiness.parameters_configured else 'no'}",
        f"- **Data flow valid**: {'yes' if readiness.data_flow_valid else 'no'}",
        f"- **No circular dependencies**: {'yes' if readiness.no_circular_dependencies else 'no'}",
        f"- **All actions valid**: {'yes' if readiness.all_actions_valid else 'no'}",
        f"- **Dependency depth**: {graph.max_depth}",
    ]

    if result.estimated_gas_cost is not None or result.estimated_execution_time is not None:
        lines.append("")
        lines.append("## Estimates")
        if result.estimated_gas_cost is not None:
            lines.append(f"- **Gas**: {result.estimated_gas_cost}")
        if result.estimated_execution_time is not None:
            lines.append(f"- **Execution time**: {result.estimated_execution_time} ms")

    if result.blocking_errors:
        lines.append("")
        lines.append(f"## Blocking Errors ({len(result.blocking_errors)})")
        lines.extend(_issue_line(issue) for issue in result.blocking_errors)

    advisories = [_issue_line(issue) for issue in result.warnings]
    advisories.extend(f"- {message}" for message in result.validation_result.warnings)
    if advisories:
        lines.append("")
        lines.append(f"## Warnings ({len(advisories)})")
        lines.extend(advisories)

    return "\n".join(lines)


def format_summary_markdown(passed: int, failed: int) -> str:
    """Format the closing summary line for a multi-bundle run."""
    return f"**Summary**: {passed} executable, {failed} not executable"


# =============================================================================
# JSON Formatting Utilities
# =============================================================================


def format_execution_result_json(
    name: str, result: ExecutionValidationResult
) -> dict[str, Any]:
    """Format an execution validation result as a JSON-ready dictionary."""
    return {"name": name, **result.model_dump(mode="json")}


# =============================================================================
# Error Formatting Utilities
# =============================================================================


def format_load_error(source: str, error: str, format_type: str = "json") -> dict[str, Any] | str:
    """Format a bundle load failure.

    Args:
        source: File or directory that failed to load
        error: Error message from LoadResult
        format_type: Response format ("json" or "markdown")

    Returns:
        Error message in requested format
    """
    if format_type == "markdown":
        return f"**Error**: Failed to load `{source}`\n\n```\n{error}\n```"
    else:
        return {"source": source, "error": error}


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "format_execution_result_markdown",
    "format_summary_markdown",
    "format_execution_result_json",
    "format_load_error",
]
