"""Tests for the command-line entry point and report formatting."""

import json
from pathlib import Path

import pytest

from actionflow.__main__ import main
from actionflow.formatting import format_load_error, format_summary_markdown

CATALOG_YAML = """\
- id: producer
  outputs:
    - {name: output1, type: UFix64}
- id: consumer
  parameters:
    - {name: amount, type: UFix64, required: true}
"""


def bundle_yaml(name: str, values: str) -> str:
    return (
        "workflow:\n"
        f"  metadata: {{name: {name}}}\n"
        "  actions:\n"
        "    - {id: A, action_type: producer, next_actions: [B]}\n"
        "    - id: B\n"
        "      action_type: consumer\n"
        "      parameters:\n"
        "        - {name: amount, type: UFix64, required: true}\n"
        "catalog: catalog.yaml\n"
        f"values: {values}\n"
    )


@pytest.fixture
def bundle_dir(tmp_path: Path) -> Path:
    (tmp_path / "catalog.yaml").write_text(CATALOG_YAML)
    (tmp_path / "ready.yaml").write_text(bundle_yaml("ready", "{B: {amount: A.output1}}"))
    return tmp_path


class TestMarkdownReport:
    """Default markdown output."""

    def test_ready_bundle(self, bundle_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A ready bundle exits 0 and reports its readiness."""
        assert main([str(bundle_dir / "ready.yaml")]) == 0
        out = capsys.readouterr().out
        assert "# Workflow: ready" in out
        assert "**Status**: ready to execute" in out
        assert "**Readiness**: 100/100 - Workflow is ready for execution" in out
        assert "- **Dependency depth**: 1" in out
        assert "## Estimates" in out
        assert "Blocking Errors" not in out
        assert "**Summary**" not in out

    def test_unconfigured_bundle(
        self, bundle_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Missing values block execution and exit 1."""
        path = bundle_dir / "draft.yaml"
        path.write_text(bundle_yaml("draft", "{}"))
        assert main([str(path)]) == 1
        out = capsys.readouterr().out
        assert "**Status**: not executable" in out
        assert "## Blocking Errors (1)" in out
        assert "Missing required parameter: amount" in out

    def test_directory_summary(
        self, bundle_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Directories report every bundle, load failures and a summary."""
        (bundle_dir / "broken.yaml").write_text("workflow: {}\nvalues: [1]\n")
        assert main([str(bundle_dir)]) == 1
        out = capsys.readouterr().out
        assert "# Workflow: ready" in out
        assert "**Error**: Failed to load" in out
        assert "**Summary**: 1 executable, 1 not executable" in out


class TestJsonReport:
    """--json output."""

    def test_json_structure(self, bundle_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON output holds results and load errors."""
        assert main([str(bundle_dir), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["load_errors"] == []
        [result] = payload["results"]
        assert result["name"] == "ready"
        assert result["can_execute"] is True
        assert result["readiness"]["readiness_score"] == 100


class TestExitCodes:
    """Usage and path errors."""

    def test_usage_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No path prints usage and exits 2."""
        assert main([]) == 2
        assert "Usage:" in capsys.readouterr().err

    def test_missing_path(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing path exits 1 with an error on stderr."""
        assert main([str(tmp_path / "absent.yaml")]) == 1
        assert "Error: Path not found" in capsys.readouterr().err

    def test_invalid_log_level_warns(
        self,
        bundle_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Unknown log levels fall back to WARNING."""
        monkeypatch.setenv("ACTIONFLOW_LOG_LEVEL", "chatty")
        assert main([str(bundle_dir / "ready.yaml")]) == 0
        assert "Invalid ACTIONFLOW_LOG_LEVEL 'CHATTY'" in capsys.readouterr().err


def test_format_helpers() -> None:
    """Load errors and summaries format in both shapes."""
    assert format_load_error("a.yaml", "boom") == {"source": "a.yaml", "error": "boom"}
    assert format_load_error("a.yaml", "boom", "markdown") == (
        "**Error**: Failed to load `a.yaml`\n\n```\nboom\n```"
    )
    assert format_summary_markdown(2, 0) == "**Summary**: 2 executable, 0 not executable"
