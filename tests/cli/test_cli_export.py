"""Tests for export and sync commands."""

from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from agent_skills.cli import cli

pytestmark = pytest.mark.unit


@pytest.fixture
def config(temp_dir: Path, make_skill: Callable[..., Path]) -> Path:
    make_skill(temp_dir / "skills", "pdf", description="PDF helper")
    make_skill(temp_dir / "skills", "docx", description="Word helper")
    path = temp_dir / "config.yaml"
    path.write_text(f"search_paths:\n  - {temp_dir / 'skills'}\n")
    return path


class TestExportCommand:
    """Tests for skills export."""

    def test_export_all(self, runner: CliRunner, config: Path, temp_dir: Path) -> None:
        project = temp_dir / "project"

        result = runner.invoke(cli, ["--config", str(config), "export", "-d", str(project)])

        assert result.exit_code == 0
        assert "Exporting 2 skill(s) to: copilot, cursor, claude, codex, antigravity" in result.output
        for rel in (".github/skills", ".cursor/skills", ".claude/skills", ".codex/skills"):
            assert (project / rel / "pdf" / "SKILL.md").is_file()
        assert (project / ".agent" / "workflows" / "docx.md").is_file()
        assert "  - .agent/workflows/<skill>.md" in result.output

    def test_export_is_idempotent(self, runner: CliRunner, config: Path, temp_dir: Path) -> None:
        project = temp_dir / "project"
        args = ["--config", str(config), "export", "-t", "claude", "-d", str(project)]

        runner.invoke(cli, args)
        first = (project / ".claude" / "skills" / "pdf" / "SKILL.md").read_bytes()
        runner.invoke(cli, args)

        assert (project / ".claude" / "skills" / "pdf" / "SKILL.md").read_bytes() == first

    def test_export_single_skill(self, runner: CliRunner, config: Path, temp_dir: Path) -> None:
        project = temp_dir / "project"

        result = runner.invoke(cli, ["--config", str(config), "export", "-t", "cursor", "-n", "pdf", "-d", str(project)])

        assert "  ✓ cursor: 1 file(s)" in result.output
        assert not (project / ".cursor" / "skills" / "docx").exists()

    def test_nothing_to_export(self, runner: CliRunner, config: Path) -> None:
        result = runner.invoke(cli, ["--config", str(config), "export", "-n", "missing"])
        assert result.exit_code == 0
        assert "No skills found to export." in result.output

    def test_unknown_target(self, runner: CliRunner, config: Path) -> None:
        result = runner.invoke(cli, ["--config", str(config), "export", "-t", "vim"])
        assert result.exit_code == 2


class TestSyncCommand:
    """Tests for skills sync."""

    def test_sync(self, runner: CliRunner, config: Path, temp_dir: Path) -> None:
        project = temp_dir / "project"

        result = runner.invoke(cli, ["--config", str(config), "sync", "-d", str(project)])

        assert result.exit_code == 0
        assert (project / ".agent" / "workflows" / "pdf.md").is_file()
        assert "Now you can use: /docx, /pdf" in result.output

    def test_sync_unknown_name(self, runner: CliRunner, config: Path, temp_dir: Path) -> None:
        result = runner.invoke(cli, ["--config", str(config), "sync", "-n", "nope", "-d", str(temp_dir)])
        assert result.exit_code == 1
        assert "Skill not found: nope" in result.output

    def test_sync_nothing(self, runner: CliRunner, temp_dir: Path) -> None:
        config = temp_dir / "config.yaml"
        config.write_text(f"search_paths:\n  - {temp_dir / 'none'}\n")
        result = runner.invoke(cli, ["--config", str(config), "sync"])
        assert "No skills found to sync." in result.output
