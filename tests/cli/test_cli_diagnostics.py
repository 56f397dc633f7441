"""Tests for doctor and info commands."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from agent_skills.cli import cli
from agent_skills.cli.diagnostics import (
    Check,
    check_config,
    check_github,
    check_installed_skills,
    check_python,
    check_tracking,
)
from agent_skills.skills.hubs.github import GitHubError
from agent_skills.skills.tracking import InstalledSkillRecord, InstallTracker

pytestmark = pytest.mark.unit


class TestChecks:
    """Tests for individual doctor checks."""

    def test_python(self) -> None:
        assert check_python().status == "pass"

    @pytest.mark.asyncio
    async def test_github_connected(self) -> None:
        client = MagicMock()
        client.rate_limit = AsyncMock(return_value={"remaining": 42})
        check = await check_github(client)
        assert check.status == "pass"
        assert "42 requests remaining" in check.message

    @pytest.mark.asyncio
    async def test_github_exhausted(self) -> None:
        client = MagicMock()
        client.rate_limit = AsyncMock(return_value={"remaining": 0})
        assert (await check_github(client)).status == "warn"

    @pytest.mark.asyncio
    async def test_github_unreachable(self) -> None:
        client = MagicMock()
        client.rate_limit = AsyncMock(side_effect=GitHubError("offline"))
        assert (await check_github(client)).status == "fail"

    def test_installed_skills(self, temp_dir: Path, make_skill: Callable[..., Path]) -> None:
        make_skill(temp_dir, "pdf")
        make_skill(temp_dir, "docx", dir_name="word")
        make_skill(temp_dir, "Bad_Name", dir_name="bad")

        check = check_installed_skills(temp_dir)

        assert check.status == "warn"
        assert check.message == "2/3 valid (invalid: bad)"

    def test_no_installed_skills(self, temp_dir: Path) -> None:
        assert check_installed_skills(temp_dir).message == "None installed"

    def test_tracking(self, temp_dir: Path) -> None:
        tracker = InstallTracker(temp_dir / "installed.json")
        assert check_tracking(tracker).message == "No installs recorded"
        tracker.append(InstalledSkillRecord(name="pdf"))
        assert check_tracking(tracker).message.startswith("1 record(s)")

    def test_config_missing_then_fixed(self, temp_dir: Path) -> None:
        config_path = temp_dir / "home" / "config.yaml"

        check = check_config(config_path)
        assert check.status == "warn"
        assert check.fix is not None

        check.fix()

        assert "skills_api_url:" in config_path.read_text()
        assert check_config(config_path).status == "pass"


class TestDoctorCommand:
    """Tests for skills doctor."""

    def test_all_pass(self, runner: CliRunner) -> None:
        checks = [Check("Python version", "pass", "3.12")]
        with patch("agent_skills.cli.diagnostics.run_checks", AsyncMock(return_value=checks)):
            result = runner.invoke(cli, ["doctor"])

        assert result.exit_code == 0
        assert "✓ All checks passed!" in result.output

    def test_fix_creates_directory(self, runner: CliRunner, temp_dir: Path) -> None:
        target = temp_dir / "missing"
        checks = [
            Check("Skills directory", "warn", "Not created yet", fix=lambda: target.mkdir()),
        ]
        with patch("agent_skills.cli.diagnostics.run_checks", AsyncMock(return_value=checks)):
            result = runner.invoke(cli, ["doctor", "--fix"])

        assert result.exit_code == 0
        assert "✓ Fixed: Skills directory" in result.output
        assert target.is_dir()

    def test_failure_exits_nonzero(self, runner: CliRunner) -> None:
        checks = [Check("Git installed", "fail", "Not found on PATH")]
        with patch("agent_skills.cli.diagnostics.run_checks", AsyncMock(return_value=checks)):
            result = runner.invoke(cli, ["doctor"])

        assert result.exit_code == 1
        assert "Run with --fix" in result.output

    def test_real_checks_offline(self, runner: CliRunner, isolated_home: Path) -> None:
        """Test the full check list runs with GitHub unreachable."""
        with patch(
            "agent_skills.skills.hubs.github.GitHubClient.rate_limit",
            AsyncMock(side_effect=GitHubError("offline")),
        ):
            result = runner.invoke(cli, ["doctor", "--fix"])

        assert "GitHub API: Cannot connect" in result.output
        assert (isolated_home / "skills").is_dir()
        assert (isolated_home / "config.yaml").is_file()
        assert result.exit_code == 1


class TestInfoCommand:
    """Tests for skills info."""

    def test_info(self, runner: CliRunner, isolated_home: Path) -> None:
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "Agent Skills CLI" in result.output
        assert f"Global skills: {isolated_home / 'skills'}" in result.output
        assert "Claude Code: .claude/skills" in result.output
        assert "Installed skills: 0" in result.output
