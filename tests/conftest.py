"""Pytest configuration and shared fixtures for agent-skills tests."""

import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from agent_skills.agents import AgentTable, AgentTarget


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def skills_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the skills home at a temporary directory."""
    home = temp_dir / "home" / ".antigravity"
    home.mkdir(parents=True)
    monkeypatch.setenv("AGENT_SKILLS_HOME", str(home))
    return home


@pytest.fixture
def make_skill() -> Callable[..., Path]:
    """Factory writing a skill directory with a SKILL.md."""

    def _make(
        root: Path,
        name: str,
        description: str = "A test skill for unit tests",
        body: str = "# Instructions\n\nDo the thing.",
        dir_name: str | None = None,
        extra: str = "",
    ) -> Path:
        skill_dir = root / (dir_name or name)
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(
            f"---\nname: {name}\ndescription: {description}\n{extra}---\n\n{body}\n",
            encoding="utf-8",
        )
        return skill_dir

    return _make


@pytest.fixture
def small_agents() -> AgentTable:
    """A three-agent table for installer tests."""
    return AgentTable(
        [
            AgentTarget("cursor", "Cursor", ".cursor/skills", ".cursor/skills"),
            AgentTarget("claude", "Claude Code", ".claude/skills", ".claude/skills"),
            AgentTarget("antigravity", "Antigravity", ".agent/skills", ".gemini/antigravity/skills"),
        ]
    )
