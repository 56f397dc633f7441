"""Agent target directory conventions.

Each supported AI coding agent reads skills from its own directory, both
inside a project and under the user's home directory. The table is
immutable and passed explicitly into the installer and exporters so callers
can substitute a smaller table.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType


@dataclass(frozen=True)
class AgentTarget:
    """Where one agent expects to find skills.

    Attributes:
        key: Short identifier used on the command line (e.g. "claude")
        display_name: Human-readable agent name
        project_dir: Skills directory relative to a project root
        global_dir: Skills directory relative to the user's home
    """

    key: str
    display_name: str
    project_dir: str
    global_dir: str

    def resolve(self, global_install: bool, cwd: Path | None = None, home: Path | None = None) -> Path:
        """Return the absolute skills directory for a project or global install."""
        if global_install:
            return (home or Path.home()) / self.global_dir
        return (cwd or Path.cwd()) / self.project_dir


DEFAULT_AGENTS: tuple[AgentTarget, ...] = (
    AgentTarget("cursor", "Cursor", ".cursor/skills", ".cursor/skills"),
    AgentTarget("claude", "Claude Code", ".claude/skills", ".claude/skills"),
    AgentTarget("copilot", "GitHub Copilot", ".github/skills", ".github/skills"),
    AgentTarget("codex", "Codex", ".codex/skills", ".codex/skills"),
    AgentTarget("antigravity", "Antigravity", ".agent/skills", ".gemini/antigravity/skills"),
    AgentTarget("opencode", "OpenCode", ".opencode/skill", ".config/opencode/skill"),
    AgentTarget("amp", "Amp", ".agents/skills", ".config/agents/skills"),
    AgentTarget("kilo", "Kilo Code", ".kilocode/skills", ".kilocode/skills"),
    AgentTarget("roo", "Roo Code", ".roo/skills", ".roo/skills"),
    AgentTarget("goose", "Goose", ".goose/skills", ".config/goose/skills"),
)

# Agents offered pre-checked by interactive prompts
DEFAULT_PROMPT_AGENTS: tuple[str, ...] = ("cursor", "claude", "antigravity")

# Project markers used to guess which agents are in use
DETECTION_MARKERS: dict[str, str] = {
    ".cursor": "cursor",
    ".claude": "claude",
    ".github": "copilot",
    ".codex": "codex",
    ".agent": "antigravity",
}


class AgentTable(Mapping[str, AgentTarget]):
    """Read-only, ordered lookup of agent targets by key."""

    def __init__(self, agents: Iterable[AgentTarget] = DEFAULT_AGENTS) -> None:
        entries = {agent.key: agent for agent in agents}
        self._agents: Mapping[str, AgentTarget] = MappingProxyType(entries)

    def __getitem__(self, key: str) -> AgentTarget:
        return self._agents[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)

    def __repr__(self) -> str:
        return f"AgentTable({list(self._agents)})"

    def targets(self) -> list[AgentTarget]:
        """Return all targets in table order."""
        return list(self._agents.values())

    def unknown(self, keys: Iterable[str]) -> list[str]:
        """Return the keys that are not in this table."""
        return [key for key in keys if key not in self._agents]

    def detect(self, cwd: Path | None = None) -> list[str]:
        """Guess agents in use from marker directories in a project."""
        root = cwd or Path.cwd()
        found = []
        for marker, key in DETECTION_MARKERS.items():
            if key in self._agents and (root / marker).is_dir():
                found.append(key)
        return found


def get_agent_table() -> AgentTable:
    """Return the table of built-in agent targets."""
    return AgentTable(DEFAULT_AGENTS)
