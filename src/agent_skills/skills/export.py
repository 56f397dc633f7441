"""Agent export adapters.

Each exporter rewrites one agent's on-disk layout from loaded skills. The
written bytes depend only on the skill's name, description and body, so
running an export twice produces identical files. Existing files with the
same name are overwritten, never merged.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml

from agent_skills.agents import AgentTable, get_agent_table
from agent_skills.skills.parser import SKILL_FILENAME, Skill

logger = logging.getLogger(__name__)

WORKFLOW_DESCRIPTION_LIMIT = 100
WORKFLOWS_DIR = ".agent/workflows"

# Export targets in output order; "antigravity" writes workflows
EXPORT_TARGETS: tuple[str, ...] = ("copilot", "cursor", "claude", "codex", "antigravity")


@dataclass
class ExportedFile:
    skill: str
    target: str
    path: Path


def render_frontmatter(fields: dict[str, str]) -> str:
    """Dump front matter deterministically, keys in insertion order."""
    return yaml.safe_dump(
        fields,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=10_000,
    )


def render_document(fields: dict[str, str], body: str) -> str:
    return f"---\n{render_frontmatter(fields)}---\n\n{body.strip()}\n"


def single_line(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class Exporter(ABC):
    """Writes skills in the layout one agent expects."""

    target: str

    @abstractmethod
    def export(self, skills: Sequence[Skill], project_dir: Path) -> list[ExportedFile]:
        """Write every skill under project_dir and return the files written."""
        ...

    @property
    @abstractmethod
    def layout_hint(self) -> str:
        """Relative path pattern of the generated files, for display."""
        ...


class SkillDirectoryExporter(Exporter):
    """Writes ``<agent skills dir>/<name>/SKILL.md`` with reduced front matter."""

    def __init__(self, target: str, skills_dir: str) -> None:
        self.target = target
        self.skills_dir = skills_dir

    @property
    def layout_hint(self) -> str:
        return f"{self.skills_dir}/<skill>/{SKILL_FILENAME}"

    def render(self, skill: Skill) -> str:
        return render_document({"name": skill.name, "description": skill.description}, skill.body)

    def export(self, skills: Sequence[Skill], project_dir: Path) -> list[ExportedFile]:
        base = project_dir / self.skills_dir
        written: list[ExportedFile] = []
        for skill in skills:
            skill_dir = base / skill.name
            skill_dir.mkdir(parents=True, exist_ok=True)
            path = skill_dir / SKILL_FILENAME
            path.write_text(self.render(skill), encoding="utf-8")
            written.append(ExportedFile(skill.name, self.target, path))
        logger.debug(f"Exported {len(written)} skill(s) to {base}")
        return written


class WorkflowExporter(Exporter):
    """Writes one flat ``.agent/workflows/<name>.md`` file per skill."""

    target = "antigravity"

    def __init__(self, workflows_dir: str = WORKFLOWS_DIR) -> None:
        self.workflows_dir = workflows_dir

    @property
    def layout_hint(self) -> str:
        return f"{self.workflows_dir}/<skill>.md"

    def render(self, skill: Skill) -> str:
        description = single_line(skill.description)[:WORKFLOW_DESCRIPTION_LIMIT].rstrip()
        return render_document({"description": description}, skill.body)

    def export(self, skills: Sequence[Skill], project_dir: Path) -> list[ExportedFile]:
        base = project_dir / self.workflows_dir
        base.mkdir(parents=True, exist_ok=True)
        written: list[ExportedFile] = []
        for skill in skills:
            path = base / f"{skill.name}.md"
            path.write_text(self.render(skill), encoding="utf-8")
            written.append(ExportedFile(skill.name, self.target, path))
        logger.debug(f"Exported {len(written)} workflow(s) to {base}")
        return written


def get_exporter(target: str, agents: AgentTable | None = None) -> Exporter:
    """Return the exporter for a target key.

    Raises:
        ValueError: If the target is not an export target
    """
    if target not in EXPORT_TARGETS:
        raise ValueError(f"Unknown export target: {target}. Choose from: {', '.join(EXPORT_TARGETS)}")
    if target == "antigravity":
        return WorkflowExporter()
    agents = agents or get_agent_table()
    return SkillDirectoryExporter(target, agents[target].project_dir)


def resolve_targets(target: str) -> list[str]:
    """Expand "all" to every export target."""
    if target == "all":
        return list(EXPORT_TARGETS)
    return [target]
