"""System prompt generation for discovered skills.

Renders the ``<available_skills>`` block agents read to decide which skill
to activate, plus the longer Markdown context used by ``prompt --full`` and
``context --format markdown``.
"""

from __future__ import annotations

import html
from collections.abc import Sequence
from dataclasses import dataclass

from agent_skills.skills.loader import SkillRef
from agent_skills.skills.parser import Skill

# Rough characters-per-token ratio for English prose
CHARS_PER_TOKEN = 4


@dataclass
class SkillsPrompt:
    """Rendered prompt block and its estimated size."""

    xml: str
    skill_count: int
    estimated_tokens: int


def estimate_tokens(text: str) -> int:
    return -(-len(text) // CHARS_PER_TOKEN)


def generate_skills_prompt_xml(skills: Sequence[SkillRef]) -> SkillsPrompt:
    """Render skill references as an ``<available_skills>`` XML block."""
    lines = ["<available_skills>"]
    for skill in skills:
        lines.append("  <skill>")
        lines.append(f"    <name>{html.escape(skill.name)}</name>")
        lines.append(f"    <description>{html.escape(skill.description)}</description>")
        lines.append(f"    <location>{html.escape(skill.path)}</location>")
        lines.append("  </skill>")
    lines.append("</available_skills>")

    xml = "\n".join(lines)
    return SkillsPrompt(xml=xml, skill_count=len(skills), estimated_tokens=estimate_tokens(xml))


def generate_skill_activation_prompt(skill: Skill) -> str:
    """Render the full instructions of one activated skill."""
    parts = [f'<skill_instructions name="{html.escape(skill.name)}">']
    if skill.path:
        parts.append(f"<!-- Skill directory: {skill.path} -->")
    parts.append(skill.body)
    parts.append("</skill_instructions>")
    return "\n".join(parts)


def generate_skill_system_instructions() -> str:
    """Explain to the agent how skills are meant to be used."""
    return """## Skills

You have access to skills: folders of instructions, scripts and resources
that extend your capabilities for specialised tasks.

When a task matches a skill's description:
1. Read the skill's SKILL.md from its location before starting.
2. Follow its instructions; load files from references/ only when needed.
3. Run bundled scripts from scripts/ instead of rewriting them.

Only activate skills that are relevant to the current task."""


def generate_full_skills_context(skills: Sequence[SkillRef]) -> str:
    """Combine usage instructions with the available skills block."""
    prompt = generate_skills_prompt_xml(skills)
    return f"{generate_skill_system_instructions()}\n\n{prompt.xml}\n"
