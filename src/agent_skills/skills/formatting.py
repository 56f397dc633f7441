"""Skill list formatting helpers.

Functions for rendering discovered skills as JSON, a plain text table, or
bare names for scripting.
"""

import json
from collections.abc import Sequence

from agent_skills.skills.loader import SkillRef

TABLE_DESCRIPTION_WIDTH = 50


def format_skills_json(skills: Sequence[SkillRef]) -> str:
    """Format a skills list as a JSON document with a count."""
    payload = {
        "skills": [skill.to_dict() for skill in skills],
        "count": len(skills),
    }
    return json.dumps(payload, indent=2)


def format_skills_table(skills: Sequence[SkillRef]) -> str:
    """Format a skills list as an aligned two-column table."""
    name_width = max([len(s.name) for s in skills] + [4])
    desc_width = min(
        max([len(s.description) for s in skills] + [11]),
        TABLE_DESCRIPTION_WIDTH,
    )

    lines = [
        "Name".ljust(name_width + 2) + "Description",
        "─" * (name_width + 2 + desc_width),
    ]
    for skill in skills:
        desc = skill.description[:TABLE_DESCRIPTION_WIDTH]
        lines.append(skill.name.ljust(name_width + 2) + desc)
    return "\n".join(lines)


def format_skill_names(skills: Sequence[SkillRef]) -> str:
    return "\n".join(skill.name for skill in skills)
