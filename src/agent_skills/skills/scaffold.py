"""Skill scaffolding.

Creates a new skill directory with the standard resource folders and a
SKILL.md template ready to edit.
"""

from pathlib import Path

from agent_skills.skills.parser import SKILL_FILENAME
from agent_skills.skills.validator import SKILL_NAME_PATTERN

DEFAULT_DESCRIPTION = "Brief description of what this skill does and when to use it."


def validate_skill_name(name: str) -> str | None:
    """Validate a skill name against naming conventions.

    Returns None if valid, or an error message string if invalid.
    """
    if not SKILL_NAME_PATTERN.match(name):
        return (
            f"Invalid skill name '{name}'. "
            "Name must be lowercase letters, digits, and hyphens only. "
            "Must start with a letter and cannot have leading/trailing or consecutive hyphens."
        )
    return None


def render_skill_template(name: str, description: str, author: str = "your-name") -> str:
    """Render the SKILL.md template for a new skill."""
    title = name.replace("-", " ").title()
    return f"""---
name: {name}
description: {description}
license: MIT
metadata:
  author: {author}
  version: "1.0"
---

# {title}

## When to use this skill

Use this skill when the user needs to...

## Instructions

1. First step
2. Second step
3. Third step

## Examples

### Example 1

```
Example input or command
```

## Best practices

- Best practice 1
- Best practice 2
"""


def scaffold_skill(
    name: str,
    base_path: Path,
    description: str | None = None,
    author: str = "your-name",
) -> Path:
    """Create a new skill directory structure with a SKILL.md template.

    Args:
        name: Skill name (must pass validate_skill_name).
        base_path: Parent directory where the skill directory will be created.
        description: Optional description; defaults to a placeholder sentence.
        author: Value written to metadata.author.

    Returns:
        Path to the created skill directory.

    Raises:
        ValueError: If name is invalid.
        FileExistsError: If the skill directory already exists.
    """
    error = validate_skill_name(name)
    if error:
        raise ValueError(error)

    skill_dir = base_path / name

    if skill_dir.exists():
        raise FileExistsError(f"Directory already exists: {skill_dir}")

    skill_dir.mkdir(parents=True)
    for sub in ("scripts", "references", "assets"):
        (skill_dir / sub).mkdir()

    content = render_skill_template(name, description or DEFAULT_DESCRIPTION, author)
    (skill_dir / SKILL_FILENAME).write_text(content, encoding="utf-8")

    return skill_dir
