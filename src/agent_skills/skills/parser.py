"""SKILL.md parser.

A skill is a directory holding a SKILL.md marker file: YAML front matter
between ``---`` lines followed by free-form Markdown instructions.

Example:
    ---
    name: commit-message
    description: Generate conventional commit messages
    license: MIT
    metadata:
      author: acme
      version: "1.0.0"
    ---

    # Commit Message Generator
    ...
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

SKILL_FILENAME = "SKILL.md"

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL | re.MULTILINE)
_FIELD_LINE_RE = re.compile(r"^(name|description):[ \t]*(.+?)[ \t]*$", re.MULTILINE)
_UNSAFE_NAME_CHARS = ("/", "\\", "\0")


class SkillParseError(Exception):
    """Raised when a SKILL.md file cannot be parsed."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path else None
        if self.path:
            message = f"{message}: {self.path}"
        super().__init__(message)


@dataclass
class Skill:
    """A skill loaded from its marker file.

    Attributes:
        name: Skill identifier (lowercase slug)
        description: What the skill does and when to use it
        body: Markdown instructions following the front matter
        license: Optional license name
        compatibility: Optional environment requirements
        version: Optional version, from the top level or metadata.version
        allowed_tools: Optional tool allow-list
        metadata: Free-form metadata mapping
        path: Directory containing SKILL.md, when loaded from disk
        frontmatter: The raw front matter mapping
    """

    name: str
    description: str
    body: str = ""
    license: str | None = None
    compatibility: str | None = None
    version: str | None = None
    allowed_tools: list[str] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    path: str | None = None
    frontmatter: dict[str, Any] = field(default_factory=dict)

    def get_author(self) -> str | None:
        author = self.metadata.get("author")
        return str(author) if author is not None else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "description": self.description,
            "license": self.license,
            "compatibility": self.compatibility,
            "version": self.version,
            "allowed_tools": self.allowed_tools,
            "metadata": self.metadata,
            "path": self.path,
        }


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split a marker file into its front matter mapping and body.

    Args:
        text: Full file contents

    Returns:
        Tuple of (front matter dict, stripped body)

    Raises:
        SkillParseError: If the front matter is missing, not YAML, or not a mapping
    """
    text = text.lstrip("\ufeff")
    match = _FRONTMATTER_RE.match(text)
    if not match:
        raise SkillParseError("Missing YAML frontmatter (expected leading '---' block)")

    raw, body = match.group(1), match.group(2)
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SkillParseError(f"Invalid YAML in frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SkillParseError("Frontmatter must be a YAML mapping")

    return data, body.strip()


def scan_frontmatter_fields(text: str) -> dict[str, str]:
    """Read ``name:`` and ``description:`` lines from text that is not strict YAML.

    Used for marker files such as ``description: Use when: ...`` that YAML
    rejects. The first occurrence of each key wins and surrounding quotes
    are dropped. Without a front matter block the whole text is scanned.
    """
    match = _FRONTMATTER_RE.match(text.lstrip("\ufeff"))
    block = match.group(1) if match else text
    fields: dict[str, str] = {}
    for key, value in _FIELD_LINE_RE.findall(block):
        fields.setdefault(key, value.strip("\"'"))
    return fields


def is_safe_dir_name(name: str) -> bool:
    """Check that a skill name can be used as a single directory component."""
    if not name or name.strip() in (".", ".."):
        return False
    return not any(char in name for char in _UNSAFE_NAME_CHARS)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip()


def _parse_allowed_tools(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [tool.strip() for tool in value.split(",") if tool.strip()]
    if isinstance(value, list):
        return [str(tool).strip() for tool in value]
    return None


def skill_from_frontmatter(
    frontmatter: dict[str, Any],
    body: str,
    path: str | Path | None = None,
) -> Skill:
    """Build a Skill from parsed parts without enforcing required fields.

    Missing name or description become empty strings so validation can
    report them alongside every other problem.
    """
    metadata = frontmatter.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    version = frontmatter.get("version")
    if version is None:
        version = metadata.get("version")

    tools = frontmatter.get("allowed-tools", frontmatter.get("allowed_tools"))

    return Skill(
        name=_as_text(frontmatter.get("name")) or "",
        description=_as_text(frontmatter.get("description")) or "",
        body=body,
        license=_as_text(frontmatter.get("license")),
        compatibility=_as_text(frontmatter.get("compatibility")),
        version=_as_text(version),
        allowed_tools=_parse_allowed_tools(tools),
        metadata=metadata,
        path=str(path) if path is not None else None,
        frontmatter=frontmatter,
    )


def parse_skill_text(text: str, path: str | Path | None = None, strict: bool = True) -> Skill:
    """Parse marker file contents into a Skill.

    Args:
        text: Full file contents
        path: Skill directory to record on the result
        strict: Require non-empty name and description

    Raises:
        SkillParseError: On malformed front matter, or missing required fields in strict mode
    """
    frontmatter, body = parse_frontmatter(text)
    skill = skill_from_frontmatter(frontmatter, body, path)
    if strict:
        if not skill.name:
            raise SkillParseError("Missing required field: name", path)
        if not skill.description:
            raise SkillParseError("Missing required field: description", path)
    return skill


def resolve_skill_file(path: str | Path) -> Path:
    """Return the marker file for a skill directory or a direct file path."""
    path = Path(path)
    if path.is_dir():
        return path / SKILL_FILENAME
    return path


def parse_skill_file(path: str | Path, strict: bool = True) -> Skill:
    """Read and parse a skill from a directory or SKILL.md path.

    Raises:
        FileNotFoundError: If the marker file does not exist
        SkillParseError: If the contents cannot be parsed
    """
    skill_file = resolve_skill_file(path)
    if not skill_file.is_file():
        raise FileNotFoundError(f"Skill file not found: {skill_file}")

    text = skill_file.read_text(encoding="utf-8")
    try:
        return parse_skill_text(text, path=skill_file.parent, strict=strict)
    except SkillParseError as e:
        if e.path is None:
            raise SkillParseError(str(e), skill_file) from e
        raise


def has_skill_file(directory: str | Path) -> bool:
    """Check whether a directory contains a SKILL.md marker file."""
    return (Path(directory) / SKILL_FILENAME).is_file()
