"""Skill discovery and loading from the filesystem.

Discovery walks an ordered list of root directories and returns a
lightweight SkillRef for every immediate subdirectory that holds a
SKILL.md marker file. Full loading parses the marker file into a Skill.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from agent_skills.config.app import get_skills_home
from agent_skills.skills.parser import (
    SKILL_FILENAME,
    Skill,
    SkillParseError,
    is_safe_dir_name,
    parse_frontmatter,
    parse_skill_file,
    scan_frontmatter_fields,
)

logger = logging.getLogger(__name__)

RESOURCE_DIRS = ("scripts", "references", "assets")


class SkillLoadError(Exception):
    """Error loading a skill from the filesystem."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.path = str(path) if path else None
        super().__init__(f"{message}" + (f": {path}" if path else ""))


@dataclass(frozen=True)
class SkillRef:
    """Lightweight discovery result for a skill directory."""

    name: str
    description: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "path": self.path}


@dataclass
class SkillResources:
    """Files bundled alongside a skill's marker file."""

    scripts: list[str]
    references: list[str]
    assets: list[str]

    def to_dict(self) -> dict[str, list[str]]:
        return {"scripts": self.scripts, "references": self.references, "assets": self.assets}


def default_skill_paths(cwd: Path | None = None) -> list[Path]:
    """Return the built-in search roots, global first."""
    cwd = cwd or Path.cwd()
    return [
        get_skills_home() / "skills",
        cwd / ".antigravity" / "skills",
        cwd / "skills",
    ]


def scan_skills(path: str | Path) -> list[Path]:
    """Find skill directories directly under a root without loading them.

    Missing or non-directory roots yield an empty list.
    """
    path = Path(path).expanduser()
    if not path.is_dir():
        return []

    return [
        item
        for item in sorted(path.iterdir(), key=lambda p: p.name)
        if item.is_dir() and (item / SKILL_FILENAME).is_file()
    ]


def read_skill_ref(skill_dir: Path, strict: bool = True) -> SkillRef:
    """Read name and description from a skill directory's front matter.

    The name falls back to the directory name when the front matter has none
    or when it could not be used as a directory name (``../x``, ``a/b``).

    Args:
        skill_dir: Directory holding SKILL.md
        strict: If False, front matter that is not valid YAML is read line
            by line instead of failing

    Raises:
        SkillLoadError: If the marker file is unreadable, or malformed in strict mode
    """
    skill_file = skill_dir / SKILL_FILENAME
    try:
        text = skill_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SkillLoadError(f"Failed to read skill: {e}", skill_file) from e

    frontmatter: dict[str, Any]
    try:
        frontmatter, _ = parse_frontmatter(text)
    except SkillParseError as e:
        if strict:
            raise SkillLoadError(f"Failed to read skill: {e}", skill_file) from e
        logger.debug(f"Reading {skill_file} line by line: {e}")
        frontmatter = dict(scan_frontmatter_fields(text))

    name = str(frontmatter.get("name") or "").strip()
    if name and not is_safe_dir_name(name):
        logger.warning(f"Ignoring unusable skill name {name!r} in {skill_file}")
        name = ""
    description = str(frontmatter.get("description") or "").strip()
    return SkillRef(name=name or skill_dir.name, description=description, path=str(skill_dir))


def discover_skills(roots: Iterable[str | Path] | None = None) -> list[SkillRef]:
    """Discover skills under each root, in root order then listing order.

    The same directory reached through two roots is reported once; skills
    sharing a name in different directories are all kept.

    Args:
        roots: Directories to search (defaults to default_skill_paths())

    Returns:
        SkillRef for every readable skill directory found
    """
    search_roots = [Path(r).expanduser() for r in roots] if roots is not None else default_skill_paths()

    refs: list[SkillRef] = []
    seen: set[Path] = set()

    for root in search_roots:
        for skill_dir in scan_skills(root):
            resolved = skill_dir.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            try:
                refs.append(read_skill_ref(skill_dir))
            except SkillLoadError as e:
                logger.warning(f"Skipping unreadable skill: {e}")

    logger.debug(f"Discovered {len(refs)} skill(s) in {len(search_roots)} root(s)")
    return refs


def load_skill(path: str | Path) -> Skill | None:
    """Load a full skill from a directory or SKILL.md path.

    Returns None when no marker file exists at the path. Required fields are
    not enforced here so the validator can report them.

    Raises:
        SkillLoadError: If the marker file exists but cannot be parsed
    """
    try:
        return parse_skill_file(Path(path).expanduser(), strict=False)
    except FileNotFoundError:
        return None
    except (SkillParseError, OSError, UnicodeDecodeError) as e:
        raise SkillLoadError(f"Failed to parse skill: {e}", path) from e


def get_skill_by_name(name: str, roots: Iterable[str | Path] | None = None) -> Skill | None:
    """Find and load the first discovered skill with an exact name."""
    for ref in discover_skills(roots):
        if ref.name == name:
            return load_skill(ref.path)
    return None


def _list_files(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(
        str(item.relative_to(directory)).replace("\\", "/")
        for item in directory.rglob("*")
        if item.is_file()
    )


def list_skill_resources(path: str | Path) -> SkillResources:
    """List files under a skill's scripts/, references/ and assets/ folders."""
    skill_dir = Path(path)
    return SkillResources(
        scripts=_list_files(skill_dir / "scripts"),
        references=_list_files(skill_dir / "references"),
        assets=_list_files(skill_dir / "assets"),
    )


def load_skill_resource(path: str | Path, resource: str) -> str:
    """Read a bundled resource file relative to the skill directory.

    Raises:
        SkillLoadError: If the resource escapes the skill directory or is missing
    """
    skill_dir = Path(path).resolve()
    target = (skill_dir / resource).resolve()
    if not target.is_relative_to(skill_dir):
        raise SkillLoadError("Resource path escapes skill directory", resource)
    if not target.is_file():
        raise SkillLoadError("Resource not found", target)
    return target.read_text(encoding="utf-8")
