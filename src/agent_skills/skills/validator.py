"""Skill format validation.

Checks a skill's front matter and body against the Agent Skills format.
Validation never raises: every problem is collected into a
ValidationResult so callers can show the full report at once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from agent_skills.skills.parser import Skill

SKILL_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")

MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
MAX_COMPATIBILITY_LENGTH = 500

# Descriptions are injected into every system prompt, so long ones are flagged
DESCRIPTION_SOFT_LIMIT = 500
BODY_LINE_SOFT_LIMIT = 500

KNOWN_FIELDS = frozenset(
    {
        "name",
        "description",
        "license",
        "compatibility",
        "metadata",
        "version",
        "allowed-tools",
        "allowed_tools",
    }
)

_HEADING_RE = re.compile(r"^#{1,6}\s+\S", re.MULTILINE)


@dataclass
class ValidationIssue:
    """A single validation problem tied to a field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Outcome of validating a skill or part of one."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def error(self, field_name: str, message: str) -> None:
        self.errors.append(ValidationIssue(field_name, message))

    def warn(self, field_name: str, message: str) -> None:
        self.warnings.append(ValidationIssue(field_name, message))

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Return a new result holding the issues of both."""
        return ValidationResult(
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [{"field": e.field, "message": e.message} for e in self.errors],
            "warnings": [{"field": w.field, "message": w.message} for w in self.warnings],
        }


def validate_name(name: Any, result: ValidationResult) -> None:
    if name is None or (isinstance(name, str) and not name.strip()):
        result.error("name", "Name is required")
        return
    if not isinstance(name, str):
        result.error("name", "Name must be a string")
        return
    if len(name) > MAX_NAME_LENGTH:
        result.error("name", f"Name exceeds {MAX_NAME_LENGTH} characters ({len(name)})")
    if not SKILL_NAME_PATTERN.match(name):
        result.error(
            "name",
            "Name must be lowercase letters, digits and single hyphens, starting with a letter",
        )


def validate_description(description: Any, result: ValidationResult) -> None:
    if description is None or (isinstance(description, str) and not description.strip()):
        result.error("description", "Description is required")
        return
    if not isinstance(description, str):
        result.error("description", "Description must be a string")
        return
    length = len(description)
    if length > MAX_DESCRIPTION_LENGTH:
        result.error(
            "description",
            f"Description exceeds {MAX_DESCRIPTION_LENGTH} characters ({length})",
        )
    elif length > DESCRIPTION_SOFT_LIMIT:
        result.warn(
            "description",
            f"Description is {length} characters; keep it under {DESCRIPTION_SOFT_LIMIT} "
            "to save prompt tokens",
        )


def validate_metadata(fields: dict[str, Any]) -> ValidationResult:
    """Validate a skill's front matter mapping.

    Args:
        fields: Parsed front matter

    Returns:
        ValidationResult with every error and warning found
    """
    result = ValidationResult()

    validate_name(fields.get("name"), result)
    validate_description(fields.get("description"), result)

    compatibility = fields.get("compatibility")
    if compatibility is not None and len(str(compatibility)) > MAX_COMPATIBILITY_LENGTH:
        result.error(
            "compatibility",
            f"Compatibility exceeds {MAX_COMPATIBILITY_LENGTH} characters",
        )

    metadata = fields.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        result.error("metadata", "Metadata must be a mapping")

    for key in fields:
        if key not in KNOWN_FIELDS:
            result.warn(str(key), "Unknown field")

    return result


def validate_body(body: str) -> ValidationResult:
    """Validate the Markdown instructions of a skill."""
    result = ValidationResult()

    if not body or not body.strip():
        result.warn("body", "Body is empty; add instructions for the agent")
        return result

    if not _HEADING_RE.search(body):
        result.warn("body", "Body has no Markdown headings")

    line_count = len(body.splitlines())
    if line_count > BODY_LINE_SOFT_LIMIT:
        result.warn(
            "body",
            f"Body is {line_count} lines; consider moving detail into references/",
        )

    return result


class SkillValidator:
    """Validates loaded skills, optionally checking the directory name."""

    def __init__(self, check_directory_name: bool = False) -> None:
        self.check_directory_name = check_directory_name

    def validate(self, skill: Skill) -> ValidationResult:
        fields = skill.frontmatter or {"name": skill.name, "description": skill.description}
        result = validate_metadata(fields).merge(validate_body(skill.body))

        if self.check_directory_name and skill.path and skill.name:
            dir_name = skill.path.rstrip("/\\").replace("\\", "/").rsplit("/", 1)[-1]
            if dir_name != skill.name:
                result.warn("name", f"Name '{skill.name}' does not match directory '{dir_name}'")

        return result


def format_validation_result(result: ValidationResult) -> str:
    """Render a validation result as readable lines."""
    lines: list[str] = []
    if result.valid and not result.warnings:
        return "  ✓ No issues found"

    for issue in result.errors:
        lines.append(f"  ✗ {issue}")
    for issue in result.warnings:
        lines.append(f"  ⚠ {issue}")
    if result.valid:
        lines.append("  ✓ Valid (with warnings)")
    return "\n".join(lines)
