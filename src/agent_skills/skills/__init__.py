"""Skill handling for the Agent Skills format.

This module provides:
- YAML front matter parsing for SKILL.md files
- Validation of names, descriptions and bodies
- Discovery of skills on disk and system prompt rendering
- Installation from git sources into agent directories
- Export to agent-specific project layouts
"""

from agent_skills.skills.export import Exporter, get_exporter, resolve_targets
from agent_skills.skills.injector import (
    SkillsPrompt,
    generate_full_skills_context,
    generate_skills_prompt_xml,
)
from agent_skills.skills.installer import (
    AddResult,
    CloneError,
    InstallOutcome,
    PairResult,
    SkillCandidate,
    add_from_source,
    install_remote_skill,
    install_remote_skills,
)
from agent_skills.skills.loader import (
    SkillLoadError,
    SkillRef,
    discover_skills,
    get_skill_by_name,
    load_skill,
)
from agent_skills.skills.parser import (
    Skill,
    SkillParseError,
    parse_frontmatter,
    parse_skill_file,
    parse_skill_text,
)
from agent_skills.skills.sources import GitSource, SourceParseError, classify_source
from agent_skills.skills.tracking import InstalledSkillRecord, InstallTracker
from agent_skills.skills.validator import SkillValidator, ValidationResult

__all__ = [
    # Parser
    "Skill",
    "SkillParseError",
    "parse_frontmatter",
    "parse_skill_file",
    "parse_skill_text",
    # Validator
    "SkillValidator",
    "ValidationResult",
    # Loader
    "SkillLoadError",
    "SkillRef",
    "discover_skills",
    "get_skill_by_name",
    "load_skill",
    # Prompt
    "SkillsPrompt",
    "generate_full_skills_context",
    "generate_skills_prompt_xml",
    # Sources and installer
    "AddResult",
    "CloneError",
    "GitSource",
    "InstallOutcome",
    "PairResult",
    "SkillCandidate",
    "SourceParseError",
    "add_from_source",
    "classify_source",
    "install_remote_skill",
    "install_remote_skills",
    # Tracking
    "InstallTracker",
    "InstalledSkillRecord",
    # Export
    "Exporter",
    "get_exporter",
    "resolve_targets",
]
