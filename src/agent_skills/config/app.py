"""
Configuration management for the skills CLI.

Provides YAML-based configuration with CLI overrides,
configuration hierarchy (CLI > YAML > Defaults), and validation.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from agent_skills.agents import DEFAULT_PROMPT_AGENTS

DEFAULT_SKILLS_API_URL = "https://www.agentskills.in/api/skills"


def get_skills_home() -> Path:
    """Get the skills home directory, respecting AGENT_SKILLS_HOME env var.

    Returns:
        Path to the skills home (~/.antigravity by default)
    """
    skills_home = os.environ.get("AGENT_SKILLS_HOME")
    if skills_home:
        return Path(skills_home)
    return Path.home() / ".antigravity"


def default_config_path() -> Path:
    """Return the location of the user's config file."""
    return get_skills_home() / "config.yaml"


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Log level",
    )
    format: Literal["text", "json"] = Field(
        default="text",
        description="Log format (text or json)",
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path (rotated)",
    )
    max_size_mb: int = Field(
        default=5,
        description="Maximum log file size in MB",
    )
    backup_count: int = Field(
        default=3,
        description="Number of backup log files to keep",
    )

    @field_validator("max_size_mb", "backup_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class AppConfig(BaseModel):
    """Top-level configuration for the skills CLI."""

    skills_api_url: str = Field(
        default=DEFAULT_SKILLS_API_URL,
        description="Endpoint of the remote skills database",
    )
    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )
    github_token: str | None = Field(
        default=None,
        description="Optional GitHub token for API requests (raises rate limits)",
    )
    search_paths: list[str] | None = Field(
        default=None,
        description="Directories searched for local skills (None uses the built-in list)",
    )
    default_agents: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROMPT_AGENTS),
        description="Agents pre-selected when prompting for install targets",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("skills_api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the API URL uses http(s)."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("skills_api_url must start with http:// or https://")
        return v.rstrip("/")


def load_yaml(config_file: str) -> dict[str, Any]:
    """
    Load YAML or JSON configuration file.

    Args:
        config_file: Path to YAML or JSON configuration file

    Returns:
        Dictionary with parsed YAML/JSON content

    Raises:
        ValueError: If YAML/JSON is invalid or file format is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml", ".json"]:
        raise ValueError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        content = config_path.read_text(encoding="utf-8")

        if file_ext == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data


def apply_cli_overrides(
    config_dict: dict[str, Any],
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply CLI argument overrides to config dictionary.

    Keys may be dotted (e.g. "logging.level") to reach nested sections.
    """
    if cli_overrides is None:
        return config_dict

    for key, value in cli_overrides.items():
        if "." in key:
            parts = key.split(".")
            current = config_dict
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value
        else:
            config_dict[key] = value

    return config_dict


def generate_default_config(config_file: str) -> None:
    """
    Generate default configuration file from Pydantic model defaults.

    Args:
        config_file: Path where to create the config file
    """
    save_config(AppConfig(), config_file)


def load_config(
    config_file: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
    create_default: bool = False,
) -> AppConfig:
    """
    Load configuration with hierarchy: CLI > YAML > Defaults.

    Args:
        config_file: Path to YAML config file (default: ~/.antigravity/config.yaml)
        cli_overrides: Dictionary of CLI argument overrides
        create_default: Create default config file if it doesn't exist

    Returns:
        Validated AppConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    if config_file is None:
        config_file = str(default_config_path())

    config_path = Path(config_file).expanduser()

    if create_default and not config_path.exists():
        generate_default_config(config_file)

    config_dict = load_yaml(config_file)
    config_dict = apply_cli_overrides(config_dict, cli_overrides)

    try:
        return AppConfig(**config_dict)
    except Exception as e:
        raise ValueError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def save_config(config: AppConfig, config_file: str | None = None) -> None:
    """
    Save configuration to YAML file.

    Raises:
        OSError: If file operations fail
    """
    if config_file is None:
        config_file = str(default_config_path())

    config_path = Path(config_file).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="python", exclude_none=True)

    with open(config_path, "w") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    # Owner read/write only; the file may hold a GitHub token
    config_path.chmod(0o600)
