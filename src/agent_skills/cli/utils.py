"""Shared helpers for CLI commands."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Coroutine, Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from agent_skills.agents import AgentTable, get_agent_table
from agent_skills.config.app import AppConfig, LoggingSettings
from agent_skills.skills.hubs.github import GitHubClient
from agent_skills.skills.hubs.marketplace import LegacyMarketplace
from agent_skills.skills.hubs.resolver import SkillResolver
from agent_skills.skills.hubs.skillsdb import SkillsDatabaseClient

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": self.formatTime(record, LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def setup_logging(settings: LoggingSettings | None = None, verbose: bool = False) -> None:
    """
    Configure logging for the CLI.

    Log records go to stderr so they never mix with command output.

    Args:
        settings: Logging section of the app config
        verbose: If True, force DEBUG level
    """
    settings = settings or LoggingSettings()
    level = logging.DEBUG if verbose else getattr(logging, settings.level.upper())

    formatter: logging.Formatter
    if settings.format == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_config(ctx: click.Context) -> AppConfig:
    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    return config if isinstance(config, AppConfig) else AppConfig()


def get_agents(ctx: click.Context) -> AgentTable:
    obj = ctx.find_root().obj or {}
    agents = obj.get("agents")
    return agents if isinstance(agents, AgentTable) else get_agent_table()


def get_search_roots(ctx: click.Context, paths: Sequence[str] | None = None) -> list[Path] | None:
    """Search roots for local skills: --paths, then config, else built-in defaults (None)."""
    if paths:
        return [Path(p).expanduser() for p in paths]
    config = get_config(ctx)
    if config.search_paths:
        return [Path(p).expanduser() for p in config.search_paths]
    return None


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    click.secho(f"Error: {message}", fg="red", err=True)
    raise SystemExit(1)


def split_list(values: Sequence[str] | str | None) -> list[str]:
    """Flatten repeated and comma-separated option values, lowercased."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    result: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip().lower()
            if item and item not in result:
                result.append(item)
    return result


def prompt_multi_select(
    message: str,
    options: Sequence[tuple[str, str]],
    default: Sequence[str],
) -> list[str]:
    """Ask for a comma-separated subset of options.

    Args:
        message: Question shown above the list
        options: (value, label) pairs
        default: Values pre-selected when the user just presses enter

    Returns:
        Selected values in option order
    """
    click.echo(message)
    for index, (value, label) in enumerate(options, start=1):
        mark = "x" if value in default else " "
        click.echo(f"  [{mark}] {index}. {label}")

    values = [value for value, _ in options]
    default_text = ",".join(str(values.index(d) + 1) for d in default if d in values)
    answer = click.prompt(
        "Enter numbers or names, comma-separated (empty for none)",
        default=default_text or "",
        show_default=bool(default_text),
    )

    chosen: set[str] = set()
    for token in split_list(answer):
        if token.isdigit() and 1 <= int(token) <= len(values):
            chosen.add(values[int(token) - 1])
        elif token in values:
            chosen.add(token)
        else:
            click.secho(f"Ignoring unknown choice: {token}", fg="yellow", err=True)
    return [value for value in values if value in chosen]


def is_interactive() -> bool:
    return sys.stdin.isatty()


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def get_github_client(ctx: click.Context) -> GitHubClient:
    config = get_config(ctx)
    return GitHubClient(token=config.github_token, timeout=config.request_timeout)


def get_index_client(ctx: click.Context) -> SkillsDatabaseClient:
    config = get_config(ctx)
    return SkillsDatabaseClient(base_url=config.skills_api_url, timeout=config.request_timeout)


def get_marketplace(ctx: click.Context) -> LegacyMarketplace:
    return LegacyMarketplace(client=get_github_client(ctx))


def get_resolver(ctx: click.Context) -> SkillResolver:
    return SkillResolver(index=get_index_client(ctx), legacy=get_marketplace(ctx))
