"""
Diagnostic commands: doctor and info.
"""

import asyncio
import logging
import platform
import shutil
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import click

from agent_skills import __version__
from agent_skills.config.app import default_config_path, get_skills_home, load_config
from agent_skills.skills.hubs.github import GitHubClient, GitHubError
from agent_skills.skills.hubs.marketplace import MARKETPLACE_FILENAME
from agent_skills.skills.loader import SkillLoadError, default_skill_paths, load_skill, scan_skills
from agent_skills.skills.tracking import InstallTracker
from agent_skills.skills.validator import SkillValidator

from .utils import get_agents, get_github_client, run_async

logger = logging.getLogger(__name__)

Status = Literal["pass", "warn", "fail"]

_ICONS = {
    "pass": click.style("✓", fg="green"),
    "warn": click.style("⚠", fg="yellow"),
    "fail": click.style("✗", fg="red"),
}


@dataclass
class Check:
    """One doctor finding, optionally with an automatic fix."""

    name: str
    status: Status
    message: str
    fix: Callable[[], None] | None = None


def _directory_check(name: str, path: Path) -> Check:
    if path.is_dir():
        return Check(name, "pass", str(path))
    return Check(name, "warn", f"Not created yet: {path}", fix=lambda: path.mkdir(parents=True, exist_ok=True))


def check_config(config_path: Path) -> Check:
    """The config file is optional; --fix writes one with the defaults."""
    if config_path.is_file():
        return Check("Config file", "pass", str(config_path))

    def _create() -> None:
        load_config(str(config_path), create_default=True)

    return Check("Config file", "warn", f"Not created yet: {config_path}", fix=_create)


def check_python() -> Check:
    version = platform.python_version()
    if sys.version_info >= (3, 11):
        return Check("Python version", "pass", version)
    return Check("Python version", "fail", f"{version} (requires >=3.11)")


async def check_git() -> Check:
    if shutil.which("git") is None:
        return Check("Git installed", "fail", "Not found on PATH (needed by add and install)")
    process = await asyncio.create_subprocess_exec(
        "git",
        "--version",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, _ = await process.communicate()
    if process.returncode != 0:
        return Check("Git installed", "warn", "git --version failed")
    return Check("Git installed", "pass", stdout.decode().strip())


async def check_github(client: GitHubClient) -> Check:
    try:
        rate = await client.rate_limit()
    except GitHubError as e:
        return Check("GitHub API", "fail", f"Cannot connect: {e}")
    remaining = rate.get("remaining")
    if remaining == 0:
        return Check("GitHub API", "warn", "Connected, rate limit exhausted")
    return Check("GitHub API", "pass", f"Connected ({remaining} requests remaining)")


def check_installed_skills(skills_dir: Path) -> Check:
    """Validate every skill folder in the global skills directory."""
    skill_dirs = scan_skills(skills_dir)
    if not skill_dirs:
        return Check("Installed skills", "pass", "None installed")

    validator = SkillValidator(check_directory_name=True)
    invalid: list[str] = []
    for skill_dir in skill_dirs:
        try:
            skill = load_skill(skill_dir)
        except SkillLoadError as e:
            logger.debug(f"Unreadable skill {skill_dir}: {e}")
            invalid.append(skill_dir.name)
            continue
        if skill is None or not validator.validate(skill).valid:
            invalid.append(skill_dir.name)

    valid = len(skill_dirs) - len(invalid)
    message = f"{valid}/{len(skill_dirs)} valid"
    if invalid:
        return Check("Installed skills", "warn", f"{message} (invalid: {', '.join(invalid)})")
    return Check("Installed skills", "pass", message)


def check_tracking(tracker: InstallTracker) -> Check:
    if not tracker.path.exists():
        return Check("Install log", "pass", "No installs recorded")
    records = tracker.read()
    return Check("Install log", "pass", f"{len(records)} record(s) in {tracker.path}")


async def run_checks(client: GitHubClient) -> list[Check]:
    home = get_skills_home()
    skills_dir = home / "skills"
    checks = [
        _directory_check("Config directory", home),
        _directory_check("Skills directory", skills_dir),
        check_config(default_config_path()),
        check_python(),
        await check_git(),
        await check_github(client),
    ]
    if skills_dir.is_dir():
        checks.append(check_installed_skills(skills_dir))
    checks.append(check_tracking(InstallTracker()))
    return checks


@click.command()
@click.option("--fix", is_flag=True, help="Attempt to fix issues automatically")
@click.pass_context
def doctor(ctx: click.Context, fix: bool) -> None:
    """Diagnose common installation issues."""
    click.echo("Skills Doctor\n")
    checks = run_async(run_checks(get_github_client(ctx)))

    for check in checks:
        click.echo(f"  {_ICONS[check.status]} {check.name}: {check.message}")

    issues = [c for c in checks if c.status != "pass"]
    if not issues:
        click.secho("\n✓ All checks passed!", fg="green")
        return

    if fix:
        click.echo("\nAttempting fixes...\n")
        for check in issues:
            if check.fix is None:
                continue
            try:
                check.fix()
            except OSError as e:
                click.secho(f"  ✗ Could not fix {check.name}: {e}", fg="red")
                continue
            check.status = "pass"
            click.secho(f"  ✓ Fixed: {check.name}", fg="green")
    else:
        click.echo("\nRun with --fix to attempt automatic fixes.")

    if any(c.status == "fail" for c in checks):
        raise SystemExit(1)


@click.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show installation paths and status."""
    home = get_skills_home()
    cwd = Path.cwd()

    click.echo(f"Agent Skills CLI {__version__}\n")
    click.secho("Paths:", fg="cyan")
    labels = ("Global skills", "Project skills", "Legacy skills")
    paths = list(zip(labels, default_skill_paths(cwd), strict=True))
    paths += [
        ("Config", default_config_path()),
        ("Marketplace sources", home / MARKETPLACE_FILENAME),
        ("Install log", InstallTracker().path),
    ]
    for label, path in paths:
        icon = _ICONS["pass"] if path.exists() else click.style("○", dim=True)
        click.echo(f"  {icon} {label}: {path}")

    click.secho("\nStats:", fg="cyan")
    click.echo(f"  Installed skills: {len(scan_skills(home / 'skills'))}")
    click.echo(f"  Platform: {sys.platform}")
    click.echo(f"  Python: {platform.python_version()}")

    click.secho("\nAgent directories:", fg="cyan")
    for agent in get_agents(ctx).targets():
        path = cwd / agent.project_dir
        icon = _ICONS["pass"] if path.exists() else click.style("○", dim=True)
        click.echo(f"  {icon} {agent.display_name}: {agent.project_dir}")
