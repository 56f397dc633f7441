"""
Export commands: write discovered skills in each agent's project layout.
"""

import logging
from pathlib import Path

import click

from agent_skills.skills.export import EXPORT_TARGETS, WorkflowExporter, get_exporter, resolve_targets
from agent_skills.skills.loader import SkillLoadError, SkillRef, discover_skills, load_skill
from agent_skills.skills.parser import Skill

from .utils import get_agents, get_search_roots

logger = logging.getLogger(__name__)


def _load_skills(refs: list[SkillRef]) -> tuple[list[Skill], int]:
    """Load full skills, reporting each one that cannot be read."""
    skills: list[Skill] = []
    failed = 0
    for ref in refs:
        try:
            skill = load_skill(ref.path)
        except SkillLoadError as e:
            click.secho(f"  ✗ {ref.name}: {e}", fg="red", err=True)
            failed += 1
            continue
        if skill is None:
            continue
        if not skill.name:
            skill.name = ref.name
        skills.append(skill)
    return skills, failed


def _select(refs: list[SkillRef], name: str | None) -> list[SkillRef]:
    return [r for r in refs if r.name == name] if name else refs


@click.command()
@click.option(
    "--target",
    "-t",
    type=click.Choice(["all", *EXPORT_TARGETS]),
    default="all",
    show_default=True,
    help="Target agent",
)
@click.option(
    "--directory",
    "-d",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Project directory",
)
@click.option("--name", "-n", help="Export one skill only")
@click.pass_context
def export(ctx: click.Context, target: str, directory: str, name: str | None) -> None:
    """Export skills to agent-specific project layouts."""
    refs = _select(discover_skills(get_search_roots(ctx)), name)
    if not refs:
        click.secho("No skills found to export.", fg="yellow")
        return

    targets = resolve_targets(target)
    click.echo(f"Exporting {len(refs)} skill(s) to: {', '.join(targets)}\n")

    skills, failed = _load_skills(refs)
    project_dir = Path(directory)
    agents = get_agents(ctx)

    hints = []
    for key in targets:
        exporter = get_exporter(key, agents)
        try:
            written = exporter.export(skills, project_dir)
        except OSError as e:
            click.secho(f"  ✗ {key}: {e}", fg="red", err=True)
            failed += 1
            continue
        click.secho(f"  ✓ {key}: {len(written)} file(s)", fg="green")
        hints.append(exporter.layout_hint)

    if hints:
        click.secho("\n✓ Export complete!", fg="green", bold=True)
        click.echo("\nGenerated files:")
        for hint in hints:
            click.echo(f"  - {hint}")
    if failed:
        raise SystemExit(1)


@click.command()
@click.option(
    "--directory",
    "-d",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Target project directory",
)
@click.option("--name", "-n", help="Sync one skill only")
@click.pass_context
def sync(ctx: click.Context, directory: str, name: str | None) -> None:
    """Write skills as workflows in .agent/workflows/."""
    refs = discover_skills(get_search_roots(ctx))
    if not refs:
        click.secho("No skills found to sync.", fg="yellow")
        return

    refs = _select(refs, name)
    if not refs:
        click.secho(f"Skill not found: {name}", fg="yellow")
        raise SystemExit(1)

    exporter = WorkflowExporter()
    workflows_dir = Path(directory) / exporter.workflows_dir
    click.echo(f"Syncing {len(refs)} skill(s) to {workflows_dir}...\n")

    skills, failed = _load_skills(refs)
    try:
        written = exporter.export(skills, Path(directory))
    except OSError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        raise SystemExit(1) from e

    for item in written:
        click.secho(f"  ✓ {item.skill}", fg="green")
        click.echo(f"    → {item.path}")

    click.secho(f"\n✓ Skills synced to {exporter.workflows_dir}/", fg="green", bold=True)
    if written:
        commands = ", ".join(f"/{item.skill}" for item in written)
        click.echo(f"\nNow you can use: {commands}")
    if failed:
        raise SystemExit(1)
