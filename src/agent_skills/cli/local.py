"""
Commands that work on skills already on disk.
"""

import json
import logging
from pathlib import Path

import click

from agent_skills.config.app import get_skills_home
from agent_skills.skills.executor import execute_script, is_script_safe, list_scripts
from agent_skills.skills.formatting import format_skill_names, format_skills_json, format_skills_table
from agent_skills.skills.injector import generate_full_skills_context, generate_skills_prompt_xml
from agent_skills.skills.loader import (
    SkillLoadError,
    default_skill_paths,
    discover_skills,
    list_skill_resources,
    load_skill,
)
from agent_skills.skills.scaffold import scaffold_skill
from agent_skills.skills.validator import format_validation_result, validate_body, validate_metadata

from .utils import fail, get_search_roots, run_async

logger = logging.getLogger(__name__)

BODY_PREVIEW_LINES = 10


def _installed_skill_dir(skill_name: str) -> Path:
    return get_skills_home() / "skills" / skill_name


@click.command("list")
@click.option("--paths", "-p", multiple=True, help="Custom search path (repeatable)")
@click.option("--verbose", "-v", is_flag=True, help="Show descriptions and paths")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.option("--table", is_flag=True, help="Output as a table")
@click.option("--quiet", "-q", is_flag=True, help="Output names only")
@click.pass_context
def list_skills_cmd(
    ctx: click.Context,
    paths: tuple[str, ...],
    verbose: bool,
    json_format: bool,
    table: bool,
    quiet: bool,
) -> None:
    """List all discovered skills."""
    roots = get_search_roots(ctx, paths)
    skills = discover_skills(roots)

    if json_format:
        click.echo(format_skills_json(skills))
        return

    if not skills:
        if not quiet:
            click.secho("No skills found.", fg="yellow")
            click.echo("Skills are searched in:")
            for root in roots or default_skill_paths():
                click.echo(f"  - {root}")
        return

    if quiet:
        click.echo(format_skill_names(skills))
        return

    if table:
        click.echo(format_skills_table(skills))
        return

    click.echo(f"Found {len(skills)} skill(s):\n")
    for skill in skills:
        click.secho(f"  {skill.name}", fg="cyan")
        if verbose:
            click.echo(f"    {skill.description}")
            click.echo(f"    Path: {skill.path}")


@click.command()
@click.argument("path", type=click.Path())
def validate(path: str) -> None:
    """Validate a skill's front matter and body."""
    try:
        skill = load_skill(path)
    except SkillLoadError as e:
        fail(str(e))

    if skill is None:
        fail(f"Skill not found at: {path}")

    click.echo(f"Validating: {skill.name or Path(path).name}\n")

    metadata_result = validate_metadata(skill.frontmatter)
    click.secho("Metadata:", bold=True)
    click.echo(format_validation_result(metadata_result))

    body_result = validate_body(skill.body)
    click.secho("\nBody Content:", bold=True)
    click.echo(format_validation_result(body_result))

    click.echo("\n" + "─" * 40)
    if metadata_result.valid and body_result.valid:
        click.secho("✓ Skill is valid", fg="green", bold=True)
    else:
        click.secho("✗ Skill has validation errors", fg="red", bold=True)
        raise SystemExit(1)


@click.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Show detailed information about a skill."""
    refs = discover_skills(get_search_roots(ctx))
    ref = next((r for r in refs if r.name == name), None)
    if ref is None:
        click.secho(f"Skill not found: {name}", fg="red", err=True)
        click.echo(f"Available skills: {', '.join(r.name for r in refs) or 'none'}")
        raise SystemExit(1)

    try:
        skill = load_skill(ref.path)
    except SkillLoadError as e:
        fail(str(e))
    if skill is None:
        fail(f"Could not load skill: {name}")

    click.secho(f"\n{skill.name}", bold=True)
    click.echo("─" * 40)
    click.echo(f"Description: {skill.description}")
    click.echo(f"Path: {skill.path}")
    if skill.license:
        click.echo(f"License: {skill.license}")
    if skill.compatibility:
        click.echo(f"Compatibility: {skill.compatibility}")

    resources = list_skill_resources(ref.path)
    for title, files in (
        ("Scripts", resources.scripts),
        ("References", resources.references),
        ("Assets", resources.assets),
    ):
        if files:
            click.echo(f"\n{title}:")
            for item in files:
                click.echo(f"  - {item}")

    lines = skill.body.split("\n")
    click.echo("\nInstructions (preview):")
    click.echo("\n".join(lines[:BODY_PREVIEW_LINES]))
    if len(lines) > BODY_PREVIEW_LINES:
        click.echo("...")


@click.command()
@click.argument("name")
@click.option(
    "--directory",
    "-d",
    default="./skills",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory to create the skill in",
)
@click.option("--description", help="Initial description")
def init(name: str, directory: str, description: str | None) -> None:
    """Create a new skill from the template."""
    try:
        skill_dir = scaffold_skill(name, Path(directory), description=description)
    except (ValueError, FileExistsError) as e:
        fail(str(e))

    click.secho(f"✓ Created skill: {name}", fg="green")
    click.echo(f"  Path: {skill_dir}")
    click.echo("\nNext steps:")
    click.echo("  1. Edit SKILL.md with your instructions")
    click.echo("  2. Add scripts to scripts/")
    click.echo(f"  3. Run: skills validate {skill_dir}")


@click.command()
@click.option("--full", "-f", is_flag=True, help="Include skill usage instructions")
@click.pass_context
def prompt(ctx: click.Context, full: bool) -> None:
    """Generate the system prompt block for discovered skills."""
    skills = discover_skills(get_search_roots(ctx))
    if not skills:
        click.secho("No skills found.", fg="yellow")
        return

    if full:
        click.echo(generate_full_skills_context(skills))
        return

    result = generate_skills_prompt_xml(skills)
    click.echo(result.xml)
    click.echo(f"\n# {result.skill_count} skills, ~{result.estimated_tokens} tokens")


@click.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["xml", "json", "markdown"]),
    default="xml",
    show_default=True,
    help="Output format",
)
@click.option("--skills", "-s", "names", multiple=True, help="Only include skills matching this name")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file instead of stdout")
@click.pass_context
def context(ctx: click.Context, output_format: str, names: tuple[str, ...], output: str | None) -> None:
    """Generate system prompt context for AI agents."""
    skills = discover_skills(get_search_roots(ctx))
    if names:
        needles = [n.lower() for n in names]
        skills = [s for s in skills if any(n in s.name.lower() for n in needles)]

    if not skills:
        click.secho("No skills found.", fg="yellow", err=True)
        click.echo("Install skills with: skills install <name>")
        return

    if output_format == "json":
        content = format_skills_json(skills)
    elif output_format == "markdown":
        content = generate_full_skills_context(skills)
    else:
        result = generate_skills_prompt_xml(skills)
        content = result.xml
        if not output:
            click.echo(f"# {result.skill_count} skills, ~{result.estimated_tokens} tokens\n")

    if output:
        Path(output).write_text(content, encoding="utf-8")
        click.secho(f"✓ Written to {output}", fg="green")
    else:
        click.echo(content)


@click.command()
@click.argument("skill_name")
def scripts(skill_name: str) -> None:
    """List scripts in an installed skill with safety warnings."""
    skill_dir = _installed_skill_dir(skill_name)
    if not skill_dir.is_dir():
        fail(f"Skill not found: {skill_name}")

    names = list_scripts(skill_dir)
    if not names:
        click.secho("No scripts found in this skill.", fg="yellow")
        return

    click.echo(f"\nScripts in {skill_name}:\n")
    for name in names:
        try:
            content = (skill_dir / "scripts" / name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read script {name}: {e}")
            click.echo(f"  ? {name}")
            continue

        safety = is_script_safe(content)
        if safety.safe:
            click.echo(f"  {click.style('✓', fg='green')} {name}")
        else:
            click.echo(f"  {click.style('⚠', fg='yellow')} {name}")
            for warning in safety.warnings:
                click.echo(f"      Warning: {warning}")


@click.command()
@click.argument("skill_name")
@click.argument("script")
@click.option("--args", "-a", "script_args", multiple=True, help="Argument passed to the script (repeatable)")
@click.option("--timeout", default=30000, show_default=True, type=int, help="Timeout in milliseconds")
@click.option("--json", "json_format", is_flag=True, help="Print the result as JSON")
def run(skill_name: str, script: str, script_args: tuple[str, ...], timeout: int, json_format: bool) -> None:
    """Execute a script from an installed skill."""
    skill_dir = _installed_skill_dir(skill_name)
    if not skill_dir.is_dir():
        click.secho(f"Skill not found: {skill_name}", fg="red", err=True)
        click.echo(f"Expected at: {skill_dir}")
        click.echo("\nInstall with: skills install <skill-name>")
        raise SystemExit(1)

    available = list_scripts(skill_dir)
    if not available:
        click.secho(f"No scripts found in {skill_name}", fg="yellow")
        return
    if script not in available:
        click.secho(f"Script not found: {script}", fg="red", err=True)
        click.echo("\nAvailable scripts:")
        for name in available:
            click.echo(f"  - {name}")
        raise SystemExit(1)

    result = run_async(execute_script(skill_dir, script, list(script_args), timeout=timeout / 1000))

    if json_format:
        click.echo(
            json.dumps(
                {
                    "success": result.success,
                    "exitCode": result.exit_code,
                    "stdout": result.stdout,
                    "stderr": result.stderr,
                    "executionTime": result.execution_time_ms,
                },
                indent=2,
            )
        )
    elif result.success:
        click.secho(f"✓ Completed in {result.execution_time_ms}ms", fg="green")
        if result.stdout:
            click.echo("\nOutput:")
            click.echo(result.stdout)
    else:
        click.secho(f"✗ Failed (exit code: {result.exit_code})", fg="red", err=True)
        if result.stderr:
            click.echo(result.stderr, err=True)

    if not result.success:
        raise SystemExit(1)
