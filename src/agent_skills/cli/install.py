"""
Install commands: resolve skills by scoped name, add them from git sources,
install from folder URLs and refresh tracked installs.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

import click

from agent_skills.agents import AgentTable
from agent_skills.config.app import get_skills_home
from agent_skills.skills.hubs.github import GitHubError, install_from_github_url
from agent_skills.skills.hubs.marketplace import MarketplaceError
from agent_skills.skills.hubs.skillsdb import RemoteSkillRecord, ScopedNameError
from agent_skills.skills.installer import (
    CloneError,
    PairResult,
    SkillCandidate,
    add_from_source,
    install_remote_skill,
    install_remote_skills,
    select_candidates,
    summarize_pairs,
)
from agent_skills.skills.sources import SourceParseError, classify_source, describe_source
from agent_skills.skills.tracking import InstalledSkillRecord, InstallTracker

from .utils import (
    fail,
    get_agents,
    get_config,
    get_github_client,
    get_marketplace,
    get_resolver,
    is_interactive,
    prompt_multi_select,
    run_async,
    split_list,
    truncate,
)

logger = logging.getLogger(__name__)


def choose_platforms(
    agents: AgentTable,
    default_agents: Sequence[str],
    all_platforms: bool = False,
    positional: Sequence[str] = (),
    targets: Sequence[str] = (),
    platforms: Sequence[str] = (),
    assume_yes: bool = False,
    cwd: Path | None = None,
) -> list[str]:
    """Pick install platforms.

    Priority: --all, positional names, -t, -p, marker directories in the
    project, then an interactive prompt with the default agents checked.
    """
    if all_platforms:
        return list(agents)
    for explicit in (positional, targets, platforms):
        keys = split_list(explicit)
        if keys:
            return keys

    detected = agents.detect(cwd)
    if detected:
        click.echo(f"Detected platforms: {', '.join(detected)}")
        return detected

    if assume_yes or not is_interactive():
        return list(default_agents)
    return prompt_multi_select(
        "Select target platforms:",
        [(agent.key, agent.display_name) for agent in agents.targets()],
        default_agents,
    )


def _print_pairs(pairs: Sequence[PairResult], agents: AgentTable) -> None:
    for pair in pairs:
        label = agents[pair.agent].display_name if pair.agent in agents else pair.agent
        if pair.success:
            click.secho(f"✔ {pair.skill} → {label}", fg="green")
            click.echo(f"  {pair.destination}")
        else:
            click.secho(f"✗ {pair.skill} → {label}: {pair.error}", fg="red", err=True)


def _print_record(record: RemoteSkillRecord) -> None:
    click.echo(f"Found: {record.name} by {record.author or 'unknown'}")
    click.echo(f"Stars: {record.stars:,}")
    if record.github_url:
        click.echo(f"URL: {record.github_url}")
    if record.description:
        click.echo(f"Description: {record.description}")
    click.echo("")


@click.command()
@click.argument("scoped_name")
@click.argument("positional_platforms", nargs=-1)
@click.option("--global", "-g", "global_install", is_flag=True, help="Install for the user instead of the project")
@click.option("--list", "-l", "list_only", is_flag=True, help="Show skill details without installing")
@click.option("--platform", "-p", "platform_opts", multiple=True, help="Target platforms, comma-separated")
@click.option("--target", "-t", "target_opts", multiple=True, help="Alias for --platform")
@click.option("--all", "all_platforms", is_flag=True, help="Install to every known platform")
@click.option("--yes", "-y", is_flag=True, help="Use default platforms instead of prompting")
@click.pass_context
def install(
    ctx: click.Context,
    scoped_name: str,
    positional_platforms: tuple[str, ...],
    global_install: bool,
    list_only: bool,
    platform_opts: tuple[str, ...],
    target_opts: tuple[str, ...],
    all_platforms: bool,
    yes: bool,
) -> None:
    """Install a skill by @author/name or plain name."""
    agents = get_agents(ctx)
    click.echo(f'Searching for "{scoped_name}"...\n')

    try:
        resolution = run_async(get_resolver(ctx).resolve(scoped_name))
    except ScopedNameError as e:
        fail(str(e))

    if resolution.origin == "legacy":
        click.echo("Falling back to GitHub sources...")

    record = resolution.record
    if record is None:
        click.secho(f'No skill found matching "{scoped_name}"', fg="yellow", err=True)
        click.echo("Try: skills market search <query> to find skills")
        raise SystemExit(1)

    _print_record(record)
    if list_only:
        click.echo("Use without --list to install this skill.")
        return

    platforms = choose_platforms(
        agents,
        get_config(ctx).default_agents,
        all_platforms=all_platforms,
        positional=positional_platforms,
        targets=target_opts,
        platforms=platform_opts,
        assume_yes=yes,
    )
    if not platforms:
        click.secho("No platforms selected. Exiting.", fg="yellow")
        return

    scope = " (global)" if global_install else ""
    click.echo(f"Installing to: {', '.join(platforms)}{scope}\n")

    outcome = run_async(
        install_remote_skill(record, platforms, agents, global_install=global_install, tracker=InstallTracker())
    )
    if outcome.error:
        fail(outcome.error)

    _print_pairs(outcome.pairs, agents)
    summary = summarize_pairs(outcome.pairs)
    if summary["failed"]:
        click.secho(
            f"\nInstalled {record.name} for {summary['installed']} platform(s), {summary['failed']} failed",
            fg="yellow",
        )
        raise SystemExit(1)

    author = record.author or "unknown"
    click.secho(f"\n✨ Successfully installed: {record.name}", fg="green", bold=True)
    click.echo(f"   Scoped name: @{author}/{record.name}")
    click.echo(f"   Platforms: {', '.join(platforms)}")


@click.command()
@click.argument("source")
@click.option("--global", "-g", "global_install", is_flag=True, help="Install for the user instead of the project")
@click.option("--list", "-l", "list_only", is_flag=True, help="List skills in the repository without installing")
@click.option("--skill", "-s", "skill_names", multiple=True, help="Skill name to install (repeatable)")
@click.option("--agent", "-a", "agent_names", multiple=True, help="Agent to install to (repeatable)")
@click.option("--yes", "-y", is_flag=True, help="Skip prompts: all skills, all agents")
@click.pass_context
def add(
    ctx: click.Context,
    source: str,
    global_install: bool,
    list_only: bool,
    skill_names: tuple[str, ...],
    agent_names: tuple[str, ...],
    yes: bool,
) -> None:
    """Install skills from a git repository (owner/repo or URL)."""
    agents = get_agents(ctx)
    default_agents = get_config(ctx).default_agents

    try:
        click.echo(f"Source: {describe_source(classify_source(source))}")
    except SourceParseError as e:
        fail(str(e))

    def choose_skills(candidates: list[SkillCandidate]) -> list[SkillCandidate]:
        if skill_names:
            selected = select_candidates(candidates, skill_names)
            if not selected:
                click.secho(f"No matching skills found for: {', '.join(skill_names)}", fg="yellow")
            return selected
        if yes or len(candidates) <= 1 or not is_interactive():
            return candidates
        options = [
            (c.name, f"{c.name} - {truncate(c.description, 50)}" if c.description else c.name)
            for c in candidates
        ]
        names = prompt_multi_select("Select skills to install:", options, [c.name for c in candidates])
        return [c for c in candidates if c.name in names]

    def choose_agents() -> list[str]:
        if agent_names:
            return split_list(agent_names)
        if yes:
            return list(agents)
        if not is_interactive():
            return list(default_agents)
        return prompt_multi_select(
            "Select agents to install to:",
            [(agent.key, agent.display_name) for agent in agents.targets()],
            default_agents,
        )

    try:
        result = run_async(
            add_from_source(
                source,
                agents,
                choose_skills,
                choose_agents,
                global_install=global_install,
                list_only=list_only,
            )
        )
    except CloneError as e:
        fail(str(e))

    if not result.candidates:
        click.secho(
            "No valid skills found. Skills require a SKILL.md with name and description.",
            fg="yellow",
        )
        return

    click.echo(f"Found {len(result.candidates)} skill(s)")

    if list_only:
        click.echo("\nAvailable Skills:")
        for candidate in result.candidates:
            click.secho(f"  {candidate.name}", fg="cyan")
            if candidate.description:
                click.echo(f"    {candidate.description}")
        click.echo("\nUse --skill <name> to install specific skills")
        return

    if not result.selected:
        click.secho("No skills selected.", fg="yellow")
        return
    if not result.agents:
        click.secho("No agents selected.", fg="yellow")
        return

    click.echo("\nInstalling...\n")
    _print_pairs(result.pairs, agents)

    summary = summarize_pairs(result.pairs)
    if result.failures:
        click.secho(f"\n{summary['installed']} copied, {summary['failed']} failed", fg="yellow")
        raise SystemExit(1)
    click.secho(f"\n✨ Successfully installed {len(result.selected)} skill(s)", fg="green", bold=True)


@click.command("install-url")
@click.argument("url")
@click.pass_context
def install_url(ctx: click.Context, url: str) -> None:
    """Install a skill's SKILL.md from a GitHub folder URL."""
    if "github.com" not in url:
        fail("Invalid URL. Please provide a GitHub folder URL (github.com/<owner>/<repo>/tree/<branch>/<path>).")

    click.echo(f"Installing from: {url}\n")
    try:
        name, dest = run_async(
            install_from_github_url(url, get_skills_home() / "skills", client=get_github_client(ctx))
        )
    except (ValueError, GitHubError) as e:
        fail(str(e))

    InstallTracker().append(InstalledSkillRecord(name=name, scoped_name=name, source_url=url, local_path=str(dest)))
    click.secho(f"✓ Successfully installed: {name}", fg="green")
    click.echo(f"  Path: {dest}")


def _latest_records(records: Sequence[InstalledSkillRecord]) -> list[InstalledSkillRecord]:
    """Keep the most recent record per skill identity, in first-seen order."""
    latest: dict[str, InstalledSkillRecord] = {}
    for record in records:
        latest[record.scoped_name or record.name] = record
    return list(latest.values())


@click.command()
@click.argument("skill_name", required=False)
@click.option("--check", is_flag=True, help="Only report available updates")
@click.option("--global", "-g", "global_install", is_flag=True, help="Reinstall into user-level directories")
@click.pass_context
def update(ctx: click.Context, skill_name: str | None, check: bool, global_install: bool) -> None:
    """Check or refresh tracked skill installs."""
    records = _latest_records(InstallTracker().read())
    if skill_name:
        needle = skill_name.lower()
        records = [r for r in records if needle in r.name.lower()]

    if not records:
        message = f"No matching skills found for: {skill_name}" if skill_name else "No skills installed."
        click.secho(message, fg="yellow")
        return

    click.echo(f"Checking {len(records)} skill(s) for updates...\n")
    resolver = get_resolver(ctx)
    marketplace = get_marketplace(ctx)

    async def _resolve_all() -> list[RemoteSkillRecord | None]:
        resolved = []
        for record in records:
            try:
                resolution = await resolver.resolve(record.scoped_name or record.name)
            except ScopedNameError as e:
                logger.warning(f"Cannot resolve {record.name}: {e}")
                resolved.append(None)
                continue
            resolved.append(resolution.record)
        return resolved

    latest = run_async(_resolve_all())

    stale: list[tuple[InstalledSkillRecord, RemoteSkillRecord]] = []
    for record, remote in zip(records, latest, strict=True):
        if remote is None:
            click.echo(f"  ○ {record.name} - not found in any source")
            continue
        if remote.version and remote.version != record.version:
            click.secho(f"  ↑ {record.name} {record.version or 'unknown'} → {remote.version}", fg="cyan")
            stale.append((record, remote))
        elif not check:
            stale.append((record, remote))
        else:
            click.secho(f"  ✓ {record.name}", fg="green", nl=False)
            click.echo(" - up to date")

    if check:
        if stale:
            click.echo(f"\n{len(stale)} update(s) available. Run: skills update")
        else:
            click.secho("\n✓ All skills are up to date!", fg="green")
        return

    failed = 0
    agents = get_agents(ctx)
    tracker = InstallTracker()

    index_installs = [(r, remote) for r, remote in stale if r.platforms]
    legacy_installs = [(r, remote) for r, remote in stale if not r.platforms and r.source_id]

    for record, _ in legacy_installs:
        try:
            run_async(marketplace.install(record.name))
            click.secho(f"  ✓ {record.name} refreshed", fg="green")
        except MarketplaceError as e:
            failed += 1
            click.secho(f"  ✗ {record.name}: {e}", fg="red", err=True)

    if index_installs:
        # Platforms differ per record, so group installs that share a platform list
        groups: dict[tuple[str, ...], list[RemoteSkillRecord]] = {}
        for record, remote in index_installs:
            groups.setdefault(tuple(record.platforms), []).append(remote)
        for platforms, remotes in groups.items():
            outcomes = run_async(
                install_remote_skills(remotes, platforms, agents, global_install=global_install, tracker=tracker)
            )
            for outcome in outcomes:
                if outcome.success:
                    click.secho(f"  ✓ {outcome.record.name} refreshed", fg="green")
                else:
                    failed += 1
                    error = outcome.error or ", ".join(p.error or "" for p in outcome.pairs if not p.success)
                    click.secho(f"  ✗ {outcome.record.name}: {error}", fg="red", err=True)

    skipped = len(stale) - len(index_installs) - len(legacy_installs)
    if skipped:
        click.echo(f"\n{skipped} skill(s) have no recorded platforms or source; reinstall them manually.")
    if failed:
        raise SystemExit(1)
