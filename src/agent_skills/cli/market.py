"""
Marketplace commands: browse the skills index and manage legacy GitHub sources.
"""

import json
import logging
from collections import defaultdict
from typing import Any

import click

from agent_skills.skills.hubs.assets import (
    fetch_asset,
    fetch_asset_manifest,
    get_asset_url,
    get_skill_assets,
    get_skill_base_url,
)
from agent_skills.skills.hubs.marketplace import MarketplaceError, MarketplaceSource
from agent_skills.skills.hubs.resolver import Listing
from agent_skills.skills.hubs.skillsdb import ScopedNameError

from .utils import fail, get_github_client, get_marketplace, get_resolver, run_async, truncate

logger = logging.getLogger(__name__)

MANIFEST_PREVIEW = 5


def _print_listing(listing: Listing, description_width: int) -> None:
    for skill in listing.skills:
        stars = f" ⭐{skill.stars:,}" if skill.stars else ""
        click.secho(f"  {skill.name}{stars}", fg="cyan")
        if skill.description:
            click.echo(f"    {truncate(skill.description, description_width)}")
        click.echo(f"    by {skill.author or 'unknown'}")


@click.group()
def market() -> None:
    """Browse and install skills from the marketplace."""
    pass


@market.command("list")
@click.option("--limit", "-l", default=50, show_default=True, help="Number of skills to show")
@click.option("--page", "-p", default=1, show_default=True, help="Page number")
@click.option("--legacy", is_flag=True, help="Use legacy GitHub sources instead of the index")
@click.pass_context
def list_market_cmd(ctx: click.Context, limit: int, page: int, legacy: bool) -> None:
    """List skills from the marketplace."""
    if legacy:
        click.echo("Fetching skills from GitHub sources...\n")
        skills = run_async(get_marketplace(ctx).list_skills())
        if not skills:
            click.secho("No skills found.", fg="yellow")
            return

        by_source: dict[str, list[Any]] = defaultdict(list)
        for skill in skills:
            by_source[skill.source.id].append(skill)

        for source_skills in by_source.values():
            source = source_skills[0].source
            click.secho(f"\n{source.name}", fg="cyan", bold=True)
            click.echo(f"   {source.owner}/{source.repo}")
            if source.verified:
                click.secho("   ✓ Verified", fg="green")
            for skill in source_skills:
                click.echo(f"   {skill.name}")
                if skill.description:
                    click.echo(f"     {truncate(skill.description, 60)}")

        click.echo(f"\nTotal: {len(skills)} skills from {len(by_source)} sources")
        return

    listing = run_async(get_resolver(ctx).list_page(page=page, limit=limit))
    if listing.origin == "legacy":
        click.echo("Falling back to GitHub sources...")

    click.echo(f"Showing {len(listing.skills)} of {listing.total:,} skills (page {listing.page})\n")
    _print_listing(listing, 55)
    click.echo(f"\nTotal: {listing.total:,} skills")
    if listing.has_next:
        click.echo(f"Next page: skills market list --page {listing.page + 1}")


@market.command("search")
@click.argument("query")
@click.option("--limit", "-l", default=20, show_default=True, help="Number of results")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def search_market_cmd(ctx: click.Context, query: str, limit: int, json_format: bool) -> None:
    """Search skills in the marketplace."""
    listing = run_async(get_resolver(ctx).search(query, limit=limit))

    if json_format:
        payload = {
            "skills": [s.to_dict() for s in listing.skills],
            "total": listing.total,
            "origin": listing.origin,
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if listing.origin == "legacy":
        click.echo("Falling back to GitHub sources...")
    if not listing.skills:
        click.secho(f'No skills found matching "{query}"', fg="yellow")
        return

    click.echo(f"Found {listing.total:,} skills (showing top {len(listing.skills)}):\n")
    _print_listing(listing, 70)
    click.echo("\nUse: skills install <@author/name> to install")


@market.command("install")
@click.argument("name")
@click.pass_context
def install_market_cmd(ctx: click.Context, name: str) -> None:
    """Download a skill from a legacy source into the global skills folder."""
    try:
        record = run_async(get_marketplace(ctx).install(name))
    except MarketplaceError as e:
        fail(str(e))

    click.secho(f"✓ Installed: {record.name}", fg="green")
    click.echo(f"  Path: {record.local_path}")


@market.command("uninstall")
@click.argument("name")
@click.pass_context
def uninstall_market_cmd(ctx: click.Context, name: str) -> None:
    """Uninstall a marketplace-installed skill."""
    try:
        get_marketplace(ctx).uninstall(name)
    except MarketplaceError as e:
        fail(str(e))
    click.secho(f"✓ Uninstalled: {name}", fg="green")


@market.command("installed")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def installed_market_cmd(ctx: click.Context, json_format: bool) -> None:
    """List installed skills recorded in the tracking log."""
    records = get_marketplace(ctx).installed()

    if json_format:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        click.secho("No marketplace skills installed.", fg="yellow")
        click.echo("Use: skills install <@author/name> to install")
        return

    click.echo("Installed skills:\n")
    for record in records:
        click.secho(f"  {record.scoped_name or record.name}", fg="cyan")
        if record.local_path:
            click.echo(f"    Path: {record.local_path}")
        if record.platforms:
            click.echo(f"    Platforms: {', '.join(record.platforms)}")
        if record.source_id:
            click.echo(f"    Source: {record.source_id}")
        if record.version:
            click.echo(f"    Version: {record.version}")
        click.echo(f"    Installed: {record.installed_at}")
        click.echo("")


@market.command("sources")
@click.pass_context
def sources_market_cmd(ctx: click.Context) -> None:
    """List the skills index and the legacy GitHub sources."""
    resolver = get_resolver(ctx)
    click.echo("Primary index:\n")
    click.secho("  Skills database", fg="cyan")
    click.echo(f"    URL: {resolver.index.base_url}")

    try:
        sources = resolver.legacy.list_sources()
    except MarketplaceError as e:
        fail(str(e))

    if sources:
        click.echo("\nLegacy GitHub sources:\n")
        for source in sources:
            verified = click.style(" ✓", fg="green") if source.verified else ""
            click.echo(f"  {click.style(source.name, fg='cyan')}{verified}")
            click.echo(f"    ID: {source.id}")
            click.echo(f"    Repo: {source.owner}/{source.repo} ({source.branch}:{source.skills_path})")
            if source.description:
                click.echo(f"    {source.description}")
            click.echo("")


@market.command("add-source")
@click.option("--id", "source_id", required=True, help="Unique identifier")
@click.option("--name", required=True, help="Display name")
@click.option("--owner", required=True, help="GitHub owner")
@click.option("--repo", required=True, help="GitHub repository")
@click.option("--branch", default="main", show_default=True, help="Branch name")
@click.option("--path", "skills_path", default="skills", show_default=True, help="Path to skills directory")
@click.pass_context
def add_source_market_cmd(
    ctx: click.Context,
    source_id: str,
    name: str,
    owner: str,
    repo: str,
    branch: str,
    skills_path: str,
) -> None:
    """Add a custom legacy marketplace source."""
    source = MarketplaceSource(
        id=source_id,
        name=name,
        owner=owner,
        repo=repo,
        branch=branch,
        skills_path=skills_path,
        verified=False,
    )
    try:
        get_marketplace(ctx).add_source(source)
    except MarketplaceError as e:
        fail(str(e))
    click.secho(f"✓ Added marketplace: {name}", fg="green")


@market.command("update-check")
@click.pass_context
def update_check_market_cmd(ctx: click.Context) -> None:
    """Check legacy-installed skills for newer versions."""
    click.echo("Checking for updates...\n")
    try:
        checks = run_async(get_marketplace(ctx).check_updates())
    except MarketplaceError as e:
        fail(str(e))

    if not checks:
        click.secho("No installed marketplace skills to check.", fg="yellow")
        return

    for check in checks:
        if check.error:
            click.secho(f"  {check.record.name}: {check.error}", fg="yellow")

    updates = [c for c in checks if c.has_update]
    if not updates:
        click.secho("All skills are up to date! ✓", fg="green")
        return

    click.secho(f"{len(updates)} skill(s) have updates available:\n", fg="yellow")
    for check in updates:
        click.secho(f"  {check.record.name}", fg="cyan")
        click.echo(f"    Current: {check.current_version or 'unknown'}")
        click.echo(f"    Latest:  {check.latest_version}")
        click.echo("")
    click.echo("To update, run: skills update <name>")


@click.command()
@click.argument("skill_name")
@click.option("--manifest", "-m", is_flag=True, help="Show the asset manifest if available")
@click.option("--list", "-l", "list_assets", is_flag=True, help="List assets (manifest first, then GitHub API)")
@click.option("--get", "-g", "asset_path", help="Fetch and print one asset")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def assets(
    ctx: click.Context,
    skill_name: str,
    manifest: bool,
    list_assets: bool,
    asset_path: str | None,
    json_format: bool,
) -> None:
    """List and fetch a remote skill's assets on demand."""
    try:
        resolution = run_async(get_resolver(ctx).resolve(skill_name))
    except ScopedNameError as e:
        fail(str(e))

    record = resolution.record
    if record is None:
        fail(f"Skill not found: {skill_name}")
    if not record.raw_url:
        fail("Skill has no raw URL, cannot fetch assets")

    base_url = get_skill_base_url(record.raw_url)
    client = get_github_client(ctx)
    click.echo(f"Found skill: {record.scoped_name or record.name}", err=True)

    if manifest:
        entries = run_async(fetch_asset_manifest(base_url, client))
        if not entries:
            fail("No asset manifest found (assets/index.jsonl)")

        if json_format:
            click.echo(json.dumps(entries, indent=2))
            return

        by_category: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for entry in entries:
            by_category[str(entry.get("category") or "other")].append(entry)

        click.echo(f"Found {len(entries)} components")
        for category, items in by_category.items():
            click.secho(f"\n{category}:", fg="cyan", bold=True)
            for entry in items[:MANIFEST_PREVIEW]:
                click.echo(f"  {entry.get('id', '')}")
                if entry.get("name"):
                    click.echo(f"    {entry['name']}")
            if len(items) > MANIFEST_PREVIEW:
                click.echo(f"  ... and {len(items) - MANIFEST_PREVIEW} more")
        return

    if list_assets:
        found = run_async(get_skill_assets(record.raw_url, client))
        if found.source == "none":
            fail("No assets found for this skill")

        rows = [a if isinstance(a, dict) else a.to_dict() for a in found.assets]
        if json_format:
            click.echo(json.dumps({"source": found.source, "assets": rows}, indent=2))
            return

        origin = "manifest" if found.source == "manifest" else "GitHub API"
        click.echo(f"Found {len(rows)} asset(s) (from {origin})")
        for row in rows:
            click.echo(f"  {row.get('path') or row.get('id', '')}")
        return

    if asset_path:
        content = run_async(fetch_asset(get_asset_url(base_url, asset_path), client))
        if content is None:
            fail(f"Asset not found: {asset_path}")
        click.echo(content)
        return

    click.echo(f"\nBase URL: {base_url}\n")
    click.echo("Usage:")
    click.echo(f'  skills assets "{skill_name}" --manifest')
    click.echo("    Show component manifest")
    click.echo(f'  skills assets "{skill_name}" --list')
    click.echo("    List asset files")
    click.echo(f'  skills assets "{skill_name}" --get "assets/<path>"')
    click.echo("    Fetch specific asset content")


