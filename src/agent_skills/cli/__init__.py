"""
Agent Skills CLI entry point.
"""

import click

from agent_skills.agents import get_agent_table
from agent_skills.config.app import load_config

from .diagnostics import doctor, info
from .export import export, sync
from .install import add, install, install_url, update
from .local import context, init, list_skills_cmd, prompt, run, scripts, show, validate
from .market import assets, market
from .utils import setup_logging


@click.group()
@click.version_option(package_name="agent-skills-cli", prog_name="skills")
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to custom configuration file",
)
@click.option("--api-url", help="Override the skills database endpoint")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Override the configured log level",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    api_url: str | None,
    log_level: str | None,
    verbose: bool,
) -> None:
    """Agent Skills - discover, validate and install skills for AI coding agents."""
    ctx.ensure_object(dict)

    cli_overrides: dict[str, str] = {}
    if api_url:
        cli_overrides["skills_api_url"] = api_url
    if log_level:
        cli_overrides["logging.level"] = log_level

    try:
        app_config = load_config(config, cli_overrides=cli_overrides)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        raise SystemExit(1) from e

    setup_logging(app_config.logging, verbose)

    # Store config in context for subcommands
    ctx.obj["config"] = app_config
    ctx.obj["agents"] = get_agent_table()


# Local skills
cli.add_command(list_skills_cmd)
cli.add_command(validate)
cli.add_command(show)
cli.add_command(init)
cli.add_command(prompt)
cli.add_command(context)
cli.add_command(scripts)
cli.add_command(run)

# Remote skills
cli.add_command(market)
cli.add_command(assets)
cli.add_command(install)
cli.add_command(add)
cli.add_command(install_url)
cli.add_command(update)

# Project integration
cli.add_command(export)
cli.add_command(sync)
cli.add_command(doctor)
cli.add_command(info)
