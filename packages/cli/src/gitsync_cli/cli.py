"""CLI entry point for gitsync.

Commands:
  run   mirror open Gerrit changes to GitHub, once (--cron) or on a poll interval
  plan  show what the next pass would do, without changing anything
"""

from __future__ import annotations

import importlib.metadata

import click

from gitsync_cli.commands.plan import plan_cmd
from gitsync_cli.commands.run import run_cmd
from gitsync_cli.logging_config import setup_logging


@click.group()
@click.version_option(
    version=importlib.metadata.version("gitsync"),
    prog_name="gitsync",
)
@click.option(
    "--config",
    "config_path",
    default=".gitsync.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="GITSYNC_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output, including every git command.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Mirror open Gerrit changes as GitHub pull requests and relay CI results back."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(run_cmd)
main.add_command(plan_cmd)
