"""run command: the reconciliation loop."""

from __future__ import annotations

import contextlib
import logging
import tempfile
from pathlib import Path

import click
from rich.console import Console

from gitsync_cli.factory import build_reconciler
from gitsync_core.reconciler import PassSummary, Reconciler
from gitsync_core.scheduler import IntervalScheduler, OnceScheduler

console = Console()
logger = logging.getLogger(__name__)


@contextlib.contextmanager
def work_directory(path: str | None):
    """Yield the configured work directory, or a temporary one removed afterwards."""
    if path:
        root = Path(path)
        root.mkdir(parents=True, exist_ok=True)
        yield root
        return
    with tempfile.TemporaryDirectory(prefix="gitsync") as tmp:
        yield Path(tmp)


def print_summary(summary: PassSummary) -> None:
    parts = [f"{action.value}={count}" for action, count in sorted(summary.actions.items(), key=lambda i: i[0].value)]
    console.print(
        f"[bold]Pass {summary.started_at[:19].replace('T', ' ')}[/bold]  "
        f"{summary.records} record(s)  {', '.join(parts) or 'nothing to do'}  "
        f"· {summary.relayed_comments} comment(s) relayed"
        + (f"  · {summary.ignored_pull_requests} unrelated PR(s) ignored" if summary.ignored_pull_requests else "")
    )


def run_once(reconciler: Reconciler) -> PassSummary:
    summary = reconciler.run_pass()
    print_summary(summary)
    return summary


@click.command("run")
@click.option("--gerrit", "gerrit_url", default=None, help="Base URL of the Gerrit instance.")
@click.option("--github", "github_owner", default=None, help="GitHub user or organization owning the mirrors.")
@click.option("--poll", "poll_interval", default=None, help="Poll interval, e.g. 90s or 10m. Ignored with --cron.")
@click.option("--dir", "work_dir", default=None, help="Work directory for clones. Defaults to a temporary directory.")
@click.option("--cron", is_flag=True, help="Run one pass only; do not poll.")
@click.pass_context
def run_cmd(
    ctx,
    gerrit_url: str | None,
    github_owner: str | None,
    poll_interval: str | None,
    work_dir: str | None,
    cron: bool,
):
    """Mirror open Gerrit changes to GitHub pull requests.

    \b
    Required environment variables:
      GITSYNC_AUTH_TOKEN   "username:personal-access-token" (or GITHUB_TOKEN / gh CLI)
    Optional:
      GERRIT_USERNAME, GERRIT_PASSWORD   Gerrit HTTP credentials (else ~/.gitcookies)
    """
    from gitsync_cli.auth import require_auth_token
    from gitsync_core.config import load_config

    config_path = ctx.obj.get("config_path", ".gitsync.yml") if ctx.obj else ".gitsync.yml"
    try:
        config = load_config(
            config_path,
            cli_overrides={
                "gerrit_url": gerrit_url,
                "github_owner": github_owner,
                "poll_interval": poll_interval,
                "work_dir": work_dir,
            },
        )
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--poll")

    config["auth_token"] = require_auth_token()

    scheduler = OnceScheduler() if cron else IntervalScheduler(config["poll_interval"])

    with work_directory(config["work_dir"]) as root:
        reconciler = build_reconciler(config, root)
        try:
            scheduler.run(lambda: run_once(reconciler))
        except Exception as e:
            logger.error("Sync stopped (%s): %s", type(e).__name__, e)
            raise click.ClickException(str(e))
