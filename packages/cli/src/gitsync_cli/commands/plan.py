"""plan command: show what the next pass would do."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from gitsync_cli.factory import build_reconciler
from gitsync_core.models import Action

console = Console()

_ACTION_STYLE = {
    Action.CREATE_AND_OPEN: "green",
    Action.UPDATE_AND_RELAY: "yellow",
    Action.CLOSE_AND_DELETE: "red",
    Action.NO_OP: "dim",
}


@click.command("plan")
@click.option("--gerrit", "gerrit_url", default=None, help="Base URL of the Gerrit instance.")
@click.option("--github", "github_owner", default=None, help="GitHub user or organization owning the mirrors.")
@click.pass_context
def plan_cmd(ctx, gerrit_url: str | None, github_owner: str | None):
    """List every tracked change and the action `gitsync run` would take.

    Reads from Gerrit and GitHub only; nothing is pushed, opened, closed or posted.
    """
    from gitsync_cli.auth import require_auth_token
    from gitsync_core.config import load_config

    config_path = ctx.obj.get("config_path", ".gitsync.yml") if ctx.obj else ".gitsync.yml"
    try:
        config = load_config(config_path, cli_overrides={"gerrit_url": gerrit_url, "github_owner": github_owner})
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration in {config_path}: {e}")

    config["auth_token"] = require_auth_token()

    reconciler = build_reconciler(config, Path(config["work_dir"] or "."))
    try:
        planned = reconciler.plan()
    except Exception as e:
        raise click.ClickException(str(e))

    if not planned:
        console.print("[yellow]No open changes or mirrored pull requests found.[/yellow]")
        return

    table = Table(title=f"Sync plan: {config['gerrit_url']} → {config['github_owner']}", header_style="bold cyan")
    table.add_column("Change-Id", max_width=44)
    table.add_column("Project")
    table.add_column("PR", justify="right", width=6)
    table.add_column("Revision", width=8)
    table.add_column("Mirror head", width=11)
    table.add_column("Action")

    for record, action in sorted(planned, key=lambda item: (item[0].project or "", item[0].key)):
        change = record.source_change
        pr = record.mirror_pull_request
        style = _ACTION_STYLE[action]
        table.add_row(
            record.key,
            record.project or "",
            f"#{pr.number}" if pr else "",
            change.current_revision[:7] if change else "",
            pr.head_sha[:7] if pr else "",
            f"[{style}]{action.value}[/{style}]",
        )

    console.print(table)
