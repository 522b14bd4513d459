"""Wires concrete collaborators into a Reconciler from a loaded config.

Lives in the CLI package so gitsync_core never needs to know the config
file format or where credentials come from.
"""

from __future__ import annotations

from pathlib import Path

from gitsync_core.branches import BranchSynchronizer
from gitsync_core.config import split_auth_token
from gitsync_core.gerrit.client import GerritClient
from gitsync_core.gh.pull_request import GitHubMirror
from gitsync_core.pull_requests import PullRequestDriver
from gitsync_core.reconciler import Reconciler
from gitsync_core.relay import FeedbackRelay


def build_reconciler(config: dict, work_dir: Path) -> Reconciler:
    _, token = split_auth_token(config["auth_token"])

    source = GerritClient(
        config["gerrit_url"],
        query=config["change_query"],
        username=config.get("gerrit_username"),
        password=config.get("gerrit_password"),
    )
    mirror = GitHubMirror(config["github_owner"], token, base_url=config["github_api_url"])
    branches = BranchSynchronizer(
        work_dir,
        gerrit_url=config["gerrit_url"],
        github_git_url=config["github_git_url"],
        owner=config["github_owner"],
        auth_token=config["auth_token"],
        default_branch=config["default_branch"],
    )
    pull_requests = PullRequestDriver(mirror, config["default_branch"], config["pull_request_body"])
    relay = FeedbackRelay(
        source,
        mirror,
        context=config["status_context"],
        failure_labels=config["failure_labels"],
    )
    return Reconciler(source, mirror, branches, pull_requests, relay, prefix=config["change_id_prefix"])
