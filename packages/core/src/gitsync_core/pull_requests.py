from __future__ import annotations

import logging

from gitsync_core.base import MirrorSystem
from gitsync_core.config import DEFAULT_CONFIG
from gitsync_core.models import MirrorPullRequest

logger = logging.getLogger(__name__)


class PullRequestDriver:
    """Opens and closes the mirror pull requests that stand in for review changes.

    Branch lifecycle belongs to BranchSynchronizer: open() assumes the branch
    was already pushed, and close() leaves the branch in place.
    """

    def __init__(
        self,
        mirror: MirrorSystem,
        default_branch: str = "master",
        body: str = DEFAULT_CONFIG["pull_request_body"],
    ):
        self.mirror = mirror
        self.default_branch = default_branch
        self.body = body

    def open(self, project: str, change_id: str, title: str) -> MirrorPullRequest:
        pr = self.mirror.create_pull_request(
            repo=project,
            title=title,
            body=self.body,
            head=change_id,
            base=self.default_branch,
        )
        logger.info("Opened pull request %s#%d for %s", project, pr.number, change_id)
        return pr

    def close(self, pr: MirrorPullRequest) -> None:
        self.mirror.set_pull_request_state(pr.repo, pr.number, "closed")
        logger.info("Closed pull request %s#%d (%s)", pr.repo, pr.number, pr.head_ref)
