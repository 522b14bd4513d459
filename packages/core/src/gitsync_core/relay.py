"""Relay CI results from the mirror back to the review server.

Delivery is at-least-once with content-based dedup: a status is only posted
when no comment on the change already contains its message. Re-running the
relay against the same statuses therefore posts nothing new, regardless of
the order comments come back in.
"""

from __future__ import annotations

import logging

from gitsync_core.base import MirrorSystem, SourceSystem
from gitsync_core.config import DEFAULT_CONFIG
from gitsync_core.models import MirrorPullRequest, SourceChange, StatusEvent

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({"success", "failure"})


def status_message(status: StatusEvent) -> str:
    return f"{status.description or ''}: {status.target_url or ''}"


def already_relayed(message: str, comments: list[str]) -> bool:
    return any(message in comment for comment in comments)


class FeedbackRelay:
    """Posts terminal commit statuses of one CI context as review comments."""

    def __init__(
        self,
        source: SourceSystem,
        mirror: MirrorSystem,
        context: str = DEFAULT_CONFIG["status_context"],
        failure_labels: dict[str, int] | None = None,
    ):
        self.source = source
        self.mirror = mirror
        self.context = context
        self.failure_labels = dict(DEFAULT_CONFIG["failure_labels"]) if failure_labels is None else failure_labels

    def relevant_statuses(self, pr: MirrorPullRequest) -> list[StatusEvent]:
        # The head repository is unknown once it has been deleted; statuses
        # are then read from the repository the pull request was listed in.
        statuses = self.mirror.list_commit_statuses(pr.head_repo_full_name or pr.repo, pr.head_sha)
        # Pending statuses are picked up again on a later pass once CI finishes.
        return [s for s in statuses if s.context == self.context and s.state in TERMINAL_STATES]

    def relay(self, change: SourceChange, pr: MirrorPullRequest, vote: bool = True) -> list[str]:
        """Post every not-yet-relayed terminal status and return the posted messages.

        ``vote`` controls whether failures carry ``failure_labels``; closed
        changes cannot be voted on.
        """
        known = list(change.comments)
        posted: list[str] = []
        for status in self.relevant_statuses(pr):
            message = status_message(status)
            if already_relayed(message, known):
                continue
            labels = self.failure_labels if vote and status.state == "failure" else None
            self.source.post_review(change.id, change.current_revision, message, labels or None)
            logger.info("Relayed %s status to %s: %s", status.state, change.id, message)
            known.append(message)
            posted.append(message)
        return posted
