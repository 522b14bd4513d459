"""Core reconciliation pass: fetch, join, classify, dispatch."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from gitsync_core.base import MirrorSystem, SourceSystem
from gitsync_core.branches import BranchSynchronizer
from gitsync_core.classifier import classify
from gitsync_core.errors import ReconcileError
from gitsync_core.matcher import DEFAULT_PREFIX, is_change_id, join
from gitsync_core.models import Action, JoinedRecord, MirrorPullRequest, SourceChange
from gitsync_core.pull_requests import PullRequestDriver
from gitsync_core.relay import FeedbackRelay

logger = logging.getLogger(__name__)


@dataclass
class PassSummary:
    """What one reconciliation pass did, returned to the CLI for display."""

    actions: Counter = field(default_factory=Counter)
    relayed_comments: int = 0
    ignored_pull_requests: int = 0
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def records(self) -> int:
        return sum(self.actions.values())

    @property
    def mutations(self) -> int:
        """Branch-moving or PR-mutating actions; zero once state has converged."""
        return sum(n for action, n in self.actions.items() if action is not Action.NO_OP)


class Reconciler:
    """Drives the mirror towards the review server's set of open changes.

    All state is rebuilt from both systems at the start of every pass; only
    the on-disk working copies carry over between passes. Records are
    processed one at a time and the first failure aborts the pass. Work done
    earlier in the pass stays done, and the next pass picks up from whatever
    state the external systems are in.
    """

    def __init__(
        self,
        source: SourceSystem,
        mirror: MirrorSystem,
        branches: BranchSynchronizer,
        pull_requests: PullRequestDriver,
        relay: FeedbackRelay,
        prefix: str = DEFAULT_PREFIX,
    ):
        self.source = source
        self.mirror = mirror
        self.branches = branches
        self.pull_requests = pull_requests
        self.relay = relay
        self.prefix = prefix

    def fetch(self) -> tuple[list[SourceChange], list[MirrorPullRequest]]:
        changes = self.source.query_open_changes()
        pulls: list[MirrorPullRequest] = []
        for repo in self.mirror.list_repositories():
            pulls.extend(self.mirror.list_pull_requests(repo))
        logger.info("Fetched %d open change(s) and %d pull request(s)", len(changes), len(pulls))
        return changes, pulls

    def plan(self) -> list[tuple[JoinedRecord, Action]]:
        """Fetch and join current state and return the action for each record, without acting."""
        changes, pulls = self.fetch()
        records = join(changes, pulls, self.prefix)
        return [(record, classify(record)) for record in records.values()]

    def run_pass(self) -> PassSummary:
        summary = PassSummary()
        changes, pulls = self.fetch()
        records = join(changes, pulls, self.prefix)
        summary.ignored_pull_requests = sum(1 for pr in pulls if not is_change_id(pr.head_ref, self.prefix))

        for record in records.values():
            action = classify(record)
            try:
                summary.relayed_comments += self.dispatch(record, action)
            except Exception as e:
                logger.error("Failed to %s %s: %s", action.value, record.key, e)
                raise ReconcileError(record.key, action.value, e) from e
            summary.actions[action] += 1

        logger.info(
            "Pass complete: %d record(s), %d mutation(s), %d comment(s) relayed",
            summary.records,
            summary.mutations,
            summary.relayed_comments,
        )
        return summary

    def dispatch(self, record: JoinedRecord, action: Action) -> int:
        """Perform ``action`` for one record and return the number of comments relayed."""
        change = record.source_change
        pr = record.mirror_pull_request

        if action is Action.CREATE_AND_OPEN:
            logger.info("Change %s needs a pull request. Creating one.", change.id)
            # The branch must exist on the mirror before a PR can reference it.
            self.branches.sync_branch(change.project, change.id, change.fetch_ref)
            self.pull_requests.open(change.project, change.id, change.subject)
            return 0

        if action is Action.UPDATE_AND_RELAY:
            logger.info("Change %s moved to %s. Syncing branch.", change.id, change.current_revision[:12])
            self.branches.sync_branch(change.project, change.id, change.fetch_ref)
            # Statuses for the new head are relayed once the next pass sees it in sync.
            return 0

        if action is Action.NO_OP:
            logger.debug("Change %s already in sync with %s#%d", change.id, pr.repo, pr.number)
            return len(self.relay.relay(change, pr))

        if action is Action.CLOSE_AND_DELETE:
            logger.info("Pull request %s#%d has no open change. Closing.", pr.repo, pr.number)
            relayed = self._final_relay(pr)
            self.pull_requests.close(pr)
            self.branches.delete_branch(pr.repo, pr.head_ref)
            return relayed

        raise ValueError(f"Unknown action: {action!r}")

    def _final_relay(self, pr: MirrorPullRequest) -> int:
        """Relay the last statuses of a change that has merged or been abandoned.

        Best effort: the change may be gone entirely, and a failure here must
        not keep the pull request open forever.
        """
        try:
            change = self.source.get_change(pr.head_ref)
            if change is None:
                logger.debug("Change %s no longer exists; skipping final relay", pr.head_ref)
                return 0
            logger.info("Change %s is %s; relaying final statuses", change.id, change.status)
            return len(self.relay.relay(change, pr, vote=False))
        except Exception as e:
            logger.warning("Final status relay for %s failed (%s): %s", pr.head_ref, type(e).__name__, e)
            return 0
