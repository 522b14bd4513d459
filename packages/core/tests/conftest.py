"""In-memory stand-ins for Gerrit, GitHub and the git layer.

FakeBranches writes straight into FakeGitHub's branch table, so a pull
request's head sha follows whatever was last pushed, as on the real mirror.
"""

from __future__ import annotations

import pytest

from gitsync_core.base import MirrorSystem, SourceSystem
from gitsync_core.errors import PullRequestConflict
from gitsync_core.models import MirrorPullRequest, SourceChange, StatusEvent
from gitsync_core.pull_requests import PullRequestDriver
from gitsync_core.reconciler import Reconciler
from gitsync_core.relay import FeedbackRelay

TRAVIS = "continuous-integration/travis-ci/pr"


class FakeGerrit(SourceSystem):
    def __init__(self):
        self.open_changes: dict[str, SourceChange] = {}
        self.closed_changes: dict[str, SourceChange] = {}
        self.reviews: list[dict] = []
        self.refs: dict[str, str] = {}

    def add(self, change: SourceChange) -> SourceChange:
        self.open_changes[change.id] = change
        self.refs[change.fetch_ref] = change.current_revision
        return change

    def close(self, change_id: str, status: str = "MERGED") -> None:
        change = self.open_changes.pop(change_id)
        change.status = status
        self.closed_changes[change_id] = change

    def query_open_changes(self) -> list[SourceChange]:
        return list(self.open_changes.values())

    def get_change(self, change_id: str) -> SourceChange | None:
        return self.open_changes.get(change_id) or self.closed_changes.get(change_id)

    def post_review(self, change_id, revision, message, labels=None) -> None:
        self.reviews.append({"change_id": change_id, "revision": revision, "message": message, "labels": labels})
        change = self.get_change(change_id)
        change.comments.append(f"Patch Set 1:\n\n{message}")


class FakeGitHub(MirrorSystem):
    def __init__(self, repos=("foo",)):
        self.repos = list(repos)
        self.branches: dict[tuple[str, str], str] = {}
        self.pulls: list[MirrorPullRequest] = []
        self.closed: list[MirrorPullRequest] = []
        self.statuses: dict[str, list[StatusEvent]] = {}
        self.created: list[dict] = []
        self._next_number = 1

    def add_pull(self, repo: str, head: str, sha: str, owner: str = "AugieBot") -> MirrorPullRequest:
        self.branches[(repo, head)] = sha
        pr = MirrorPullRequest(
            number=self._next_number,
            head_ref=head,
            head_sha=sha,
            head_repo_full_name=f"{owner}/{repo}",
            base_ref="master",
            repo=repo,
        )
        self._next_number += 1
        self.pulls.append(pr)
        return pr

    def list_repositories(self) -> list[str]:
        return list(self.repos)

    def list_pull_requests(self, repo: str) -> list[MirrorPullRequest]:
        result = []
        for pr in self.pulls:
            if pr.repo == repo:
                pr.head_sha = self.branches.get((repo, pr.head_ref), pr.head_sha)
                result.append(pr)
        return result

    def create_pull_request(self, repo, title, body, head, base) -> MirrorPullRequest:
        if (repo, head) not in self.branches:
            raise RuntimeError(f"422 head {head} does not exist")
        if any(pr.repo == repo and pr.head_ref == head for pr in self.pulls):
            raise PullRequestConflict(head)
        self.created.append({"repo": repo, "title": title, "body": body, "head": head, "base": base})
        pr = self.add_pull(repo, head, self.branches[(repo, head)])
        return pr

    def set_pull_request_state(self, repo, number, state) -> None:
        assert state == "closed"
        pr = next(p for p in self.pulls if p.repo == repo and p.number == number)
        self.pulls.remove(pr)
        self.closed.append(pr)

    def list_commit_statuses(self, repo_full_name, sha) -> list[StatusEvent]:
        return list(self.statuses.get(sha, []))


class FakeBranches:
    """Duck-types BranchSynchronizer against FakeGerrit/FakeGitHub."""

    def __init__(self, gerrit: FakeGerrit, github: FakeGitHub):
        self.gerrit = gerrit
        self.github = github
        self.synced: list[tuple[str, str, str]] = []
        self.deleted: list[tuple[str, str]] = []

    def sync_branch(self, project, change_id, fetch_ref) -> str:
        sha = self.gerrit.refs[fetch_ref]
        self.github.branches[(project, change_id)] = sha
        self.synced.append((project, change_id, sha))
        return sha

    def delete_branch(self, project, change_id) -> bool:
        self.github.branches.pop((project, change_id))
        self.deleted.append((project, change_id))
        return True


@pytest.fixture
def gerrit():
    return FakeGerrit()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def branches(gerrit, github):
    return FakeBranches(gerrit, github)


@pytest.fixture
def reconciler(gerrit, github, branches):
    return Reconciler(
        source=gerrit,
        mirror=github,
        branches=branches,
        pull_requests=PullRequestDriver(github),
        relay=FeedbackRelay(gerrit, github, context=TRAVIS),
    )
