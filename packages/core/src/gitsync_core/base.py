"""Abstract collaborator interfaces.

The reconciliation engine depends on SourceSystem and MirrorSystem, not on
Gerrit or GitHub directly, so the concrete clients can be swapped for fakes
in tests (or for another review server) without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitsync_core.models import MirrorPullRequest, SourceChange, StatusEvent


class SourceSystem(ABC):
    """The review server holding the canonical list of open changes."""

    @abstractmethod
    def query_open_changes(self) -> list[SourceChange]:
        """Return every open change, including its posted comment texts."""

    @abstractmethod
    def get_change(self, change_id: str) -> SourceChange | None:
        """Return a single change in any state, or None if it does not exist."""

    @abstractmethod
    def post_review(
        self,
        change_id: str,
        revision: str,
        message: str,
        labels: dict[str, int] | None = None,
    ) -> None:
        """Post a comment on a revision, optionally voting on labels."""


class MirrorSystem(ABC):
    """The hosting service receiving branches and pull requests."""

    @abstractmethod
    def list_repositories(self) -> list[str]:
        """Return the names of all repositories owned by the mirror account."""

    @abstractmethod
    def list_pull_requests(self, repo: str) -> list[MirrorPullRequest]:
        """Return the open pull requests of one repository."""

    @abstractmethod
    def create_pull_request(self, repo: str, title: str, body: str, head: str, base: str) -> MirrorPullRequest:
        """Open a pull request.

        Must raise PullRequestConflict if one already exists for ``head``.
        """

    @abstractmethod
    def set_pull_request_state(self, repo: str, number: int, state: str) -> None:
        """Transition a pull request, e.g. to ``closed``."""

    @abstractmethod
    def list_commit_statuses(self, repo_full_name: str, sha: str) -> list[StatusEvent]:
        """Return the statuses recorded against a commit."""
