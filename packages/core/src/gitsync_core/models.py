"""Data models shared by the reconciliation engine and its collaborators.

Decoupled from both the Gerrit and GitHub client code so the matcher,
classifier and relay can be exercised with plain values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class SourceChange:
    """An open change on the review server (the source of truth)."""

    project: str
    id: str  # Change-Id, e.g. "I8473b95934b5732ac55d26311a706c9c2bde9940"
    current_revision: str
    fetch_ref: str  # e.g. "refs/changes/40/1040/3"
    subject: str
    comments: list[str] = field(default_factory=list)
    status: str = "NEW"  # "NEW" | "MERGED" | "ABANDONED"


@dataclass
class MirrorPullRequest:
    """An open pull request on the mirror."""

    number: int
    head_ref: str
    head_sha: str
    head_repo_full_name: str
    base_ref: str
    repo: str  # repository name it was listed from, within the mirror owner


@dataclass
class StatusEvent:
    """One commit status reported against a pull request head."""

    context: str
    state: str  # "pending" | "success" | "failure" | "error"
    description: str | None = None
    target_url: str | None = None


@dataclass
class JoinedRecord:
    """Both sides of one change identifier. At least one side is always set."""

    key: str
    source_change: SourceChange | None = None
    mirror_pull_request: MirrorPullRequest | None = None

    @property
    def project(self) -> str | None:
        if self.source_change is not None:
            return self.source_change.project
        if self.mirror_pull_request is not None:
            return self.mirror_pull_request.repo
        return None


class Action(Enum):
    CREATE_AND_OPEN = "create_and_open"  # branch + pull request must be created
    UPDATE_AND_RELAY = "update_and_relay"  # branch must move to the new revision
    CLOSE_AND_DELETE = "close_and_delete"  # change is gone upstream
    NO_OP = "no_op"  # in sync; only feedback relay runs
