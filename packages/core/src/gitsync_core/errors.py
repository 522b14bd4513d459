"""Exception types raised by the reconciliation engine.

Everything here propagates: the engine never retries locally. A failed cycle
is re-attempted from scratch on the next pass.
"""

from __future__ import annotations

import re

_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")


def redact(text: str) -> str:
    """Replace ``user:token@`` credentials embedded in URLs with ``***@``."""
    return _CREDENTIALS_RE.sub(r"\1***@", text)


class SyncError(Exception):
    """Base class for all gitsync failures."""


class GitCommandError(SyncError):
    """A git subprocess exited non-zero.

    ``output`` holds the combined stdout/stderr so operators can see exactly
    what git complained about.
    """

    def __init__(self, args: list[str], returncode: int, output: str):
        self.git_args = [redact(a) for a in args]
        self.returncode = returncode
        self.output = redact(output)
        super().__init__(f"git {' '.join(self.git_args)}: exit status {returncode}\n{self.output}")


class SourceSystemError(SyncError):
    """The review server returned something we could not interpret."""


class InvariantViolation(SyncError):
    """Internal state broke an assumption the engine relies on."""


class PullRequestConflict(InvariantViolation):
    """A pull request already exists for a head branch we tried to open."""


class ReconcileError(SyncError):
    """Wraps the failure of one record so the log names what was being done."""

    def __init__(self, key: str, action: str, cause: BaseException):
        self.key = key
        self.action = action
        super().__init__(f"{action} failed for {key}: {cause}")
