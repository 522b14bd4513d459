"""Git-level convergence of mirror branches.

Each project gets one working copy under the work directory. Working copies
outlive a single pass: they are reused via fetch/reset rather than re-cloned,
and are disposable, so anything odd about one is fixed by cloning again.

Every operation here is safe to repeat. Force-pushing an unchanged ref is a
no-op on the mirror; force-pushing a rewritten patch set moves the branch even
when the move is not a fast-forward.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from gitsync_core.errors import GitCommandError, SyncError, redact

logger = logging.getLogger(__name__)


def run_git(cwd: Path, *args: str) -> str:
    """Run one git command and return its combined output.

    Raises GitCommandError (with credentials redacted) on a non-zero exit.
    """
    logger.debug("git %s (in %s)", redact(" ".join(args)), cwd)
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    if result.returncode != 0:
        raise GitCommandError(list(args), result.returncode, result.stdout or "")
    return result.stdout or ""


def authenticated_url(base_url: str, auth_token: str, path: str) -> str:
    """Return ``base_url/path`` with ``auth_token`` as URL credentials."""
    parts = urlsplit(base_url.rstrip("/"))
    netloc = f"{auth_token}@{parts.netloc}" if auth_token else parts.netloc
    return urlunsplit((parts.scheme, netloc, f"{parts.path}/{path}", "", ""))


class BranchSynchronizer:
    """Pushes review revisions to same-named branches on the mirror."""

    def __init__(
        self,
        work_dir: Path,
        gerrit_url: str,
        github_git_url: str,
        owner: str,
        auth_token: str,
        default_branch: str = "master",
    ):
        self.work_dir = Path(work_dir)
        self.gerrit_url = gerrit_url.rstrip("/")
        self.github_git_url = github_git_url
        self.owner = owner
        self.auth_token = auth_token
        self.default_branch = default_branch

    def source_url(self, project: str) -> str:
        return f"{self.gerrit_url}/{project}"

    def mirror_url(self, project: str) -> str:
        return authenticated_url(self.github_git_url, self.auth_token, f"{self.owner}/{project}")

    def project_dir(self, project: str) -> Path:
        return self.work_dir / project

    def ensure_local_clone(self, project: str) -> Path:
        """Make sure a working copy of ``project`` exists and is on the default branch.

        Fast-forward failures are logged and ignored: sync_branch resets to
        the fetched revision anyway, so a stale default branch is harmless.
        """
        path = self.project_dir(project)
        if path.exists():
            if not path.is_dir():
                raise SyncError(f"clone destination is not a directory: {path}")
            if (path / ".git").exists():
                try:
                    run_git(path, "checkout", self.default_branch)
                    run_git(path, "pull", "--ff-only")
                except GitCommandError as e:
                    logger.warning("Could not update %s working copy: %s", project, e)
                return path
            logger.warning("Working copy %s is not a git repository; cloning again", path)
            shutil.rmtree(path)

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            run_git(path.parent, "clone", self.source_url(project), str(path))
        except GitCommandError:
            shutil.rmtree(path, ignore_errors=True)
            raise
        run_git(path, "checkout", self.default_branch)
        logger.info("Cloned %s into %s", project, path)
        return path

    def sync_branch(self, project: str, change_id: str, fetch_ref: str) -> str:
        """Point mirror branch ``change_id`` at ``fetch_ref`` and return its commit hash."""
        path = self.ensure_local_clone(project)

        try:
            run_git(path, "checkout", change_id)
        except GitCommandError as checkout_error:
            # No local branch for this change yet; create one.
            try:
                run_git(path, "checkout", "-b", change_id)
            except GitCommandError as create_error:
                raise create_error from checkout_error

        run_git(path, "fetch", "--force", self.source_url(project), fetch_ref)
        run_git(path, "reset", "--hard", "FETCH_HEAD")
        run_git(path, "push", "-f", self.mirror_url(project), change_id)
        sha = run_git(path, "rev-parse", "HEAD").strip()
        logger.info("Pushed %s/%s at %s", project, change_id, sha[:12])
        return sha

    def delete_branch(self, project: str, change_id: str) -> bool:
        """Delete ``change_id`` from the mirror, then locally.

        Returns whether the local branch was deleted too. The local clone is
        disposable, so failing to delete there is logged but never raised.
        """
        path = self.ensure_local_clone(project)
        run_git(path, "push", "--delete", self.mirror_url(project), change_id)
        logger.info("Deleted mirror branch %s/%s", project, change_id)
        try:
            run_git(path, "branch", "-D", change_id)
        except GitCommandError as e:
            logger.warning("Could not delete local branch %s in %s: %s", change_id, path, e.output.strip())
            return False
        return True
