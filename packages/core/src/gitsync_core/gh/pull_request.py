from __future__ import annotations

import logging

from github import Auth, Github, GithubException

from gitsync_core.base import MirrorSystem
from gitsync_core.errors import PullRequestConflict
from gitsync_core.models import MirrorPullRequest, StatusEvent

logger = logging.getLogger(__name__)


def get_client(token: str, base_url: str = "https://api.github.com") -> Github:
    return Github(auth=Auth.Token(token), base_url=base_url)


def to_mirror_pull_request(pr, repo_name: str) -> MirrorPullRequest:
    """Flatten a PyGithub PullRequest into the engine's model."""
    # head.repo is None when the fork the PR came from has been deleted.
    head_repo = pr.head.repo.full_name if pr.head.repo is not None else ""
    return MirrorPullRequest(
        number=pr.number,
        head_ref=pr.head.ref,
        head_sha=pr.head.sha,
        head_repo_full_name=head_repo,
        base_ref=pr.base.ref,
        repo=repo_name,
    )


def _is_existing_pull_error(e: GithubException) -> bool:
    if e.status != 422:
        return False
    data = e.data if isinstance(e.data, dict) else {}
    messages = [data.get("message") or ""]
    messages += [err.get("message") or "" for err in data.get("errors", []) if isinstance(err, dict)]
    return any("already exists" in m for m in messages)


class GitHubMirror(MirrorSystem):
    """GitHub side of the sync, scoped to one owner (user or organization)."""

    def __init__(self, owner: str, token: str, base_url: str = "https://api.github.com", client: Github | None = None):
        self.owner = owner
        self._gh = client or get_client(token, base_url)

    def _repo(self, name: str):
        full_name = name if "/" in name else f"{self.owner}/{name}"
        return self._gh.get_repo(full_name)

    def list_repositories(self) -> list[str]:
        return [r.name for r in self._gh.get_user(self.owner).get_repos()]

    def list_pull_requests(self, repo: str) -> list[MirrorPullRequest]:
        return [to_mirror_pull_request(pr, repo) for pr in self._repo(repo).get_pulls(state="open")]

    def create_pull_request(self, repo: str, title: str, body: str, head: str, base: str) -> MirrorPullRequest:
        try:
            pr = self._repo(repo).create_pull(title=title, body=body, head=head, base=base)
        except GithubException as e:
            if _is_existing_pull_error(e):
                raise PullRequestConflict(f"A pull request for {self.owner}/{repo}:{head} already exists") from e
            raise
        logger.debug("Created pull request %s/%s#%d", self.owner, repo, pr.number)
        return to_mirror_pull_request(pr, repo)

    def set_pull_request_state(self, repo: str, number: int, state: str) -> None:
        self._repo(repo).get_pull(number).edit(state=state)

    def list_commit_statuses(self, repo_full_name: str, sha: str) -> list[StatusEvent]:
        statuses = self._repo(repo_full_name).get_commit(sha).get_statuses()
        return [
            StatusEvent(
                context=s.context,
                state=s.state,
                description=s.description,
                target_url=s.target_url,
            )
            for s in statuses
        ]
