"""GitHub credential resolution with gh CLI fallback.

gitsync needs a ``username:token`` pair: the token authenticates API calls,
and the pair is embedded in the push URL for git.

Resolution order (stops at first success):
  1. GITSYNC_AUTH_TOKEN environment variable, already "username:token"
  2. GITHUB_TOKEN environment variable, paired with the x-access-token user
  3. `gh auth token` (GitHub CLI session), paired the same way
"""

from __future__ import annotations

import logging
import os
import subprocess

import click

from gitsync_core.config import split_auth_token

logger = logging.getLogger(__name__)

_TOKEN_USER = "x-access-token"


def resolve_auth_token() -> str | None:
    """Return a ``username:token`` string or None if no valid source is available.

    Never raises. Callers should check for None and emit a UsageError.
    """
    explicit = os.environ.get("GITSYNC_AUTH_TOKEN")
    if explicit:
        return explicit

    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return f"{_TOKEN_USER}:{token}"

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return f"{_TOKEN_USER}:{gh_token}"
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out.
        pass

    return None


def require_auth_token() -> str:
    """Resolve the auth token and check it splits into a username and a token.

    Raises click.UsageError when no token is found or it is malformed.
    """
    token = resolve_auth_token()
    if not token:
        raise click.UsageError('You must set GITSYNC_AUTH_TOKEN to "username:personal-access-token".')
    try:
        split_auth_token(token)
    except ValueError as e:
        raise click.UsageError(f"Invalid GITSYNC_AUTH_TOKEN: {e}") from e
    return token
