import os
import re
from pathlib import Path
from typing import Optional, Union

import yaml

DEFAULT_CONFIG: dict = {
    "gerrit_url": "https://upspin-review.googlesource.com",
    "github_owner": "AugieBot",
    "github_api_url": "https://api.github.com",
    "github_git_url": "https://github.com",
    "poll_interval": "10m",
    "work_dir": None,  # None = temporary directory, removed on exit
    "default_branch": "master",
    "change_id_prefix": "I",  # Gerrit Change-Ids start with a capital I
    "change_query": "is:open",
    "status_context": "continuous-integration/travis-ci/pr",
    "failure_labels": {"Code-Review": -1},
    "pull_request_body": "Automatically created pull request. **Do not review or merge this PR.**",
}

_INTERVAL_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$")


def load_config(config_path: str = ".gitsync.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .gitsync.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "failure_labels": dict(DEFAULT_CONFIG["failure_labels"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["poll_interval"] = parse_interval(config["poll_interval"])

    # Credentials only ever come from the environment.
    config["auth_token"] = os.environ.get("GITSYNC_AUTH_TOKEN")
    config["gerrit_username"] = os.environ.get("GERRIT_USERNAME")
    config["gerrit_password"] = os.environ.get("GERRIT_PASSWORD")

    return config


def parse_interval(value: Union[int, float, str]) -> float:
    """Return a poll interval in seconds.

    Accepts plain numbers (seconds) or duration strings like ``90s``, ``10m``,
    ``1h30m``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid poll interval: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().lower()
        if text.replace(".", "", 1).isdigit():
            seconds = float(text)
        else:
            match = _INTERVAL_RE.match(text)
            if not text or not match:
                raise ValueError(f"Invalid poll interval: {value!r}")
            hours, minutes, secs = (int(g) if g else 0 for g in match.groups())
            seconds = float(hours * 3600 + minutes * 60 + secs)
    if seconds <= 0:
        raise ValueError(f"Poll interval must be positive, got {value!r}")
    return seconds


def split_auth_token(auth_token: str) -> tuple[str, str]:
    """Split a ``username:personal-access-token`` string into its two halves."""
    if not auth_token or ":" not in auth_token:
        raise ValueError('auth token must look like "username:personal-access-token"')
    username, token = auth_token.split(":", 1)
    if not username or not token:
        raise ValueError('auth token must look like "username:personal-access-token"')
    return username, token
