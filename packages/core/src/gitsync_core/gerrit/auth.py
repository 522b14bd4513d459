"""Gerrit cookie authentication from a git cookie file.

Hosted Gerrit instances (googlesource.com) hand out credentials as a line in
``~/.gitcookies``. The same file is what ``git`` itself uses for HTTPS, so
reading it lets us talk to the REST API without a separate password.

Lookup order (stops at first success):
  1. ``git config --get http.cookiefile``
  2. ``~/.gitcookies``
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from requests.cookies import RequestsCookieJar

logger = logging.getLogger(__name__)

_HTTP_ONLY_PREFIX = "#HttpOnly_"


def find_cookie_file() -> Path | None:
    """Return the path of the git cookie file, or None if there is none."""
    try:
        result = subprocess.run(
            ["git", "config", "--get", "http.cookiefile"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            path = Path(os.path.expanduser(result.stdout.strip()))
            if path.is_file():
                return path
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # git is not installed or timed out; fall through to the default.
        pass

    default = Path.home() / ".gitcookies"
    return default if default.is_file() else None


def parse_cookie_file(text: str) -> RequestsCookieJar:
    """Parse Netscape-format cookie lines into a requests cookie jar.

    Each line is ``domain  flag  path  secure  expiry  name  value``,
    tab separated. Lines beginning with ``#HttpOnly_`` are real cookies.
    """
    jar = RequestsCookieJar()
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith(_HTTP_ONLY_PREFIX):
            line = line[len(_HTTP_ONLY_PREFIX) :]
        elif not line or line.startswith("#"):
            continue
        fields = line.split("\t")
        if len(fields) != 7:
            logger.debug("Skipping malformed cookie line")
            continue
        domain, _flag, path, secure, _expiry, name, value = fields
        jar.set(name, value, domain=domain, path=path, secure=secure.upper() == "TRUE")
    return jar


def load_git_cookies() -> RequestsCookieJar | None:
    """Return cookies from the git cookie file, or None if it is absent."""
    path = find_cookie_file()
    if path is None:
        return None
    jar = parse_cookie_file(path.read_text())
    logger.debug("Loaded %d Gerrit cookie(s) from %s", len(jar), path)
    return jar
