"""Gerrit REST client, the source-of-truth side of the sync."""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

import requests

from gitsync_core.base import SourceSystem
from gitsync_core.errors import SourceSystemError
from gitsync_core.gerrit.auth import load_git_cookies
from gitsync_core.models import SourceChange

logger = logging.getLogger(__name__)

# Gerrit prefixes every JSON body with this to defeat XSSI.
_XSSI_PREFIX = ")]}'"

_CHANGE_OPTIONS = ["CURRENT_REVISION", "MESSAGES"]


def decode_gerrit_json(text: str):
    """Strip the XSSI guard line and decode the remaining JSON."""
    body = text.lstrip()
    if body.startswith(_XSSI_PREFIX):
        body = body[len(_XSSI_PREFIX) :]
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise SourceSystemError(f"Malformed Gerrit response: {e}: {text[:200]!r}") from e


def change_from_json(data: dict) -> SourceChange:
    """Build a SourceChange from a Gerrit ChangeInfo entity."""
    try:
        current = data["current_revision"]
        revision = data["revisions"][current]
        return SourceChange(
            project=data["project"],
            id=data["change_id"],
            current_revision=current,
            fetch_ref=revision["ref"],
            subject=data.get("subject", ""),
            comments=[m.get("message", "") for m in data.get("messages", [])],
            status=data.get("status", "NEW"),
        )
    except (KeyError, TypeError) as e:
        raise SourceSystemError(f"Gerrit change is missing field {e}: {data.get('change_id')!r}") from e


class GerritClient(SourceSystem):
    """Talks to one Gerrit instance over its REST API.

    Authentication, in order of preference:
      - HTTP basic auth when ``username``/``password`` are given (uses /a/ endpoints)
      - cookies from the git cookie file (hosted googlesource.com instances)
      - anonymous (read-only; posting reviews will fail)
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        base_url: str,
        query: str = "is:open",
        username: str | None = None,
        password: str | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.query = query
        self._session = session or requests.Session()
        self._prefix = ""
        if username and password:
            self._session.auth = (username, password)
            self._prefix = "/a"
        elif session is None:
            cookies = load_git_cookies()
            if cookies is not None:
                self._session.cookies.update(cookies)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{self._prefix}/{path.lstrip('/')}"

    def _get(self, path: str, params=None):
        r = self._session.get(self._url(path), params=params)
        r.raise_for_status()
        return decode_gerrit_json(r.text)

    def query_open_changes(self) -> list[SourceChange]:
        changes: list[SourceChange] = []
        start = 0
        while True:
            params = {"q": self.query, "o": _CHANGE_OPTIONS, "n": self.PAGE_SIZE}
            if start:
                params["S"] = start
            page = self._get("changes/", params=params)
            if not isinstance(page, list):
                raise SourceSystemError(f"Expected a list of changes, got {type(page).__name__}")
            changes.extend(change_from_json(c) for c in page)
            if not page or not page[-1].get("_more_changes"):
                break
            start += len(page)
        logger.debug("Gerrit query %r returned %d change(s)", self.query, len(changes))
        return changes

    def get_change(self, change_id: str) -> SourceChange | None:
        r = self._session.get(
            self._url(f"changes/{quote(change_id, safe='')}"),
            params={"o": _CHANGE_OPTIONS},
        )
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return change_from_json(decode_gerrit_json(r.text))

    def post_review(
        self,
        change_id: str,
        revision: str,
        message: str,
        labels: dict[str, int] | None = None,
    ) -> None:
        payload: dict = {"message": message}
        if labels:
            payload["labels"] = labels
        r = self._session.post(
            self._url(f"changes/{quote(change_id, safe='')}/revisions/{revision}/review"),
            json=payload,
        )
        r.raise_for_status()
