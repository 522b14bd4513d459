"""Join review changes and mirror pull requests on the change identifier.

The mirror branch name *is* the Change-Id, so the join key on the GitHub side
is simply the pull request's head ref. Pull requests whose head ref does not
look like a Change-Id were opened by people, not by us, and are never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gitsync_core.errors import InvariantViolation
from gitsync_core.models import JoinedRecord, MirrorPullRequest, SourceChange

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "I"


def is_change_id(ref: str, prefix: str = DEFAULT_PREFIX) -> bool:
    return bool(ref) and ref.startswith(prefix)


def join(
    changes: Iterable[SourceChange],
    pull_requests: Iterable[MirrorPullRequest],
    prefix: str = DEFAULT_PREFIX,
) -> dict[str, JoinedRecord]:
    """Return one JoinedRecord per identifier seen on either side.

    Duplicate identifiers on the same side raise InvariantViolation: with a
    duplicate the result would depend on iteration order.
    """
    records: dict[str, JoinedRecord] = {}

    for change in changes:
        record = records.setdefault(change.id, JoinedRecord(key=change.id))
        if record.source_change is not None:
            raise InvariantViolation(
                f"Change-Id {change.id} is used by more than one open change "
                f"({record.source_change.project} and {change.project}). "
                "No pass can run until one of them is merged or abandoned."
            )
        record.source_change = change

    for pr in pull_requests:
        if not is_change_id(pr.head_ref, prefix):
            logger.debug("Ignoring pull request %s#%d with head %r", pr.repo, pr.number, pr.head_ref)
            continue
        record = records.setdefault(pr.head_ref, JoinedRecord(key=pr.head_ref))
        if record.mirror_pull_request is not None:
            existing = record.mirror_pull_request
            raise InvariantViolation(
                f"Branch {pr.head_ref} has more than one open pull request "
                f"({existing.repo}#{existing.number} and {pr.repo}#{pr.number}). "
                "No pass can run until one of them is closed."
            )
        record.mirror_pull_request = pr

    return records
