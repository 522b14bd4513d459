from __future__ import annotations

from gitsync_core.errors import InvariantViolation
from gitsync_core.models import Action, JoinedRecord


def classify(record: JoinedRecord) -> Action:
    """Decide what the loop must do to converge one identifier.

    Only presence of each side and revision equality matter. Equal hashes
    mean the mirror branch already points at the current patch set.
    """
    change = record.source_change
    pr = record.mirror_pull_request

    if change is not None and pr is None:
        return Action.CREATE_AND_OPEN
    if change is not None and pr is not None:
        if pr.head_sha == change.current_revision:
            return Action.NO_OP
        return Action.UPDATE_AND_RELAY
    if pr is not None:
        return Action.CLOSE_AND_DELETE
    raise InvariantViolation(f"Joined record {record.key!r} has neither a change nor a pull request")
