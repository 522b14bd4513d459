"""Tests for relaying CI statuses back to Gerrit."""

from unittest.mock import MagicMock

from gitsync_core.models import MirrorPullRequest, SourceChange, StatusEvent
from gitsync_core.relay import FeedbackRelay, already_relayed, status_message

TRAVIS = "continuous-integration/travis-ci/pr"


def _change(comments=None):
    return SourceChange(
        project="foo",
        id="Iabc123",
        current_revision="deadbeef",
        fetch_ref="refs/changes/1/1/1",
        subject="s",
        comments=list(comments or []),
    )


def _pr():
    return MirrorPullRequest(
        number=3,
        head_ref="Iabc123",
        head_sha="deadbeef",
        head_repo_full_name="AugieBot/foo",
        base_ref="master",
        repo="foo",
    )


def _relay(statuses, **kwargs):
    source = MagicMock()
    mirror = MagicMock()
    mirror.list_commit_statuses.return_value = statuses
    return FeedbackRelay(source, mirror, context=TRAVIS, **kwargs), source, mirror


class TestStatusMessage:
    def test_description_and_target(self):
        assert status_message(StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/42")) == (
            "tests failed: http://ci/42"
        )

    def test_missing_fields_render_empty(self):
        assert status_message(StatusEvent(TRAVIS, "success")) == ": "


class TestAlreadyRelayed:
    def test_substring_of_existing_comment(self):
        assert already_relayed("tests failed: http://ci/42", ["Patch Set 2:\n\ntests failed: http://ci/42"])

    def test_different_build(self):
        assert not already_relayed("tests failed: http://ci/42", ["tests failed: http://ci/41"])

    def test_no_comments(self):
        assert not already_relayed("x", [])


class TestFeedbackRelay:
    def test_queries_statuses_for_pull_request_head(self):
        relay, _, mirror = _relay([])
        relay.relay(_change(), _pr())
        mirror.list_commit_statuses.assert_called_once_with("AugieBot/foo", "deadbeef")

    def test_deleted_head_repository_reads_listing_repository(self):
        relay, _, mirror = _relay([])
        pr = _pr()
        pr.head_repo_full_name = ""

        relay.relay(_change(), pr)

        mirror.list_commit_statuses.assert_called_once_with("foo", "deadbeef")

    def test_failure_posted_with_negative_vote(self):
        relay, source, _ = _relay([StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/42")])

        posted = relay.relay(_change(), _pr())

        assert posted == ["tests failed: http://ci/42"]
        source.post_review.assert_called_once_with(
            "Iabc123", "deadbeef", "tests failed: http://ci/42", {"Code-Review": -1}
        )

    def test_success_posted_without_labels(self):
        relay, source, _ = _relay([StatusEvent(TRAVIS, "success", "build passed", "http://ci/43")])

        relay.relay(_change(), _pr())

        source.post_review.assert_called_once_with("Iabc123", "deadbeef", "build passed: http://ci/43", None)

    def test_pending_and_error_states_ignored(self):
        relay, source, _ = _relay(
            [
                StatusEvent(TRAVIS, "pending", "build started", "http://ci/44"),
                StatusEvent(TRAVIS, "error", "build errored", "http://ci/44"),
            ]
        )

        assert relay.relay(_change(), _pr()) == []
        source.post_review.assert_not_called()

    def test_other_contexts_ignored(self):
        relay, source, _ = _relay([StatusEvent("codecov/project", "failure", "coverage dropped", "http://cov/1")])

        relay.relay(_change(), _pr())

        source.post_review.assert_not_called()

    def test_existing_comment_suppresses_repost(self):
        relay, source, _ = _relay([StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/42")])

        relay.relay(_change(["Patch Set 1:\n\ntests failed: http://ci/42"]), _pr())

        source.post_review.assert_not_called()

    def test_duplicate_statuses_posted_once(self):
        status = StatusEvent(TRAVIS, "success", "build passed", "http://ci/43")
        relay, source, _ = _relay([status, status])

        assert relay.relay(_change(), _pr()) == ["build passed: http://ci/43"]
        assert source.post_review.call_count == 1

    def test_distinct_statuses_each_posted(self):
        relay, source, _ = _relay(
            [
                StatusEvent(TRAVIS, "success", "build passed", "http://ci/45"),
                StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/44"),
            ]
        )

        relay.relay(_change(), _pr())

        assert source.post_review.call_count == 2

    def test_vote_disabled_for_closed_changes(self):
        relay, source, _ = _relay([StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/42")])

        relay.relay(_change(), _pr(), vote=False)

        source.post_review.assert_called_once_with("Iabc123", "deadbeef", "tests failed: http://ci/42", None)

    def test_custom_failure_labels(self):
        relay, source, _ = _relay(
            [StatusEvent(TRAVIS, "failure", "tests failed", "http://ci/42")],
            failure_labels={"Verified": -1},
        )

        relay.relay(_change(), _pr())

        assert source.post_review.call_args.args[3] == {"Verified": -1}

    def test_does_not_mutate_change_comments(self):
        relay, _, _ = _relay([StatusEvent(TRAVIS, "success", "build passed", "http://ci/43")])
        change = _change()

        relay.relay(change, _pr())

        assert change.comments == []
