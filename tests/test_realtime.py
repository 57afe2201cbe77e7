"""Tests for the row-change feed and the submission tracker."""

from unittest.mock import Mock

import pytest

from skillbridge.domain.models import SubmissionStatus
from skillbridge.marketplace import JobBoard
from skillbridge.persistence import JobRepository, SubmissionRepository, get_session, get_session_factory
from skillbridge.realtime import (
    SUBMISSIONS_TABLE,
    ChangeEvent,
    ChangeFeed,
    ChangeType,
    SubmissionTracker,
    bind_change_feed,
)
from tests.helpers import create_job, create_member


def insert_event(user_id="u1", table=SUBMISSIONS_TABLE):
    return ChangeEvent(table=table, type=ChangeType.INSERT, new={"id": "s1", "user_id": user_id})


class TestChangeFeed:
    def test_publish_to_matching_subscribers(self):
        feed = ChangeFeed()
        mine, other_user, other_table = Mock(), Mock(), Mock()
        feed.subscribe(SUBMISSIONS_TABLE, mine, filters={"user_id": "u1"})
        feed.subscribe(SUBMISSIONS_TABLE, other_user, filters={"user_id": "u2"})
        feed.subscribe("jobs", other_table)

        event = insert_event("u1")
        assert feed.publish(event) == 1

        mine.assert_called_once_with(event)
        other_user.assert_not_called()
        other_table.assert_not_called()

    def test_delete_events_match_on_old_row(self):
        feed = ChangeFeed()
        callback = Mock()
        feed.subscribe(SUBMISSIONS_TABLE, callback, filters={"user_id": "u1"})

        delivered = feed.publish(
            ChangeEvent(table=SUBMISSIONS_TABLE, type=ChangeType.DELETE, old={"user_id": "u1"})
        )

        assert delivered == 1

    def test_unsubscribe(self):
        feed = ChangeFeed()
        callback = Mock()
        subscription = feed.subscribe(SUBMISSIONS_TABLE, callback)
        assert feed.subscriber_count == 1

        subscription.unsubscribe()
        subscription.unsubscribe()

        assert feed.subscriber_count == 0
        assert feed.publish(insert_event()) == 0
        callback.assert_not_called()

    def test_failing_callback_does_not_block_others(self):
        feed = ChangeFeed()
        broken = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        feed.subscribe(SUBMISSIONS_TABLE, broken)
        feed.subscribe(SUBMISSIONS_TABLE, healthy)

        assert feed.publish(insert_event()) == 1
        healthy.assert_called_once()


class TestSubmissionTracker:
    def test_refetches_on_change(self):
        feed = ChangeFeed()
        fetch = Mock(side_effect=[["first"], ["first", "second"]])
        on_change = Mock()

        with SubmissionTracker(feed, "u1", fetch, on_change) as tracker:
            assert tracker.submissions == ["first"]
            feed.publish(insert_event("u2"))
            feed.publish(insert_event("u1"))

            assert tracker.submissions == ["first", "second"]
            on_change.assert_called_once_with(["first", "second"])

        assert feed.subscriber_count == 0

    def test_stop_without_start(self):
        SubmissionTracker(ChangeFeed(), "u1", Mock(return_value=[])).stop()


class TestDatabaseChanges:
    """Committed ORM writes on submissions reach the feed."""

    @pytest.fixture
    def feed(self, database):
        feed = ChangeFeed()
        bind_change_feed(feed, get_session_factory())
        return feed

    @pytest.fixture
    def board(self, database, app_config, clock):
        return JobBoard(app_config, clock=clock)

    def test_insert_published_after_commit(self, feed, board):
        member = create_member()
        job = create_job()
        events = []
        feed.subscribe(SUBMISSIONS_TABLE, events.append, filters={"user_id": member.id})

        submission = board.submit_work(member.id, job.id, content="Work")

        [event] = events
        assert event.type == ChangeType.INSERT
        assert event.new["id"] == submission.id
        assert event.new["status"] == "pending"

    def test_review_published_as_update(self, feed, board, clock):
        member = create_member()
        submission = board.submit_work(member.id, create_job().id, content="Work")
        events = []
        feed.subscribe(SUBMISSIONS_TABLE, events.append)

        with get_session() as session:
            SubmissionRepository(session).record_review(
                submission.id, SubmissionStatus.APPROVED, "Nice", clock(), member.id
            )

        [event] = events
        assert event.type == ChangeType.UPDATE
        assert event.new["status"] == "approved"
        assert event.old["status"] == "pending"

    def test_rolled_back_changes_are_dropped(self, feed, board):
        member = create_member()
        job = create_job()
        board.submit_work(member.id, job.id, content="Work")
        callback = Mock()
        feed.subscribe(SUBMISSIONS_TABLE, callback)

        with pytest.raises(RuntimeError):
            with get_session() as session:
                submission = SubmissionRepository(session).list_for_user(member.id)[0]
                SubmissionRepository(session).record_review(
                    submission.id, SubmissionStatus.REJECTED, None, submission.created_at, member.id
                )
                raise RuntimeError("abort")

        callback.assert_not_called()

    def test_tracker_follows_member_submissions(self, feed, board):
        member = create_member()
        first, second = create_job("First"), create_job("Second")

        def fetch():
            return board.list_submissions(member.id).submissions

        with SubmissionTracker(feed, member.id, fetch) as tracker:
            assert tracker.submissions == []
            board.submit_work(member.id, first.id, content="A")
            board.submit_work(member.id, second.id, content="B")

            assert {s.job_title for s in tracker.submissions} == {"First", "Second"}

    def test_job_deletion_published_as_deletes(self, feed, board):
        member = create_member()
        job = create_job()
        submission = board.submit_work(member.id, job.id, content="Work")
        events = []
        feed.subscribe(SUBMISSIONS_TABLE, events.append, filters={"user_id": member.id})

        with get_session() as session:
            JobRepository(session).delete(job.id)

        [event] = events
        assert event.type == ChangeType.DELETE
        assert event.old["id"] == submission.id
