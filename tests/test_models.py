"""Tests for event models and the event factory."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from activity_feed.models import (
    CommitListing,
    EventFactory,
    IssueCommentEvent,
    PullRequestDetails,
    PushEvent,
    RawEvent,
    RepositoryRef,
    UnknownEvent,
    WatchEvent,
)
from tests.fixtures import github_events as gh


class TestRawEvent:
    def test_timestamp_is_timezone_aware(self):
        event = RawEvent(**gh.make_event("WatchEvent", created_at="2024-01-15T10:00:00Z"))

        assert event.timestamp == datetime(2024, 1, 15, 10, 0, tzinfo=UTC)

    def test_invalid_created_at(self):
        with pytest.raises(ValidationError, match="Invalid datetime format"):
            RawEvent(**gh.make_event("WatchEvent", created_at="yesterday"))

    def test_repository_short_name(self):
        assert RepositoryRef(name="octocat/hello-world").short_name == "hello-world"


class TestEventFactory:
    def test_known_types_are_typed(self):
        assert isinstance(EventFactory.create_event(gh.watch_event()), WatchEvent)
        assert isinstance(EventFactory.create_event(gh.push_event()), PushEvent)

    def test_issue_comment_fields(self):
        event = EventFactory.create_event(gh.issue_comment_event(via_app=True))

        assert isinstance(event, IssueCommentEvent)
        assert event.payload.issue.number == 7
        assert event.payload.comment.performed_via_github_app == {"slug": "github-mobile"}

    def test_unknown_type_falls_back(self):
        event = EventFactory.create_event(
            gh.make_event("SponsorshipEvent", {"action": "created"})
        )

        assert isinstance(event, UnknownEvent)
        assert event.type == "SponsorshipEvent"

    def test_malformed_payload_falls_back(self):
        event = EventFactory.create_event(gh.make_event("PushEvent", {"size": 1}))

        assert isinstance(event, UnknownEvent)
        assert event.type == "PushEvent"

    def test_missing_payload_falls_back(self):
        data = gh.watch_event()
        del data["payload"]

        event = EventFactory.create_event(data)

        assert isinstance(event, UnknownEvent)
        assert event.payload == {}

    def test_invalid_common_fields_raise(self):
        data = gh.watch_event()
        del data["repo"]

        with pytest.raises(ValidationError):
            EventFactory.create_event(data)

    def test_supported_event_types(self):
        supported = EventFactory.get_supported_event_types()

        assert "PullRequestReviewCommentEvent" in supported
        assert "SponsorshipEvent" not in supported
        assert len(supported) == 15


class TestResources:
    def test_pull_request_details(self):
        details = PullRequestDetails(**gh.pull_request_resource(merged=True))

        assert details.merged is True
        assert details.user.login == "octocat"
        assert details.changed_files == 3

    def test_commit_listing(self):
        listing = CommitListing(**gh.commit_listing("abc1234def", "Fix bug", "a@b.c"))

        assert listing.commit.message == "Fix bug"
        assert listing.commit.author.email == "a@b.c"
