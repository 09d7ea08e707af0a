"""Feed assembly tests: filtering, ordering, limits and failure behavior.

The GitHub client is mocked at its method boundary; everything else is real.
"""
import asyncio
import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from activity_feed.feed import FeedAssembler, filter_by_actor, filter_by_visibility
from activity_feed.fetchers import FeedTarget
from activity_feed.github_client import GitHubClient
from activity_feed.inputs import ActivityInputs
from activity_feed.models import EventFactory
from tests.fixtures import github_events as gh

T = "2024-01-15T10:00:00Z"


def make_client(*pages):
    """Client whose user events endpoint serves ``pages`` then fails."""
    client = AsyncMock(spec=GitHubClient)
    request = httpx.Request("GET", "https://api.github.com/users/bob/events")
    end = httpx.HTTPStatusError(
        "Unprocessable", request=request, response=httpx.Response(422, request=request)
    )
    client.list_user_events.side_effect = [*pages, end]
    return client


def make_inputs(**overrides):
    values = {"markdown": "none", "limit": 10}
    values.update(overrides)
    return ActivityInputs(**values)


async def assemble(client, inputs=None, target=None, account="user"):
    assembler = FeedAssembler(client)
    return await assembler.assemble(
        target or FeedTarget(login="bob"), inputs or make_inputs(), account=account
    )


class TestScenarios:
    @pytest.mark.asyncio
    async def test_single_star(self):
        """A: one public star by the subject becomes one star record."""
        client = make_client(
            [gh.watch_event(actor="bob", repo="o/r", created_at=T, public=True)]
        )

        feed = await assemble(client, make_inputs(filter=["all"], visibility="all"))

        assert feed.model_dump()["events"] == [
            {
                "type": "star",
                "actor": "bob",
                "repo": "o/r",
                "timestamp": datetime(2024, 1, 15, 10, 0, tzinfo=UTC),
                "action": "started",
            }
        ]

    @pytest.mark.asyncio
    async def test_type_filter_excludes_star(self):
        """B: same event with filter=push yields nothing."""
        client = make_client([gh.watch_event(actor="bob", repo="o/r")])

        feed = await assemble(client, make_inputs(filter=["push"]))

        assert feed.events == []

    @pytest.mark.asyncio
    async def test_deleted_and_ignored_commit_comments(self):
        """C: action filter and ignore list drop both comments."""
        client = make_client(
            [
                gh.commit_comment_event(action="deleted", actor="bob"),
                gh.commit_comment_event(commenter="troll", actor="bob"),
            ]
        )

        feed = await assemble(client, make_inputs(ignored=["troll"]))

        assert feed.events == []

    @pytest.mark.asyncio
    async def test_push_lookup_failure_fails_whole_feed(self):
        """D: a failing commit lookup aborts assembly, no partial feed."""
        client = make_client([gh.watch_event(actor="bob"), gh.push_event(actor="bob")])
        request = httpx.Request("GET", "https://api.github.com/repos/bob/r/commits")
        client.list_commits.side_effect = httpx.ConnectError(
            "connection reset", request=request
        )

        with pytest.raises(httpx.ConnectError):
            await assemble(client)

    @pytest.mark.asyncio
    async def test_failure_cancels_and_settles_pending_lookups(self):
        client = make_client(
            [
                gh.pull_request_event(actor="bob", number=1),
                gh.pull_request_event(actor="bob", number=2),
            ]
        )
        request = httpx.Request("GET", "https://api.github.com/repos/bob/r/pulls/1")
        cancelled = []

        async def get_pull_request(owner, repo, number):
            if number == 1:
                raise httpx.ConnectError("connection reset", request=request)
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(number)
                raise
            return gh.pull_request_resource(number=number, author="bob")

        client.get_pull_request.side_effect = get_pull_request

        with pytest.raises(httpx.ConnectError):
            await assemble(client)

        assert cancelled == [2]


class TestFiltering:
    @pytest.mark.asyncio
    async def test_actor_filter_is_case_insensitive(self):
        client = make_client(
            [
                gh.watch_event(actor="BOB", repo="o/first"),
                gh.watch_event(actor="alice", repo="o/second"),
            ]
        )

        feed = await assemble(client)

        assert [record.repo for record in feed.events] == ["o/first"]

    @pytest.mark.asyncio
    async def test_organization_keeps_every_actor(self):
        client = make_client(
            [gh.watch_event(actor="bob"), gh.watch_event(actor="alice")]
        )

        feed = await assemble(client, account="organization")

        assert [record.actor for record in feed.events] == ["bob", "alice"]

    @pytest.mark.asyncio
    async def test_public_visibility_drops_private_events(self):
        client = make_client(
            [
                gh.watch_event(actor="bob", repo="o/private", public=False),
                gh.watch_event(actor="bob", repo="o/public", public=True),
            ]
        )

        feed = await assemble(client, make_inputs(visibility="public"))

        assert [record.repo for record in feed.events] == ["o/public"]

    @pytest.mark.asyncio
    async def test_type_filter_keeps_listed_types(self):
        client = make_client(
            [
                gh.watch_event(actor="bob"),
                gh.fork_event(actor="bob"),
                gh.create_event(actor="bob"),
            ]
        )

        feed = await assemble(client, make_inputs(filter="fork,ref/create"))

        assert [record.type for record in feed.events] == ["fork", "ref/create"]

    def test_filter_helpers(self):
        events = [
            EventFactory.create_event(gh.watch_event(actor="Bob", public=False)),
            EventFactory.create_event(gh.watch_event(actor="eve", public=True)),
        ]

        assert len(filter_by_actor(events, "bob")) == 1
        assert len(filter_by_actor(events, "bob", "organization")) == 2
        assert len(filter_by_visibility(events, "public")) == 1
        assert len(filter_by_visibility(events, "all")) == 2


class TestOrderingAndLimit:
    @pytest.mark.asyncio
    async def test_limit_keeps_most_recent_prefix(self):
        events = [gh.watch_event(actor="bob", repo=f"o/r{i}") for i in range(6)]
        client = make_client(events)

        feed = await assemble(client, make_inputs(limit=4))

        assert [record.repo for record in feed.events] == ["o/r0", "o/r1", "o/r2", "o/r3"]

    @pytest.mark.asyncio
    async def test_limit_applies_after_dropping(self):
        client = make_client(
            [
                gh.watch_event(actor="bob", action="stopped"),
                gh.watch_event(actor="bob", repo="o/kept"),
                gh.fork_event(actor="bob", repo="o/also"),
            ]
        )

        feed = await assemble(client, make_inputs(limit=1))

        assert [record.repo for record in feed.events] == ["o/kept"]

    @pytest.mark.asyncio
    async def test_order_is_input_order_when_lookups_finish_out_of_order(self):
        client = make_client(
            [
                gh.pull_request_event(actor="bob", number=1),
                gh.pull_request_event(actor="bob", number=2),
                gh.pull_request_event(actor="bob", number=3),
            ]
        )
        delays = {1: 0.03, 2: 0.0, 3: 0.01}

        async def get_pull_request(owner, repo, number):
            await asyncio.sleep(delays[number])
            return gh.pull_request_resource(number=number, author="bob")

        client.get_pull_request.side_effect = get_pull_request

        feed = await assemble(client)

        assert [record.number for record in feed.events] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_lookups_are_bounded(self):
        client = make_client(
            [gh.pull_request_event(actor="bob", number=n) for n in range(10)]
        )
        in_flight = 0
        peak = 0

        async def get_pull_request(owner, repo, number):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return gh.pull_request_resource(number=number, author="bob")

        client.get_pull_request.side_effect = get_pull_request

        assembler = FeedAssembler(client, max_concurrency=3)
        feed = await assembler.assemble(FeedTarget(login="bob"), make_inputs())

        assert len(feed.events) == 10
        assert peak <= 3

    def test_max_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            FeedAssembler(AsyncMock(spec=GitHubClient), max_concurrency=0)


class TestFetching:
    @pytest.mark.asyncio
    async def test_pages_follow_load(self):
        page = [gh.watch_event(actor="bob")]
        client = make_client(page, page, page)

        feed = await assemble(client, make_inputs(load=200))

        assert client.list_user_events.await_count == 2
        assert len(feed.events) == 2

    @pytest.mark.asyncio
    async def test_pagination_failure_is_not_an_error(self):
        client = make_client([gh.watch_event(actor="bob")])

        feed = await assemble(client, make_inputs(load=500))

        assert len(feed.events) == 1

    @pytest.mark.asyncio
    async def test_days_is_logged_as_not_applied(self, caplog):
        client = make_client([gh.watch_event(actor="bob", created_at="2001-01-01T00:00:00Z")])

        with caplog.at_level(logging.DEBUG, logger="activity_feed.feed"):
            feed = await assemble(client, make_inputs(days=1))

        assert len(feed.events) == 1
        assert "metrics/compute/bob/plugins > activity > days=1 is not applied" in caplog.text

    @pytest.mark.asyncio
    async def test_timestamps_flag_is_passed_through(self):
        client = make_client([])

        feed = await assemble(client, make_inputs(timestamps=True))

        assert feed.timestamps is True
        assert feed.events == []
