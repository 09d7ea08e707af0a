"""Secondary fetches for events whose payload lacks display data."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from activity_feed.github_client import GitHubClient
from activity_feed.models import (
    CommitListing,
    PullRequestDetails,
    PullRequestEvent,
    PushEvent,
)

logger = logging.getLogger(__name__)

COMMIT_LOOKBACK = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class EventEnricher:
    """Fetch pull request details and pushed commits for single events.

    Requests are addressed to ``{actor}/{repository name}``, i.e. the event
    actor is used as the repository owner. Errors are not handled here: a
    failed lookup fails the classification of that event.
    """

    def __init__(
        self,
        client: GitHubClient,
        lookback: timedelta = COMMIT_LOOKBACK,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the enricher.

        Args:
            client: GitHub API client for making requests
            lookback: How far back pushed commits are listed
            clock: Returns the current time, replaceable in tests
        """
        self.client = client
        self.lookback = lookback
        self.clock = clock

    async def fetch_pull_request(self, event: PullRequestEvent) -> PullRequestDetails:
        """Fetch the full pull request referenced by a PullRequestEvent."""
        number = event.payload.pull_request.number
        logger.debug(f"Fetching pull request {event.repo.name}#{number}")
        data = await self.client.get_pull_request(
            event.actor.login, event.repo.short_name, number
        )
        return PullRequestDetails(**data)

    async def fetch_push_commits(self, event: PushEvent) -> list[CommitListing]:
        """List recent commits on the pushed head, newest first."""
        since = self.clock() - self.lookback
        logger.debug(
            f"Fetching commits of {event.repo.name}@{event.payload.head} since {since.isoformat()}"
        )
        data = await self.client.list_commits(
            event.actor.login,
            event.repo.short_name,
            sha=event.payload.head,
            since=since,
        )
        return [CommitListing(**item) for item in data]
