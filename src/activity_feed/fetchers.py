"""Event fetchers for GitHub API data collection."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from activity_feed.github_client import GitHubClient, RateLimitError
from activity_feed.models import EventFactory, RawEvent

logger = logging.getLogger(__name__)

PER_PAGE = 100


@dataclass(frozen=True)
class FeedTarget:
    """Whose activity to load: a user, or a single repository."""

    login: str
    owner: str | None = None
    repo: str | None = None

    @property
    def mode(self) -> str:
        return "repository" if self.owner and self.repo else "user"


class EventFetcher:
    """Fetch raw events for a user (paginated) or a repository (single page)."""

    def __init__(self, client: GitHubClient) -> None:
        """Initialize the fetcher with a GitHub client.

        Args:
            client: GitHub API client for making requests
        """
        self.client = client

    async def _fetch_page(
        self, target: FeedTarget, page: int
    ) -> list[dict[str, Any]] | None:
        """Fetch one page of raw events.

        Returns:
            The raw events, or None when there is nothing more to load.
            GitHub reports pages past the end of the events window as request
            errors, so any transport failure here means end of data.
        """
        try:
            if target.owner and target.repo:
                data = await self.client.list_repo_events(
                    target.owner, target.repo, per_page=PER_PAGE
                )
            else:
                data = await self.client.list_user_events(
                    target.login, page=page, per_page=PER_PAGE
                )
        except (httpx.HTTPError, RateLimitError) as e:
            logger.debug(f"No more pages to load after page {page - 1}: {e}")
            return None

        return data or None

    async def fetch(self, target: FeedTarget, pages: int) -> list[RawEvent]:
        """Fetch up to ``pages`` pages of events, newest first.

        In repository mode a single request is made whatever ``pages`` is.

        Args:
            target: User or repository to load events for
            pages: Maximum number of 100-event pages

        Returns:
            Typed events in API order; unknown types come back as UnknownEvent
        """
        last_page = 1 if target.mode == "repository" else pages
        events: list[RawEvent] = []

        for page in range(1, last_page + 1):
            logger.debug(f"Loading page {page}/{last_page} for {target.login}")
            data = await self._fetch_page(target, page)
            if data is None:
                break

            for event_data in data:
                try:
                    events.append(EventFactory.create_event(event_data))
                except ValidationError as e:
                    logger.warning(
                        f"Failed to parse event {event_data.get('id', 'unknown')}: {e}"
                    )

        logger.info(f"Fetched {len(events)} events for {target.login} ({target.mode})")
        return events
