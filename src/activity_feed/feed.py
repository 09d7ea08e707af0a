"""Assemble the activity feed: fetch, filter, classify, limit."""

import asyncio
import logging
from collections.abc import Sequence

from activity_feed.classifier import ClassificationContext, EventClassifier
from activity_feed.enrichment import EventEnricher
from activity_feed.fetchers import EventFetcher, FeedTarget
from activity_feed.github_client import GitHubClient
from activity_feed.inputs import ActivityInputs
from activity_feed.markdown import ContentRenderer
from activity_feed.models import RawEvent
from activity_feed.records import ActivityFeed, ActivityRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


def log_prefix(login: str) -> str:
    return f"metrics/compute/{login}/plugins > activity"


def filter_by_actor(
    events: Sequence[RawEvent], login: str, account: str = "user"
) -> list[RawEvent]:
    """Keep events performed by ``login``; organizations keep every event."""
    if account == "organization":
        return list(events)
    subject = login.casefold()
    return [event for event in events if event.actor.login.casefold() == subject]


def filter_by_visibility(events: Sequence[RawEvent], visibility: str) -> list[RawEvent]:
    """Keep only public events when visibility is "public"."""
    if visibility == "public":
        return [event for event in events if event.public]
    return list(events)


class FeedAssembler:
    """Build an activity feed for a user or a repository.

    Classification runs concurrently, bounded by ``max_concurrency`` so that
    pull request and push lookups do not burst past the API rate limits.
    Results keep the API order (newest first) whatever order the lookups
    complete in. Any enrichment or rendering failure fails the whole feed.
    """

    def __init__(
        self,
        client: GitHubClient,
        renderer: ContentRenderer | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        fetcher: EventFetcher | None = None,
        classifier: EventClassifier | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.max_concurrency = max_concurrency
        self.fetcher = fetcher or EventFetcher(client)
        self.classifier = classifier or EventClassifier(
            EventEnricher(client), renderer=renderer
        )

    async def classify_all(
        self, events: Sequence[RawEvent], context: ClassificationContext
    ) -> list[ActivityRecord | None]:
        """Classify events concurrently, returning results in input order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def classify_one(event: RawEvent) -> ActivityRecord | None:
            async with semaphore:
                return await self.classifier.classify(event, context)

        tasks = [asyncio.ensure_future(classify_one(event)) for event in events]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def assemble(
        self,
        target: FeedTarget,
        inputs: ActivityInputs,
        account: str = "user",
    ) -> ActivityFeed:
        """Build the feed.

        Args:
            target: User or repository whose events are loaded
            inputs: Validated plugin inputs
            account: "user" keeps only events performed by ``target.login``,
                "organization" keeps every actor

        Returns:
            Feed of at most ``inputs.limit`` records, newest first

        Raises:
            httpx.HTTPError: If a pull request or commit lookup fails
            RateLimitError: If the rate limit runs out during a lookup
        """
        prefix = log_prefix(target.login)
        if target.mode == "repository":
            logger.debug(f"{prefix} > switched to repository mode")

        logger.debug(f"{prefix} > querying api")
        events = await self.fetcher.fetch(target, inputs.pages)
        logger.debug(f"{prefix} > {len(events)} events loaded")

        filtered = filter_by_actor(events, target.login, account)
        logger.debug(f"{prefix} > events (actor): {len(filtered)}")
        logger.debug(f"{prefix} > days={inputs.days} is not applied")
        filtered = filter_by_visibility(filtered, inputs.visibility)
        logger.debug(f"{prefix} > events (vis): {len(filtered)}")

        context = ClassificationContext.from_inputs(inputs)
        results = await self.classify_all(filtered, context)

        records = [record for record in results if record is not None]
        records = [record for record in records if inputs.allows(record.type)]
        logger.debug(f"{prefix} > after filter type: {len(records)} events")
        records = records[: inputs.limit]
        logger.debug(f"{prefix} > final count after limit: {len(records)} events")

        return ActivityFeed(timestamps=inputs.timestamps, events=records)
