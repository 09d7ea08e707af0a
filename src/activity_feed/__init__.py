"""Activity Feed - normalized GitHub activity for profile metrics cards.

Library API:

    from activity_feed import GitHubClient, run_activity_plugin

    async with GitHubClient(token="ghp_...") as client:
        feed = await run_activity_plugin(
            "octocat", {"activity": True, "limit": 10}, client, enabled=True
        )

    for record in feed.events:
        print(record.type, record.repo)
"""

__version__ = "0.1.0"

from activity_feed.classifier import ClassificationContext, EventClassifier
from activity_feed.enrichment import EventEnricher
from activity_feed.exceptions import (
    ActivityFeedError,
    ActivityPluginError,
    ConfigurationError,
)
from activity_feed.feed import FeedAssembler, filter_by_actor, filter_by_visibility
from activity_feed.fetchers import EventFetcher, FeedTarget
from activity_feed.filters import matches_repo, matches_text
from activity_feed.github_client import GitHubClient, RateLimitError
from activity_feed.inputs import ActivityInputs, load_inputs
from activity_feed.markdown import MarkdownMode, MarkdownRenderer
from activity_feed.models import EventFactory, RawEvent
from activity_feed.plugin import run_activity_plugin
from activity_feed.records import ACTIVITY_TYPES, ActivityFeed, ActivityRecord

__all__ = [
    # Entry points
    "run_activity_plugin",
    "FeedAssembler",
    "FeedTarget",
    # Building blocks
    "EventFetcher",
    "EventClassifier",
    "EventEnricher",
    "ClassificationContext",
    "EventFactory",
    "GitHubClient",
    "MarkdownRenderer",
    "MarkdownMode",
    "filter_by_actor",
    "filter_by_visibility",
    "matches_text",
    "matches_repo",
    # Data
    "ActivityInputs",
    "load_inputs",
    "ActivityFeed",
    "ActivityRecord",
    "ACTIVITY_TYPES",
    "RawEvent",
    # Exceptions
    "ActivityFeedError",
    "ActivityPluginError",
    "ConfigurationError",
    "RateLimitError",
    # Metadata
    "__version__",
]
