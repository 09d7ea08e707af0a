"""Plugin entry point used by the host metrics generator."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from activity_feed.exceptions import ActivityPluginError, ConfigurationError
from activity_feed.feed import DEFAULT_MAX_CONCURRENCY, FeedAssembler, log_prefix
from activity_feed.fetchers import FeedTarget
from activity_feed.github_client import GitHubClient
from activity_feed.inputs import load_inputs
from activity_feed.markdown import ContentRenderer, MarkdownMode
from activity_feed.records import ActivityFeed

logger = logging.getLogger(__name__)


def resolve_target(
    login: str,
    query: Mapping[str, Any],
    repository: tuple[str, str] | None = None,
) -> FeedTarget:
    """Pick user or repository mode.

    Repository mode is requested with a truthy ``repo`` query value. The
    repository is ``repository`` if given, else the ``owner/name`` query value.

    Raises:
        ConfigurationError: If repository mode is requested without a
            resolvable ``owner/name``
    """
    requested = query.get("repo")
    if not requested and repository is None:
        return FeedTarget(login=login)

    if repository is None:
        owner, _, name = str(requested).partition("/")
        if not owner or not name:
            raise ConfigurationError(
                f"Repository mode needs an 'owner/name' repository, got {requested!r}"
            )
        repository = (owner, name)

    owner, name = repository
    return FeedTarget(login=login, owner=owner, repo=name)


async def run_activity_plugin(
    login: str,
    query: Mapping[str, Any],
    client: GitHubClient,
    *,
    account: str = "user",
    shared: Mapping[str, Any] | None = None,
    repository: tuple[str, str] | None = None,
    enabled: bool = False,
    markdown: str = MarkdownMode.INLINE.value,
    renderer: ContentRenderer | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> ActivityFeed | None:
    """Compute the activity section of a metrics card.

    Args:
        login: Account the card is generated for
        query: Host query; the plugin runs only if ``activity`` is truthy
        client: GitHub API client
        account: "user" or "organization"
        shared: Host-wide settings (shared ignore/skip lists)
        repository: ``(owner, name)`` for repository mode
        enabled: Whether the host enabled this plugin
        markdown: Rendering mode for text bodies
        renderer: Custom content renderer
        max_concurrency: Maximum simultaneous classification lookups

    Returns:
        The feed, or None if the plugin is disabled or not requested

    Raises:
        ActivityPluginError: If anything fails while building the feed
    """
    if not query.get("activity") or not enabled:
        return None

    try:
        target = resolve_target(login, query, repository)
        inputs = load_inputs(account, query, shared, markdown=markdown)
        assembler = FeedAssembler(
            client, renderer=renderer, max_concurrency=max_concurrency
        )
        return await assembler.assemble(target, inputs, account=account)
    except Exception as error:
        logger.error(f"{log_prefix(login)} > failed: {error}")
        raise ActivityPluginError.from_exception(error) from error
