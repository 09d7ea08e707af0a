"""Classify raw GitHub events into normalized activity records.

Each handled event type has exactly one handler. Events of any other type,
or whose payload did not validate, are dropped by the fallback handler.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from activity_feed.enrichment import EventEnricher
from activity_feed.filters import matches_repo, matches_text
from activity_feed.markdown import ContentRenderer, MarkdownMode, MarkdownRenderer
from activity_feed.models import (
    CommitCommentEvent,
    CreateEvent,
    DeleteEvent,
    ForkEvent,
    GollumEvent,
    IssueCommentEvent,
    IssuesEvent,
    MemberEvent,
    PublicEvent,
    PullRequestEvent,
    PullRequestReviewCommentEvent,
    PullRequestReviewEvent,
    PushEvent,
    RawEvent,
    ReleaseEvent,
    WatchEvent,
)
from activity_feed.records import (
    ActivityRecord,
    CommentActivity,
    FileStats,
    ForkActivity,
    IssueActivity,
    LineStats,
    MemberActivity,
    PublicActivity,
    PullRequestActivity,
    PushActivity,
    PushCommit,
    RefActivity,
    RefInfo,
    ReleaseActivity,
    ReviewActivity,
    StarActivity,
    WikiActivity,
)

if TYPE_CHECKING:
    from activity_feed.inputs import ActivityInputs

logger = logging.getLogger(__name__)

SHORT_SHA_LENGTH = 7
MERGE_COMMIT_PREFIX = "Merge branch "
_BRANCH_REF = re.compile(r"refs.heads.(?P<branch>.*)")

COMMENT_ACTIONS = frozenset({"created"})
ISSUE_ACTIONS = frozenset({"opened", "closed", "reopened"})
MEMBER_ACTIONS = frozenset({"added"})
PULL_REQUEST_ACTIONS = frozenset({"opened", "closed"})
RELEASE_ACTIONS = frozenset({"published"})
WATCH_ACTIONS = frozenset({"started"})

Handler = Callable[[Any, "ClassificationContext"], Awaitable[ActivityRecord | None]]


@dataclass(frozen=True)
class ClassificationContext:
    """Read-only parameters shared by every classification call."""

    ignored: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    markdown: str = MarkdownMode.INLINE.value
    codelines: int = 2

    @classmethod
    def from_inputs(cls, inputs: ActivityInputs) -> ClassificationContext:
        return cls(
            ignored=tuple(inputs.ignored),
            skipped=tuple(inputs.skipped),
            markdown=inputs.markdown,
            codelines=inputs.codelines,
        )

    def is_ignored(self, login: str | None) -> bool:
        return matches_text(login, self.ignored)

    def is_skipped(self, repo: str) -> bool:
        return matches_repo(repo, self.skipped)


def parse_branch(ref: str) -> str | None:
    """Extract the branch name from a ``refs/heads/<name>`` ref."""
    matched = _BRANCH_REF.search(ref)
    return matched.group("branch") if matched else None


def _common(event: RawEvent) -> dict[str, Any]:
    return {
        "actor": event.actor.login,
        "repo": event.repo.name,
        "timestamp": event.timestamp,
    }


class EventClassifier:
    """Map raw events to activity records, fetching extra data when needed."""

    def __init__(
        self,
        enricher: EventEnricher,
        renderer: ContentRenderer | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            enricher: Performs pull request and commit lookups
            renderer: Renders text bodies (MarkdownRenderer if None)
        """
        self.enricher = enricher
        self.renderer = renderer or MarkdownRenderer()
        self._handlers: dict[type[RawEvent], Handler] = {
            CommitCommentEvent: self._commit_comment,
            CreateEvent: self._create,
            DeleteEvent: self._delete,
            ForkEvent: self._fork,
            GollumEvent: self._gollum,
            IssueCommentEvent: self._issue_comment,
            IssuesEvent: self._issues,
            MemberEvent: self._member,
            PublicEvent: self._public,
            PullRequestEvent: self._pull_request,
            PullRequestReviewEvent: self._pull_request_review,
            PullRequestReviewCommentEvent: self._pull_request_review_comment,
            PushEvent: self._push,
            ReleaseEvent: self._release,
            WatchEvent: self._watch,
        }

    async def classify(
        self, event: RawEvent, context: ClassificationContext
    ) -> ActivityRecord | None:
        """Classify a single event.

        Args:
            event: Typed raw event (see EventFactory)
            context: Exclusion lists and rendering options

        Returns:
            The activity record, or None when the event is dropped

        Raises:
            httpx.HTTPError: If an enrichment fetch fails
            ValueError: If the text body cannot be rendered
        """
        if context.is_skipped(event.repo.name):
            return None
        handler = self._handlers.get(type(event), self._drop)
        return await handler(event, context)

    def _render(self, text: str | None, context: ClassificationContext) -> str:
        return self.renderer.render(
            text, mode=context.markdown, codelines=context.codelines
        )

    async def _drop(self, event: RawEvent, _context: ClassificationContext) -> None:
        logger.debug(f"Dropping unhandled event {event.type} ({event.id})")
        return None

    async def _commit_comment(
        self, event: CommitCommentEvent, context: ClassificationContext
    ) -> CommentActivity | None:
        payload = event.payload
        if payload.action not in COMMENT_ACTIONS:
            return None
        user = payload.comment.user.login
        if context.is_ignored(user):
            return None
        return CommentActivity(
            **_common(event),
            on="commit",
            content=self._render(payload.comment.body, context),
            user=user,
            mobile=None,
            number=payload.comment.commit_id[:SHORT_SHA_LENGTH],
            title="",
        )

    async def _create(
        self, event: CreateEvent, _context: ClassificationContext
    ) -> RefActivity:
        ref = RefInfo(name=event.payload.ref, type=event.payload.ref_type)
        return RefActivity(**_common(event), type="ref/create", ref=ref)

    async def _delete(
        self, event: DeleteEvent, _context: ClassificationContext
    ) -> RefActivity:
        ref = RefInfo(name=event.payload.ref, type=event.payload.ref_type)
        return RefActivity(**_common(event), type="ref/delete", ref=ref)

    async def _fork(self, event: ForkEvent, _context: ClassificationContext) -> ForkActivity:
        return ForkActivity(**_common(event), forked=event.payload.forkee.full_name)

    async def _gollum(
        self, event: GollumEvent, _context: ClassificationContext
    ) -> WikiActivity:
        pages = tuple(page.title for page in event.payload.pages)
        return WikiActivity(**_common(event), pages=pages)

    async def _issue_comment(
        self, event: IssueCommentEvent, context: ClassificationContext
    ) -> CommentActivity | None:
        payload = event.payload
        if payload.action not in COMMENT_ACTIONS:
            return None
        user = payload.comment.user.login
        if context.is_ignored(user):
            return None
        return CommentActivity(
            **_common(event),
            on="issue",
            content=self._render(payload.comment.body, context),
            user=user,
            mobile=payload.comment.performed_via_github_app is not None,
            number=payload.issue.number,
            title=payload.issue.title,
        )

    async def _issues(
        self, event: IssuesEvent, context: ClassificationContext
    ) -> IssueActivity | None:
        payload = event.payload
        if payload.action not in ISSUE_ACTIONS:
            return None
        issue = payload.issue
        if context.is_ignored(issue.user.login):
            return None
        return IssueActivity(
            **_common(event),
            action=payload.action,
            user=issue.user.login,
            number=issue.number,
            title=issue.title,
            content=self._render(issue.body, context),
        )

    async def _member(
        self, event: MemberEvent, context: ClassificationContext
    ) -> MemberActivity | None:
        payload = event.payload
        if payload.action not in MEMBER_ACTIONS:
            return None
        if context.is_ignored(payload.member.login):
            return None
        return MemberActivity(**_common(event), user=payload.member.login)

    async def _public(
        self, event: PublicEvent, _context: ClassificationContext
    ) -> PublicActivity:
        return PublicActivity(**_common(event))

    async def _pull_request(
        self, event: PullRequestEvent, context: ClassificationContext
    ) -> PullRequestActivity | None:
        action = event.payload.action
        if action not in PULL_REQUEST_ACTIONS:
            return None

        # The author is only known once the full pull request is fetched
        details = await self.enricher.fetch_pull_request(event)
        if context.is_ignored(details.user.login):
            return None

        return PullRequestActivity(
            **_common(event),
            action="merged" if action == "closed" and details.merged else action,
            user=details.user.login,
            number=event.payload.pull_request.number,
            title=details.title,
            content=self._render(details.body, context),
            files=FileStats(changed=details.changed_files),
            lines=LineStats(added=details.additions, deleted=details.deletions),
        )

    async def _pull_request_review(
        self, event: PullRequestReviewEvent, context: ClassificationContext
    ) -> ReviewActivity | None:
        review = event.payload.review
        if context.is_ignored(review.user.login):
            return None
        return ReviewActivity(
            **_common(event),
            state=review.state,
            user=review.user.login,
            number=event.payload.pull_request.number,
            title=None,
        )

    async def _pull_request_review_comment(
        self, event: PullRequestReviewCommentEvent, context: ClassificationContext
    ) -> CommentActivity | None:
        payload = event.payload
        if payload.action not in COMMENT_ACTIONS:
            return None
        user = payload.comment.user.login
        if context.is_ignored(user):
            return None
        return CommentActivity(
            **_common(event),
            on="pr",
            content=self._render(payload.comment.body, context),
            user=user,
            mobile=None,
            number=payload.pull_request.number,
            title=None,
        )

    async def _push(
        self, event: PushEvent, context: ClassificationContext
    ) -> PushActivity | None:
        listings = await self.enricher.fetch_push_commits(event)

        commits = []
        for listing in listings:
            author = listing.commit.author
            if author is not None and context.is_ignored(author.email):
                continue
            if listing.commit.message.startswith(MERGE_COMMIT_PREFIX):
                continue
            commits.append(
                PushCommit(
                    sha=listing.sha[:SHORT_SHA_LENGTH], message=listing.commit.message
                )
            )
        if not commits:
            return None

        # Commits are listed newest first
        commits.reverse()
        return PushActivity(
            **_common(event),
            branch=parse_branch(event.payload.ref),
            size=len(commits),
            commits=tuple(commits),
        )

    async def _release(
        self, event: ReleaseEvent, context: ClassificationContext
    ) -> ReleaseActivity | None:
        payload = event.payload
        if payload.action not in RELEASE_ACTIONS:
            return None
        release = payload.release
        return ReleaseActivity(
            **_common(event),
            action=payload.action,
            name=release.name or release.tag_name,
            prerelease=release.prerelease,
            draft=release.draft,
            content=self._render(release.body, context),
        )

    async def _watch(
        self, event: WatchEvent, _context: ClassificationContext
    ) -> StarActivity | None:
        if event.payload.action not in WATCH_ACTIONS:
            return None
        return StarActivity(**_common(event), action=event.payload.action)
