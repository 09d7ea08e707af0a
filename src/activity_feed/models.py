"""Pydantic models for GitHub API data structures.

Only the fields the classifier reads are declared; everything else GitHub
sends is accepted and ignored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, field_validator


class UserRef(BaseModel):
    """GitHub user reference as embedded in events and resources."""

    model_config = {"extra": "allow"}

    id: int | None = None
    login: str


class Actor(UserRef):
    """GitHub event actor."""

    display_login: str | None = None
    avatar_url: str | None = None


class RepositoryRef(BaseModel):
    """Repository reference as embedded in events (``owner/name``)."""

    model_config = {"extra": "allow"}

    id: int | None = None
    name: str
    url: str | None = None

    @property
    def short_name(self) -> str:
        """Repository name without the owner."""
        return self.name.split("/", 1)[-1]


class RawEvent(BaseModel):
    """Base GitHub event model with common fields."""

    model_config = {"extra": "allow"}

    id: str | None = None
    type: str
    actor: Actor
    repo: RepositoryRef
    payload: Any = None
    created_at: str
    public: bool = False

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: str) -> str:
        """Validate created_at is a valid ISO datetime string."""
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"Invalid datetime format: {v}") from e
        return v

    @property
    def timestamp(self) -> datetime:
        """Event creation time as an aware datetime."""
        return datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))


class _Payload(BaseModel):
    model_config = {"extra": "allow"}


# Commit comments
class CommitComment(_Payload):
    user: UserRef
    commit_id: str
    body: str | None = None


class CommitCommentEventPayload(_Payload):
    """Payload for CommitCommentEvent."""

    action: str | None = None
    comment: CommitComment


class CommitCommentEvent(RawEvent):
    type: Literal["CommitCommentEvent"]
    payload: CommitCommentEventPayload


# Branches and tags
class RefEventPayload(_Payload):
    """Payload for CreateEvent and DeleteEvent."""

    ref: str | None = None
    ref_type: str


class CreateEvent(RawEvent):
    type: Literal["CreateEvent"]
    payload: RefEventPayload


class DeleteEvent(RawEvent):
    type: Literal["DeleteEvent"]
    payload: RefEventPayload


# Forks
class Forkee(_Payload):
    full_name: str


class ForkEventPayload(_Payload):
    """Payload for ForkEvent."""

    forkee: Forkee


class ForkEvent(RawEvent):
    type: Literal["ForkEvent"]
    payload: ForkEventPayload


# Wiki
class WikiPage(_Payload):
    title: str
    action: str | None = None


class GollumEventPayload(_Payload):
    """Payload for GollumEvent (wiki page updates)."""

    pages: list[WikiPage] = []


class GollumEvent(RawEvent):
    type: Literal["GollumEvent"]
    payload: GollumEventPayload


# Issues
class IssueRef(_Payload):
    number: int
    title: str
    user: UserRef
    body: str | None = None


class IssueComment(_Payload):
    user: UserRef
    body: str | None = None
    performed_via_github_app: dict[str, Any] | None = None


class IssueCommentEventPayload(_Payload):
    """Payload for IssueCommentEvent."""

    action: str
    issue: IssueRef
    comment: IssueComment


class IssueCommentEvent(RawEvent):
    type: Literal["IssueCommentEvent"]
    payload: IssueCommentEventPayload


class IssuesEventPayload(_Payload):
    """Payload for IssuesEvent."""

    action: str
    issue: IssueRef


class IssuesEvent(RawEvent):
    type: Literal["IssuesEvent"]
    payload: IssuesEventPayload


# Collaborators
class MemberEventPayload(_Payload):
    """Payload for MemberEvent."""

    action: str
    member: UserRef


class MemberEvent(RawEvent):
    type: Literal["MemberEvent"]
    payload: MemberEventPayload


class PublicEvent(RawEvent):
    """Repository made public; the payload is empty."""

    type: Literal["PublicEvent"]
    payload: dict[str, Any] | None = None


# Pull requests
class PullRequestRef(_Payload):
    number: int
    url: str | None = None


class PullRequestEventPayload(_Payload):
    """Payload for PullRequestEvent."""

    action: str
    number: int | None = None
    pull_request: PullRequestRef


class PullRequestEvent(RawEvent):
    type: Literal["PullRequestEvent"]
    payload: PullRequestEventPayload


class Review(_Payload):
    user: UserRef
    state: str


class PullRequestReviewEventPayload(_Payload):
    """Payload for PullRequestReviewEvent."""

    action: str | None = None
    review: Review
    pull_request: PullRequestRef


class PullRequestReviewEvent(RawEvent):
    type: Literal["PullRequestReviewEvent"]
    payload: PullRequestReviewEventPayload


class ReviewComment(_Payload):
    user: UserRef
    body: str | None = None


class PullRequestReviewCommentEventPayload(_Payload):
    """Payload for PullRequestReviewCommentEvent."""

    action: str
    comment: ReviewComment
    pull_request: PullRequestRef


class PullRequestReviewCommentEvent(RawEvent):
    type: Literal["PullRequestReviewCommentEvent"]
    payload: PullRequestReviewCommentEventPayload


# Pushes
class PushEventPayload(_Payload):
    """Payload for PushEvent.

    Commits are not read from the payload; they are fetched separately.
    """

    ref: str
    head: str
    before: str | None = None
    size: int | None = None


class PushEvent(RawEvent):
    type: Literal["PushEvent"]
    payload: PushEventPayload


# Releases
class Release(_Payload):
    name: str | None = None
    tag_name: str
    prerelease: bool = False
    draft: bool = False
    body: str | None = None


class ReleaseEventPayload(_Payload):
    """Payload for ReleaseEvent."""

    action: str
    release: Release


class ReleaseEvent(RawEvent):
    type: Literal["ReleaseEvent"]
    payload: ReleaseEventPayload


# Stars
class WatchEventPayload(_Payload):
    """Payload for WatchEvent."""

    action: str


class WatchEvent(RawEvent):
    type: Literal["WatchEvent"]
    payload: WatchEventPayload


class UnknownEvent(RawEvent):
    """Fallback for unknown, unsupported or malformed events."""


class EventFactory:
    """Factory for creating typed GitHub events from API responses."""

    _event_types: dict[str, type[RawEvent]] = {
        "CommitCommentEvent": CommitCommentEvent,
        "CreateEvent": CreateEvent,
        "DeleteEvent": DeleteEvent,
        "ForkEvent": ForkEvent,
        "GollumEvent": GollumEvent,
        "IssueCommentEvent": IssueCommentEvent,
        "IssuesEvent": IssuesEvent,
        "MemberEvent": MemberEvent,
        "PublicEvent": PublicEvent,
        "PullRequestEvent": PullRequestEvent,
        "PullRequestReviewEvent": PullRequestReviewEvent,
        "PullRequestReviewCommentEvent": PullRequestReviewCommentEvent,
        "PushEvent": PushEvent,
        "ReleaseEvent": ReleaseEvent,
        "WatchEvent": WatchEvent,
    }

    @classmethod
    def create_event(cls, event_data: dict[str, Any]) -> RawEvent:
        """Create a typed event instance from raw API data.

        Args:
            event_data: Raw event data from GitHub API

        Returns:
            Typed event, or UnknownEvent when the type is not handled or its
            payload does not have the expected shape

        Raises:
            ValidationError: If even the common event fields are invalid
        """
        event_type = event_data.get("type")

        if event_type and event_type in cls._event_types:
            event_class = cls._event_types[event_type]
            try:
                return event_class(**event_data)
            except ValueError:
                # Malformed payload for a known type, keep it as unknown
                pass

        fallback_data = event_data.copy()
        fallback_data.setdefault("payload", {})
        return UnknownEvent(**fallback_data)

    @classmethod
    def get_supported_event_types(cls) -> list[str]:
        """Get list of supported event types."""
        return list(cls._event_types.keys())


# Resources fetched during enrichment
class PullRequestDetails(BaseModel):
    """Pull request resource from ``GET /repos/{owner}/{repo}/pulls/{number}``."""

    model_config = {"extra": "allow"}

    number: int
    title: str
    user: UserRef
    body: str | None = None
    merged: bool = False
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


class CommitAuthor(BaseModel):
    model_config = {"extra": "allow"}

    name: str | None = None
    email: str | None = None
    date: str | None = None


class CommitDetail(BaseModel):
    model_config = {"extra": "allow"}

    message: str
    author: CommitAuthor | None = None


class CommitListing(BaseModel):
    """Commit entry from ``GET /repos/{owner}/{repo}/commits``."""

    model_config = {"extra": "allow"}

    sha: str
    commit: CommitDetail
