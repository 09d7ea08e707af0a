"""Normalized activity records produced by the classifier."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

ACTIVITY_TYPES = frozenset(
    {
        "comment",
        "ref/create",
        "ref/delete",
        "fork",
        "wiki",
        "issue",
        "member",
        "public",
        "pr",
        "review",
        "push",
        "release",
        "star",
    }
)


class BaseActivity(BaseModel):
    """Fields shared by every activity record."""

    model_config = {"frozen": True}

    actor: str
    repo: str
    timestamp: datetime


class CommentActivity(BaseActivity):
    """Comment on a commit, an issue or a pull request."""

    type: Literal["comment"] = "comment"
    on: Literal["commit", "issue", "pr"]
    content: str
    user: str
    mobile: bool | None = None
    number: int | str
    title: str | None = None


class RefInfo(BaseModel):
    model_config = {"frozen": True}

    name: str | None = None
    type: str


class RefActivity(BaseActivity):
    """Branch or tag created or deleted."""

    type: Literal["ref/create", "ref/delete"]
    ref: RefInfo


class ForkActivity(BaseActivity):
    type: Literal["fork"] = "fork"
    forked: str


class WikiActivity(BaseActivity):
    type: Literal["wiki"] = "wiki"
    pages: tuple[str, ...] = ()


class IssueActivity(BaseActivity):
    type: Literal["issue"] = "issue"
    action: str
    user: str
    number: int
    title: str
    content: str


class MemberActivity(BaseActivity):
    type: Literal["member"] = "member"
    user: str


class PublicActivity(BaseActivity):
    type: Literal["public"] = "public"


class FileStats(BaseModel):
    model_config = {"frozen": True}

    changed: int


class LineStats(BaseModel):
    model_config = {"frozen": True}

    added: int
    deleted: int


class PullRequestActivity(BaseActivity):
    """Pull request opened, closed or merged."""

    type: Literal["pr"] = "pr"
    action: str
    user: str
    number: int
    title: str
    content: str
    files: FileStats
    lines: LineStats


class ReviewActivity(BaseActivity):
    type: Literal["review"] = "review"
    state: str
    user: str
    number: int
    title: str | None = None


class PushCommit(BaseModel):
    model_config = {"frozen": True}

    sha: str
    message: str


class PushActivity(BaseActivity):
    """Commits pushed to a branch, oldest first."""

    type: Literal["push"] = "push"
    branch: str | None = None
    size: int
    commits: tuple[PushCommit, ...]


class ReleaseActivity(BaseActivity):
    type: Literal["release"] = "release"
    action: str
    name: str
    prerelease: bool
    draft: bool
    content: str


class StarActivity(BaseActivity):
    type: Literal["star"] = "star"
    action: str


ActivityRecord = Annotated[
    CommentActivity
    | RefActivity
    | ForkActivity
    | WikiActivity
    | IssueActivity
    | MemberActivity
    | PublicActivity
    | PullRequestActivity
    | ReviewActivity
    | PushActivity
    | ReleaseActivity
    | StarActivity,
    Field(discriminator="type"),
]


class ActivityFeed(BaseModel):
    """Display-ready activity feed handed to the templating layer."""

    timestamps: bool = False
    events: list[ActivityRecord] = []
