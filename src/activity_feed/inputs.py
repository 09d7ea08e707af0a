"""Plugin inputs for the activity feed.

Inputs arrive from the host generator as a flat query mapping, either with
plugin-prefixed keys (``activity.limit``) or bare keys (``limit``). Lists may
be given as real lists or comma-separated strings.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ValidationError, field_validator

from activity_feed.exceptions import ConfigurationError
from activity_feed.markdown import MarkdownMode
from activity_feed.records import ACTIVITY_TYPES

PLUGIN_PREFIX = "activity."
PAGE_SIZE = 100
ACCOUNT_TYPES = ("user", "organization")

SHARED_IGNORED_KEY = "users.ignored"
SHARED_SKIPPED_KEY = "repositories.skipped"


def _split_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ActivityInputs(BaseModel):
    """Validated inputs controlling fetching, filtering and rendering."""

    model_config = {"frozen": True}

    limit: int = 5
    load: int = 300
    days: int = 14  # accepted but not applied, events are not filtered by age
    filter: tuple[str, ...] = ("all",)
    visibility: Literal["public", "all"] = "all"
    timestamps: bool = False
    ignored: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    markdown: str = MarkdownMode.INLINE.value
    codelines: int = 2

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("limit must be at least 1")
        if v > 100:
            raise ValueError("limit cannot exceed 100")
        return v

    @field_validator("load")
    @classmethod
    def validate_load(cls, v: int) -> int:
        """Validate load within what the events API can serve."""
        if v < 1:
            raise ValueError("load must be at least 1")
        if v > 1000:
            raise ValueError("load cannot exceed 1000")
        return v

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: int) -> int:
        if v < 0:
            raise ValueError("days cannot be negative")
        if v > 365:
            raise ValueError("days cannot exceed 365")
        return v

    @field_validator("codelines")
    @classmethod
    def validate_codelines(cls, v: int) -> int:
        if v < 0:
            raise ValueError("codelines cannot be negative")
        return v

    @field_validator("filter", mode="before")
    @classmethod
    def validate_filter(cls, v: Any) -> Any:
        """Normalize the type allow-list and reject unknown record types."""
        values = [str(item).strip().lower() for item in _split_list(v)]
        if not values:
            return ("all",)
        unknown = sorted(set(values) - ACTIVITY_TYPES - {"all"})
        if unknown:
            raise ValueError(f"Unknown activity types in filter: {', '.join(unknown)}")
        return tuple(values)

    @field_validator("ignored", "skipped", mode="before")
    @classmethod
    def validate_exclusions(cls, v: Any) -> Any:
        return tuple(_split_list(v))

    @field_validator("visibility", mode="before")
    @classmethod
    def validate_visibility(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("markdown")
    @classmethod
    def validate_markdown(cls, v: str) -> str:
        try:
            return MarkdownMode(v).value
        except ValueError as e:
            raise ValueError(f"Unsupported markdown mode: {v}") from e

    @property
    def pages(self) -> int:
        """Number of 100-event pages needed to load ``load`` events."""
        return math.ceil(self.load / PAGE_SIZE)

    def allows(self, activity_type: str) -> bool:
        """Check whether a record type passes the type allow-list."""
        return "all" in self.filter or activity_type in self.filter


def load_inputs(
    account: str,
    query: Mapping[str, Any],
    shared: Mapping[str, Any] | None = None,
    **options: Any,
) -> ActivityInputs:
    """Build plugin inputs from a host query.

    Args:
        account: "user" or "organization"
        query: Host query values, prefixed or not
        shared: Host-wide settings; ``users.ignored`` and
            ``repositories.skipped`` are appended to the plugin lists
        **options: Plugin options such as ``markdown`` or ``codelines``

    Returns:
        Validated inputs

    Raises:
        ConfigurationError: If the account type or any input is invalid
    """
    if account not in ACCOUNT_TYPES:
        raise ConfigurationError(
            f"Invalid account type: {account}. Must be 'user' or 'organization'"
        )

    values: dict[str, Any] = {}
    for field in ActivityInputs.model_fields:
        for key in (f"{PLUGIN_PREFIX}{field}", field):
            if key in query and query[key] is not None:
                values[field] = query[key]
                break
    values.update({k: v for k, v in options.items() if v is not None})

    shared = shared or {}
    values["ignored"] = [
        *_split_list(values.get("ignored")),
        *_split_list(shared.get(SHARED_IGNORED_KEY)),
    ]
    values["skipped"] = [
        *_split_list(values.get("skipped")),
        *_split_list(shared.get(SHARED_SKIPPED_KEY)),
    ]

    try:
        return ActivityInputs(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid activity inputs: {e}") from e
