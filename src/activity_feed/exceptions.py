"""Exception hierarchy for activity-feed."""

from __future__ import annotations

from typing import Any


class ActivityFeedError(Exception):
    """Base exception for activity feed errors."""


class ConfigurationError(ActivityFeedError):
    """Raised when plugin inputs are invalid."""


class ActivityPluginError(ActivityFeedError):
    """Standardized error raised at the plugin boundary.

    Wraps whatever went wrong while building the feed so the host generator
    can report it without knowing about transport or rendering internals.
    """

    def __init__(self, message: str, instance: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.instance = instance

    @classmethod
    def from_exception(cls, error: BaseException) -> ActivityPluginError:
        """Build a plugin error from an arbitrary exception."""
        if isinstance(error, ActivityPluginError):
            return error
        return cls(str(error) or type(error).__name__, type(error).__name__)

    def to_dict(self) -> dict[str, Any]:
        """Return the error shape consumed by templates."""
        return {"error": {"message": self.message, "instance": self.instance}}
