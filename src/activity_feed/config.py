"""Persistent CLI settings: GitHub token and standing exclusion lists.

Settings live in ``~/.activity-feed/config.json`` (owner-only permissions).
The exclusion lists are handed to the feed the same way a host generator
hands over its shared ``users.ignored`` and ``repositories.skipped`` lists.
"""

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError
from rich import print

from activity_feed.inputs import SHARED_IGNORED_KEY, SHARED_SKIPPED_KEY


class StoredSettings(BaseModel):
    """On-disk settings document."""

    model_config = {"extra": "allow"}

    github_token: str | None = None
    ignored_users: list[str] = []
    skipped_repositories: list[str] = []

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True, exclude_defaults=True)


def _merge(current: list[str], additions: Iterable[str]) -> list[str]:
    """Append new entries, case-insensitively de-duplicated, keeping order."""
    seen = {item.casefold() for item in current}
    merged = list(current)
    for item in additions:
        item = item.strip()
        if item and item.casefold() not in seen:
            seen.add(item.casefold())
            merged.append(item)
    return merged


class Config:
    """Read and write CLI settings."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config.

        Args:
            config_dir: Directory holding config.json (~/.activity-feed if None)
        """
        self.config_dir = config_dir or Path.home() / ".activity-feed"
        self.config_file = self.config_dir / "config.json"
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.chmod(0o700)

    def load(self) -> StoredSettings:
        """Load settings; a missing or unreadable file yields defaults."""
        if not self.config_file.exists():
            return StoredSettings()
        try:
            with self.config_file.open() as f:
                return StoredSettings.model_validate(json.load(f))
        except (json.JSONDecodeError, OSError, ValidationError):
            return StoredSettings()

    def save(self, settings: StoredSettings) -> None:
        """Write settings, or delete the file when nothing is left to store."""
        if settings.is_empty():
            self.config_file.unlink(missing_ok=True)
            return
        with self.config_file.open("w") as f:
            json.dump(
                settings.model_dump(exclude_none=True, exclude_defaults=True), f, indent=2
            )
        self.config_file.chmod(0o600)

    def get_token(self) -> str | None:
        """Get stored GitHub token.

        Returns:
            GitHub token if stored, None otherwise
        """
        return self.load().github_token or None

    def set_token(self, token: str) -> None:
        settings = self.load()
        settings.github_token = token
        self.save(settings)
        print(f"[green]✓[/green] Token stored in {self.config_file}")

    def remove_token(self) -> None:
        settings = self.load()
        settings.github_token = None
        self.save(settings)

    def add_exclusions(
        self, users: Iterable[str] = (), repositories: Iterable[str] = ()
    ) -> StoredSettings:
        """Add logins to ignore and repositories to skip on every run."""
        settings = self.load()
        settings.ignored_users = _merge(settings.ignored_users, users)
        settings.skipped_repositories = _merge(
            settings.skipped_repositories, repositories
        )
        self.save(settings)
        return settings

    def clear_exclusions(self) -> None:
        settings = self.load()
        settings.ignored_users = []
        settings.skipped_repositories = []
        self.save(settings)

    def get_shared(self) -> dict[str, list[str]]:
        """Exclusion lists keyed the way ``load_inputs`` expects shared settings."""
        settings = self.load()
        return {
            SHARED_IGNORED_KEY: list(settings.ignored_users),
            SHARED_SKIPPED_KEY: list(settings.skipped_repositories),
        }

    def get_config_info(self) -> dict[str, Any]:
        """Get information about current configuration."""
        settings = self.load()
        config_exists = self.config_file.exists()
        return {
            "config_file": str(self.config_file),
            "config_exists": config_exists,
            "has_token": bool(settings.github_token),
            "ignored_users": len(settings.ignored_users),
            "skipped_repositories": len(settings.skipped_repositories),
            "config_file_permissions": oct(self.config_file.stat().st_mode)[-3:]
            if config_exists
            else None,
        }
