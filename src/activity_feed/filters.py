"""Exclusion-list predicates for users and repositories."""

from collections.abc import Iterable
from fnmatch import fnmatchcase


def _normalize(value: str) -> str:
    return value.strip().casefold()


def matches_text(value: str | None, patterns: Iterable[str]) -> bool:
    """Check whether a login (or email) matches any exclusion pattern.

    Comparison is case-insensitive. Patterns may use shell-style wildcards,
    e.g. ``*[bot]`` or ``*@users.noreply.github.com``.

    Args:
        value: Login or email to test
        patterns: Exclusion list

    Returns:
        True if the value is excluded
    """
    if not value:
        return False
    candidate = _normalize(value)
    for pattern in patterns:
        if not pattern:
            continue
        if fnmatchcase(candidate, _normalize(pattern)):
            return True
    return False


def matches_repo(name: str | None, patterns: Iterable[str]) -> bool:
    """Check whether a repository matches any skip pattern.

    A pattern containing ``/`` is compared against the full ``owner/name``;
    a bare pattern is compared against the repository name only.

    Args:
        name: Repository full name (``owner/name``)
        patterns: Skip list

    Returns:
        True if the repository is skipped
    """
    if not name:
        return False
    full_name = _normalize(name)
    short_name = full_name.split("/", 1)[-1]
    for pattern in patterns:
        if not pattern:
            continue
        pattern = _normalize(pattern)
        target = full_name if "/" in pattern else short_name
        if fnmatchcase(target, pattern):
            return True
    return False
