"""CLI tests: mock at the feed boundary, test command behavior."""

from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from activity_feed.cli import app, describe_record
from activity_feed.exceptions import ActivityPluginError
from activity_feed.records import (
    ActivityFeed,
    FileStats,
    LineStats,
    PullRequestActivity,
    StarActivity,
)

runner = CliRunner()

WHEN = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)


def star_feed(timestamps=False):
    return ActivityFeed(
        timestamps=timestamps,
        events=[StarActivity(actor="bob", repo="o/r", timestamp=WHEN, action="started")],
    )


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "activity-feed 0.1.0" in result.stdout


def test_auth_status():
    result = runner.invoke(app, ["auth-status"])
    assert result.exit_code == 0
    assert "Authentication Status" in result.stdout
    assert "No GitHub token found" in result.stdout


@patch("activity_feed.cli._build_feed")
def test_feed_passes_options(mock_build):
    mock_build.return_value = star_feed()

    result = runner.invoke(
        app,
        [
            "feed",
            "bob",
            "--token",
            "fake_token",
            "--limit",
            "3",
            "--filter",
            "star,push",
            "--repo",
            "o/r",
            "--markdown",
            "none",
        ],
    )

    assert result.exit_code == 0
    login, token, query, account, markdown, shared = mock_build.call_args[0]
    assert login == "bob"
    assert token == "fake_token"
    assert query["activity"] is True
    assert query["limit"] == 3
    assert query["filter"] == "star,push"
    assert query["repo"] == "o/r"
    assert account == "user"
    assert markdown == "none"
    assert shared == {"users.ignored": [], "repositories.skipped": []}


@patch("activity_feed.cli._build_feed")
def test_feed_org_flag(mock_build):
    mock_build.return_value = star_feed()

    result = runner.invoke(app, ["feed", "octo-org", "--token", "t", "--org"])

    assert result.exit_code == 0
    assert mock_build.call_args[0][3] == "organization"


@patch("activity_feed.cli._build_feed")
def test_feed_table_output(mock_build):
    mock_build.return_value = star_feed(timestamps=True)

    result = runner.invoke(app, ["feed", "bob", "--token", "t"])

    assert result.exit_code == 0
    assert "Recent Activity" in result.stdout
    assert "starred" in result.stdout
    assert "2024-01-15" in result.stdout


@patch("activity_feed.cli._build_feed")
def test_feed_empty(mock_build):
    mock_build.return_value = ActivityFeed()

    result = runner.invoke(app, ["feed", "bob", "--token", "t"])

    assert result.exit_code == 0
    assert "No activity to show" in result.stdout


@patch("activity_feed.cli._build_feed")
def test_feed_json_output(mock_build):
    mock_build.return_value = star_feed()

    result = runner.invoke(app, ["feed", "bob", "--token", "t", "--json"])

    assert result.exit_code == 0
    assert '"type": "star"' in result.stdout
    assert '"timestamps": false' in result.stdout


@patch("activity_feed.cli._build_feed")
def test_feed_error_exits_nonzero(mock_build):
    mock_build.side_effect = ActivityPluginError("bad repo", "ConfigurationError")

    result = runner.invoke(app, ["feed", "bob", "--token", "t"])

    assert result.exit_code == 1
    assert "Error:" in result.stdout
    assert "bad repo" in result.stdout


@patch("activity_feed.cli._build_feed")
def test_feed_without_token_warns(mock_build):
    mock_build.return_value = star_feed()

    result = runner.invoke(app, ["feed", "bob"])

    assert result.exit_code == 0
    assert "anonymous access" in result.stdout
    assert mock_build.call_args[0][1] is None


@patch("activity_feed.cli._build_feed")
def test_stored_exclusions_reach_feed(mock_build):
    mock_build.return_value = star_feed()

    result = runner.invoke(
        app, ["exclude", "--user", "dependabot*", "--user", "troll", "--repo", "dotfiles"]
    )
    assert result.exit_code == 0
    assert "Stored Exclusions" in result.stdout

    result = runner.invoke(app, ["feed", "bob", "--token", "t"])

    assert result.exit_code == 0
    assert mock_build.call_args[0][5] == {
        "users.ignored": ["dependabot*", "troll"],
        "repositories.skipped": ["dotfiles"],
    }


def test_exclude_clear():
    runner.invoke(app, ["exclude", "--user", "troll"])

    result = runner.invoke(app, ["exclude", "--clear"])
    assert result.exit_code == 0
    assert "Exclusions cleared" in result.stdout

    status = runner.invoke(app, ["auth-status"])
    assert "Ignored Users" in status.stdout


def test_describe_pull_request():
    record = PullRequestActivity(
        actor="bob",
        repo="o/r",
        timestamp=WHEN,
        action="merged",
        user="bob",
        number=5,
        title="Add caching",
        content="",
        files=FileStats(changed=3),
        lines=LineStats(added=10, deleted=2),
    )

    assert describe_record(record) == "merged PR #5 Add caching (+10/-2)"
