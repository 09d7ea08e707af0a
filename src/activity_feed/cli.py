"""Command-line interface for activity-feed."""

import asyncio
import logging
from typing import Any

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm, Prompt
from rich.table import Table

from activity_feed.config import Config
from activity_feed.exceptions import ActivityPluginError
from activity_feed.github_client import GitHubClient
from activity_feed.plugin import run_activity_plugin
from activity_feed.records import (
    ActivityFeed,
    ActivityRecord,
    CommentActivity,
    ForkActivity,
    IssueActivity,
    MemberActivity,
    PullRequestActivity,
    PushActivity,
    RefActivity,
    ReleaseActivity,
    ReviewActivity,
    WikiActivity,
)

app = typer.Typer(
    name="activity-feed",
    help="Show a normalized GitHub activity feed for a user or a repository",
    no_args_is_help=True,
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def describe_record(record: ActivityRecord) -> str:
    """One-line summary of an activity record for the console table."""
    if isinstance(record, CommentActivity):
        target = f"#{record.number}" if record.on != "commit" else str(record.number)
        return f"commented on {record.on} {target}"
    if isinstance(record, RefActivity):
        verb = "created" if record.type == "ref/create" else "deleted"
        return f"{verb} {record.ref.type} {record.ref.name or ''}".rstrip()
    if isinstance(record, ForkActivity):
        return f"forked to {record.forked}"
    if isinstance(record, WikiActivity):
        return f"edited wiki: {', '.join(record.pages)}"
    if isinstance(record, IssueActivity):
        return f"{record.action} issue #{record.number} {record.title}"
    if isinstance(record, MemberActivity):
        return f"added {record.user} as collaborator"
    if isinstance(record, PullRequestActivity):
        return (
            f"{record.action} PR #{record.number} {record.title} "
            f"(+{record.lines.added}/-{record.lines.deleted})"
        )
    if isinstance(record, ReviewActivity):
        return f"reviewed PR #{record.number} ({record.state.lower()})"
    if isinstance(record, PushActivity):
        branch = f" to {record.branch}" if record.branch else ""
        return f"pushed {record.size} commit(s){branch}"
    if isinstance(record, ReleaseActivity):
        return f"released {record.name}"
    if record.type == "public":
        return "made repository public"
    return "starred"


def _display_feed(feed: ActivityFeed) -> None:
    if not feed.events:
        print("[yellow]No activity to show[/yellow]")
        return

    table = Table(title="Recent Activity", show_header=True, header_style="bold magenta")
    if feed.timestamps:
        table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Repository", style="green")
    table.add_column("Activity", style="white")

    for record in feed.events:
        row = [record.type, record.repo, describe_record(record)]
        if feed.timestamps:
            row.insert(0, record.timestamp.strftime("%Y-%m-%d %H:%M"))
        table.add_row(*row)

    console.print(table)


async def _build_feed(
    login: str,
    token: str | None,
    query: dict[str, Any],
    account: str,
    markdown: str,
    shared: dict[str, list[str]] | None = None,
) -> ActivityFeed | None:
    async with GitHubClient(token=token) as client:
        return await run_activity_plugin(
            login,
            query,
            client,
            account=account,
            shared=shared,
            enabled=True,
            markdown=markdown,
        )


@app.command()
def version() -> None:
    """Show the version and exit."""
    from activity_feed import __version__

    print(f"activity-feed {__version__}")


@app.command()
def feed(
    user: str = typer.Argument(..., help="GitHub login whose activity to show"),
    repo: str | None = typer.Option(
        None, "--repo", "-r", help="Show events of this owner/name repository"
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="GitHub Personal Access Token (or set GITHUB_TOKEN env var)",
        envvar="GITHUB_TOKEN",
    ),
    limit: int = typer.Option(5, "--limit", "-l", help="Maximum records to show"),
    load: int = typer.Option(300, "--load", help="Number of events to load"),
    filter_types: str = typer.Option(
        "all", "--filter", "-f", help="Comma-separated record types to keep"
    ),
    visibility: str = typer.Option("all", "--visibility", help="'public' or 'all'"),
    ignored: str | None = typer.Option(
        None, "--ignored", help="Comma-separated logins to ignore"
    ),
    skipped: str | None = typer.Option(
        None, "--skipped", help="Comma-separated repositories to skip"
    ),
    markdown: str = typer.Option(
        "inline", "--markdown", help="Text rendering: 'inline' or 'none'"
    ),
    timestamps: bool = typer.Option(False, "--timestamps", help="Show event times"),
    org: bool = typer.Option(
        False, "--org", help="Treat USER as an organization (keep every actor)"
    ),
    output_json: bool = typer.Option(False, "--json", help="Print the feed as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Show the activity feed of a user or repository."""
    _configure_logging(verbose)

    config = Config()
    if not token:
        token = config.get_token()
        if not token:
            print(
                "[yellow]No GitHub token found, using anonymous access (low rate limit)[/yellow]"
            )

    query: dict[str, Any] = {
        "activity": True,
        "repo": repo,
        "limit": limit,
        "load": load,
        "filter": filter_types,
        "visibility": visibility,
        "ignored": ignored,
        "skipped": skipped,
        "timestamps": timestamps,
    }

    try:
        result = asyncio.run(
            _build_feed(
                user,
                token,
                query,
                "organization" if org else "user",
                markdown,
                config.get_shared(),
            )
        )
    except ActivityPluginError as e:
        print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    except KeyboardInterrupt as e:
        print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130) from e

    if result is None:
        raise typer.Exit(1)

    if output_json:
        console.print_json(result.model_dump_json())
    else:
        _display_feed(result)


@app.command()
def auth() -> None:
    """Store a GitHub token for later runs."""
    config = Config()

    print("[bold cyan]GitHub Authentication Setup[/bold cyan]")
    print("Create a token at: [link]https://github.com/settings/tokens[/link]")

    if config.get_token() and not Confirm.ask(
        "A token is already stored. Replace it?"
    ):
        return

    token = Prompt.ask("[cyan]Enter your GitHub Personal Access Token", password=True)
    if not token:
        print("[red]No token provided[/red]")
        return

    config.set_token(token)


@app.command()
def auth_status() -> None:
    """Show current authentication status."""
    info = Config().get_config_info()

    table = Table(title="Authentication Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Config File", info["config_file"])
    table.add_row("GitHub Token", "✓ Yes" if info["has_token"] else "✗ No")
    table.add_row("Ignored Users", str(info["ignored_users"]))
    table.add_row("Skipped Repositories", str(info["skipped_repositories"]))
    if info["config_exists"]:
        table.add_row("File Permissions", info["config_file_permissions"] or "unknown")
    print(table)

    if not info["has_token"]:
        print(
            "[yellow]No GitHub token found. Run [bold]activity-feed auth[/bold] to store one.[/yellow]"
        )


@app.command()
def auth_remove() -> None:
    """Remove stored authentication token."""
    config = Config()

    if not config.get_token():
        print("[yellow]No token is currently stored[/yellow]")
        return

    if Confirm.ask("[red]Are you sure you want to remove the stored token?[/red]"):
        config.remove_token()
        print("[green]✓[/green] Token removed")
    else:
        print("Token removal cancelled")


@app.command()
def exclude(
    users: list[str] | None = typer.Option(
        None, "--user", "-u", help="Login or wildcard pattern to ignore"
    ),
    repositories: list[str] | None = typer.Option(
        None, "--repo", "-r", help="Repository name or owner/name pattern to skip"
    ),
    clear: bool = typer.Option(False, "--clear", help="Remove all stored exclusions"),
) -> None:
    """Manage logins and repositories excluded from every feed."""
    config = Config()

    if clear:
        config.clear_exclusions()
        print("[green]✓[/green] Exclusions cleared")
        return

    settings = config.add_exclusions(users or (), repositories or ())

    table = Table(title="Stored Exclusions")
    table.add_column("Kind", style="cyan")
    table.add_column("Patterns", style="green")
    table.add_row("Ignored users", ", ".join(settings.ignored_users) or "-")
    table.add_row("Skipped repositories", ", ".join(settings.skipped_repositories) or "-")
    print(table)


if __name__ == "__main__":
    app()
