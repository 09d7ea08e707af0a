"""GitHub API client for the endpoints the activity feed reads."""

import asyncio
import logging
import random
from datetime import UTC, datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"


class RateLimitError(Exception):
    """Raised when GitHub API rate limit is exceeded."""

    def __init__(self, message: str, remaining: int, reset_time: datetime) -> None:
        super().__init__(message)
        self.remaining = remaining
        self.reset_time = reset_time


class GitHubClient:
    """Async client for the GitHub REST API.

    Every method returns the decoded JSON body. Failures are raised as
    ``httpx.HTTPError`` subclasses or ``RateLimitError``.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = 3,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub Personal Access Token (anonymous access if None)
            base_url: GitHub API base URL
            http_client: Preconfigured httpx client (created lazily if None)
            max_retries: Retries for network, 5xx and 429 failures
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

        # Rate limiting tracking
        self.rate_limit_remaining: int | None = None
        self.rate_limit_limit: int | None = None
        self.rate_limit_reset: datetime | None = None

        self._http_client = http_client
        self._owns_http_client = http_client is None

    def _update_rate_limit_info(self, response: httpx.Response) -> None:
        """Update rate limit information from GitHub API response headers."""
        if "x-ratelimit-remaining" in response.headers:
            self.rate_limit_remaining = int(response.headers["x-ratelimit-remaining"])
        if "x-ratelimit-limit" in response.headers:
            self.rate_limit_limit = int(response.headers["x-ratelimit-limit"])
        if "x-ratelimit-reset" in response.headers:
            reset_timestamp = int(response.headers["x-ratelimit-reset"])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp, tz=UTC)

    async def _check_rate_limit(self) -> None:
        """Check rate limit and apply backoff if necessary."""
        if self.rate_limit_remaining is not None and self.rate_limit_remaining <= 0:
            reset_time = self.rate_limit_reset or datetime.now(tz=UTC)
            raise RateLimitError(
                f"GitHub API rate limit exceeded. Rate limit resets at {reset_time}",
                remaining=self.rate_limit_remaining,
                reset_time=reset_time,
            )

        # Slow down when approaching the limit
        if self.rate_limit_remaining is not None and self.rate_limit_remaining < 100:
            if self.rate_limit_remaining < 10:
                delay = 5.0
            elif self.rate_limit_remaining < 50:
                delay = 2.0
            else:
                delay = 1.0
            logger.debug(
                f"Rate limit low ({self.rate_limit_remaining} left), waiting {delay}s"
            )
            await asyncio.sleep(delay)

    def _calculate_retry_delay(self, attempt: int, base_delay: float) -> float:
        """Calculate exponential backoff delay with jitter."""
        exponential_delay = min(base_delay * (2**attempt), 60.0)

        # +/-10% jitter so concurrent enrichment fetches do not retry in lockstep
        jitter_range = exponential_delay * 0.1
        jitter = random.uniform(-jitter_range, jitter_range)

        final_delay: float = max(0.1, exponential_delay + jitter)
        logger.debug(
            f"Calculated retry delay: {final_delay:.2f}s (attempt {attempt}, base {base_delay}s)"
        )
        return final_delay

    def _should_retry(self, error: Exception) -> bool:
        """Determine if an error should trigger a retry."""
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            if status >= 500 or status == 429:
                logger.info(f"Will retry server error: {status}")
                return True
            logger.info(f"Not retrying client error: {status}")
            return False

        if isinstance(error, httpx.NetworkError | httpx.TimeoutException):
            logger.info(f"Will retry network error: {type(error).__name__}")
            return True

        return False

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=30.0,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )
        return self._http_client

    async def _make_request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request with retry logic."""
        base_delay = 1.0
        last_exception: httpx.HTTPError | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._get_http_client().request(method, url, **kwargs)
                self._update_rate_limit_info(response)
                response.raise_for_status()
                return response

            except httpx.HTTPError as error:
                last_exception = error

                if attempt == self.max_retries:
                    break

                if not self._should_retry(error):
                    logger.info(f"Not retrying error on attempt {attempt + 1}: {error}")
                    break

                delay = self._calculate_retry_delay(attempt, base_delay)
                logger.info(
                    f"Retrying in {delay:.2f} seconds (attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

        logger.error(f"Request to {url} failed: {last_exception}")
        if last_exception:
            raise last_exception
        raise httpx.HTTPError(f"Request to {url} failed with no recorded exception")

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        await self._check_rate_limit()
        response = await self._make_request_with_retry(
            "GET",
            f"{self.base_url}{path}",
            headers=self.headers,
            params=params,
        )
        return response.json()

    async def list_user_events(
        self,
        username: str,
        page: int = 1,
        per_page: int = 100,
    ) -> list[dict[str, Any]]:
        """Fetch one page of events performed by a user.

        Args:
            username: GitHub username
            page: Page number (1-based)
            per_page: Number of events per page (max 100)

        Returns:
            Raw event objects, newest first

        Raises:
            httpx.HTTPError: If the API request fails
            RateLimitError: If the rate limit is exhausted
        """
        data: list[dict[str, Any]] = await self._get_json(
            f"/users/{username}/events",
            {"per_page": per_page, "page": page},
        )
        return data

    async def list_repo_events(
        self,
        owner: str,
        repo: str,
        per_page: int = 100,
    ) -> list[dict[str, Any]]:
        """Fetch the latest events of a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            per_page: Number of events to fetch (max 100)

        Returns:
            Raw event objects, newest first

        Raises:
            httpx.HTTPError: If the API request fails
            RateLimitError: If the rate limit is exhausted
        """
        data: list[dict[str, Any]] = await self._get_json(
            f"/repos/{owner}/{repo}/events",
            {"per_page": per_page},
        )
        return data

    async def get_pull_request(
        self, owner: str, repo: str, number: int
    ) -> dict[str, Any]:
        """Fetch a single pull request.

        Raises:
            httpx.HTTPError: If the API request fails
            RateLimitError: If the rate limit is exhausted
        """
        data: dict[str, Any] = await self._get_json(
            f"/repos/{owner}/{repo}/pulls/{number}"
        )
        return data

    async def list_commits(
        self,
        owner: str,
        repo: str,
        sha: str,
        since: datetime,
        per_page: int = 100,
    ) -> list[dict[str, Any]]:
        """Fetch commits reachable from ``sha`` authored after ``since``.

        Raises:
            httpx.HTTPError: If the API request fails
            RateLimitError: If the rate limit is exhausted
        """
        data: list[dict[str, Any]] = await self._get_json(
            f"/repos/{owner}/{repo}/commits",
            {"sha": sha, "since": since.isoformat(), "per_page": per_page},
        )
        return data

    def get_rate_limit_status(self) -> dict[str, Any]:
        """Return current rate limit status."""
        return {
            "remaining": self.rate_limit_remaining,
            "limit": self.rate_limit_limit,
            "reset_time": self.rate_limit_reset,
        }

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit with cleanup."""
        await self.close()
