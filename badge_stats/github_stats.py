"""GitHub profile, repository and commit statistics."""

import argparse
import asyncio
import logging
import os
import sys
import time
from datetime import date, datetime, timezone
from typing import Any

import httpx
from dateutil.relativedelta import relativedelta

from .fetcher import (
    DEFAULT_TIMEOUT,
    GITHUB_API,
    ConfigurationError,
    configure_logging,
    create_client,
    get_json,
    github_headers,
)
from .flow import join_all, with_fallback
from .models import (
    CommitCount,
    GitHubReport,
    Profile,
    Quota,
    Repository,
    RepositoryStats,
)
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

PER_PAGE = 100
MAX_PAGES = 100

# Repository scan fallback for the commit count
SCAN_REPOS = 20
SCAN_COMMITS_PER_REPO = 100

COMMIT_WINDOW_MONTHS = 12


class GitHubStatsFetcher:
    """
    Collects stats for one GitHub user.

    Every API call except the quota check goes through the rate limiter.
    The fetcher keeps no state between calls besides its identity.
    """

    def __init__(
        self,
        username: str,
        token: str,
        client: httpx.AsyncClient,
        *,
        rate_limiter: RateLimiter | None = None,
        max_pages: int = MAX_PAGES,
    ):
        if not username:
            raise ConfigurationError("GitHub username is required")
        if not token:
            raise ConfigurationError("GitHub token is required")

        self.username = username
        self._client = client
        self._headers = github_headers(token)
        self._max_pages = max_pages
        self.rate_limiter = rate_limiter or RateLimiter(self.fetch_quota)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await get_json(
            self._client, f"{GITHUB_API}{path}", headers=self._headers, params=params
        )

    async def _guarded_get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.rate_limiter.execute(lambda: self._get(path, params))

    async def fetch_quota(self) -> Quota:
        """Read the current core rate limit. Not itself rate-limit guarded."""
        data = await self._get("/rate_limit")
        return Quota.from_api(data)

    async def fetch_profile(self) -> Profile:
        logger.info("Fetching profile for %s", self.username)
        data = await self._guarded_get(f"/users/{self.username}")
        return Profile.from_api(data)

    async def fetch_all_repositories(self) -> list[Repository]:
        """
        Fetch every repository owned by the user, most recently updated first.

        Pages are requested until one comes back short. ``max_pages`` bounds
        the loop in case the API keeps returning full pages.
        """
        logger.info("Fetching repositories for %s", self.username)

        repos: list[Repository] = []
        for page in range(1, self._max_pages + 1):
            data = await self._guarded_get(
                f"/users/{self.username}/repos",
                {
                    "type": "owner",
                    "sort": "updated",
                    "per_page": PER_PAGE,
                    "page": page,
                },
            )
            repos.extend(Repository.from_api(item) for item in data)
            if data:
                logger.debug("Fetched %d repositories (page %d)", len(repos), page)
            if len(data) < PER_PAGE:
                break
        else:
            logger.warning(
                "Stopped paginating repositories after %d pages", self._max_pages
            )

        return repos

    async def compute_repository_stats(self) -> RepositoryStats:
        repos = await self.fetch_all_repositories()
        return RepositoryStats.from_repositories(repos)

    async def compute_commit_count(
        self, window_months: int = COMMIT_WINDOW_MONTHS
    ) -> CommitCount:
        """
        Estimate commits authored by the user in the last ``window_months``.

        Uses the commit search API first. If that fails, falls back to
        scanning the most recently updated repositories, which can only
        undercount.
        """
        since = datetime.now(timezone.utc) - relativedelta(months=window_months)
        logger.info(
            "Fetching commit stats for the last %d months (since %s)",
            window_months,
            since.date().isoformat(),
        )
        return await with_fallback(
            lambda: self._search_commit_count(since.date()),
            lambda: self._scan_commit_count(since),
            description="Commit search",
        )

    async def _search_commit_count(self, since: date) -> CommitCount:
        data = await self._guarded_get(
            "/search/commits",
            {
                "q": f"author:{self.username} committer-date:>={since.isoformat()}",
                "per_page": 1,
            },
        )
        total = data["total_count"]
        logger.info("Found %d commits since %s", total, since.isoformat())
        return CommitCount(total=total, since=since, method="search")

    async def _scan_commit_count(self, since: datetime) -> CommitCount:
        logger.info("Counting commits from recent repositories instead")

        repos = await self.fetch_all_repositories()
        recent = repos[:SCAN_REPOS]

        total = 0
        for repo in recent:
            try:
                commits = await self._guarded_get(
                    f"/repos/{self.username}/{repo.name}/commits",
                    {
                        "author": self.username,
                        "since": since.isoformat(),
                        "per_page": SCAN_COMMITS_PER_REPO,
                    },
                )
            except Exception as e:
                logger.warning("Skipping %s: %s", repo.name, e)
                continue
            total += len(commits)

        logger.info("Counted %d commits (from %d repos)", total, len(recent))
        return CommitCount(
            total=total,
            since=since.date(),
            method="repository_scan",
            repositories_scanned=len(recent),
            is_lower_bound=True,
        )

    async def get_all_stats(self) -> GitHubReport:
        """Fetch profile, repository stats and commit count concurrently."""
        logger.info("Fetching all GitHub stats for %s", self.username)
        start = time.monotonic()

        profile, repositories, commits = await join_all(
            self.fetch_profile(),
            self.compute_repository_stats(),
            self.compute_commit_count(COMMIT_WINDOW_MONTHS),
        )

        report = GitHubReport(
            username=self.username,
            profile=profile,
            repositories=repositories,
            commits=commits,
            fetch_duration=round(time.monotonic() - start, 2),
        )

        logger.info(
            "GitHub stats fetched in %.2fs: %d followers, %d repos, %d stars, "
            "%d forks, %s commits (%d mo)",
            report.fetch_duration,
            profile.followers,
            repositories.total_repos,
            repositories.total_stars,
            repositories.total_forks,
            commits.format_total(),
            COMMIT_WINDOW_MONTHS,
        )
        return report


async def _fetch_report(username: str, token: str, timeout: float) -> GitHubReport:
    async with create_client(timeout) as client:
        return await GitHubStatsFetcher(username, token, client).get_all_stats()


def main(argv: list[str] | None = None) -> int:
    """Fetch and print GitHub stats for one user."""
    configure_logging()
    parser = argparse.ArgumentParser(description="Fetch GitHub profile statistics.")
    parser.add_argument(
        "username",
        nargs="?",
        default=os.environ.get("GITHUB_USERNAME"),
        help="GitHub username (default: $GITHUB_USERNAME)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="HTTP request timeout in seconds",
    )
    args = parser.parse_args(argv)

    try:
        report = asyncio.run(
            _fetch_report(args.username, os.environ.get("GITHUB_TOKEN", ""), args.timeout)
        )
    except ConfigurationError as e:
        logger.error("%s (set GITHUB_USERNAME and GITHUB_TOKEN)", e)
        return 1
    except Exception:
        logger.exception("Fetching GitHub stats failed")
        return 1

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        repos = report.repositories
        print(f"GitHub stats for {report.username}")
        print(f"  Followers:      {report.profile.followers:,}")
        print(f"  Repositories:   {repos.total_repos:,}")
        print(f"  Total stars:    {repos.total_stars:,}")
        print(f"  Total forks:    {repos.total_forks:,}")
        print(f"  Commits (12mo): {report.commits.format_total()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
