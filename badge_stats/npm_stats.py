"""npm download statistics and package metadata."""

import argparse
import asyncio
import logging
import os
import sys
import time
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from .fetcher import (
    DEFAULT_TIMEOUT,
    NPM_API,
    NPM_REGISTRY,
    ConfigurationError,
    NotFoundError,
    configure_logging,
    create_client,
    get_json,
    npm_headers,
)
from .flow import join_all, with_fallback
from .models import DownloadCounts, NpmReport, VersionInfo

logger = logging.getLogger(__name__)

DOWNLOAD_PERIODS = ("last-day", "last-week", "last-month", "last-year")


def registry_name(package_name: str) -> str:
    """Escape a package name for registry URLs; scoped names keep their '@'."""
    return quote(package_name, safe="@")


async def package_exists(package_name: str, client: httpx.AsyncClient) -> bool:
    """Probe the registry for ``package_name``. Never raises."""
    url = f"{NPM_REGISTRY}/{registry_name(package_name)}"
    try:
        response = await client.head(url, headers=npm_headers())
    except Exception as e:
        logger.warning("Could not probe npm for %s: %s", package_name, e)
        return False
    return response.is_success


class NpmStatsFetcher:
    """Collects download and version stats for one npm package."""

    def __init__(self, package_name: str, client: httpx.AsyncClient):
        if not package_name:
            raise ConfigurationError("Package name is required")
        self.package_name = package_name
        self._client = client
        self._headers = npm_headers()
        self._escaped = registry_name(package_name)

    async def fetch_downloads(self, period: str = "last-month") -> int:
        """
        Download count for ``period``.

        ``period`` is one of DOWNLOAD_PERIODS or an explicit date or
        ``start:end`` range. A package without download data counts as 0.
        """
        logger.info("Fetching download stats for %s (%s)", self.package_name, period)
        url = f"{NPM_API}/downloads/point/{period}/{self.package_name}"
        try:
            data = await get_json(self._client, url, headers=self._headers)
        except NotFoundError:
            logger.warning("No download data available for %s", self.package_name)
            return 0

        downloads = data.get("downloads") or 0
        logger.debug("Downloads (%s): %d", period, downloads)
        return downloads

    async def fetch_version_info(self) -> VersionInfo | None:
        """Latest version metadata, or None when it cannot be fetched."""
        logger.info("Fetching version info for %s", self.package_name)
        url = f"{NPM_REGISTRY}/{self._escaped}/latest"
        try:
            data = await get_json(self._client, url, headers=self._headers)
            info = VersionInfo.from_api(data)
        except Exception as e:
            logger.warning("Could not fetch version info: %s", e)
            return None

        logger.info("Latest version: %s", info.version)
        return info

    async def fetch_total_downloads(self) -> int:
        """
        All-time downloads, summed over the range since the package was created.

        Falls back to the last-year count when the range cannot be fetched.
        """
        return await with_fallback(
            self._range_downloads,
            lambda: self.fetch_downloads("last-year"),
            description="Total downloads",
        )

    async def _range_downloads(self) -> int:
        logger.info("Fetching total downloads for %s", self.package_name)
        metadata = await get_json(
            self._client, f"{NPM_REGISTRY}/{self._escaped}", headers=self._headers
        )
        created = datetime.fromisoformat(
            metadata["time"]["created"].replace("Z", "+00:00")
        )
        start = created.date().isoformat()
        end = datetime.now(timezone.utc).date().isoformat()

        data = await get_json(
            self._client,
            f"{NPM_API}/downloads/range/{start}:{end}/{self.package_name}",
            headers=self._headers,
        )
        total = sum(day["downloads"] for day in data["downloads"])
        logger.info("Total downloads (all time): %d", total)
        return total

    async def get_all_stats(self) -> NpmReport:
        """Fetch every download period and the version info concurrently."""
        logger.info("Fetching all npm stats for %s", self.package_name)
        start = time.monotonic()

        last_day, last_week, last_month, last_year, version = await join_all(
            *(self.fetch_downloads(period) for period in DOWNLOAD_PERIODS),
            self.fetch_version_info(),
        )

        report = NpmReport(
            package_name=self.package_name,
            downloads=DownloadCounts(
                last_day=last_day,
                last_week=last_week,
                last_month=last_month,
                last_year=last_year,
            ),
            version=version,
            fetch_duration=round(time.monotonic() - start, 2),
        )

        logger.info(
            "npm stats fetched in %.2fs: version %s, downloads %d/day %d/week "
            "%d/month %d/year",
            report.fetch_duration,
            version.version if version else "N/A",
            last_day,
            last_week,
            last_month,
            last_year,
        )
        return report


async def _fetch_report(package_name: str, timeout: float) -> NpmReport | None:
    async with create_client(timeout) as client:
        if not await package_exists(package_name, client):
            logger.error("Package %s not found on npm", package_name)
            return None
        return await NpmStatsFetcher(package_name, client).get_all_stats()


def main(argv: list[str] | None = None) -> int:
    """Fetch and print npm stats for one package."""
    configure_logging()
    parser = argparse.ArgumentParser(description="Fetch npm package statistics.")
    parser.add_argument(
        "package",
        nargs="?",
        default=os.environ.get("NPM_PACKAGE_NAME"),
        help="npm package name (default: $NPM_PACKAGE_NAME)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="HTTP request timeout in seconds",
    )
    args = parser.parse_args(argv)

    if not args.package:
        logger.error("Package name is required (set NPM_PACKAGE_NAME)")
        return 1

    try:
        report = asyncio.run(_fetch_report(args.package, args.timeout))
    except Exception:
        logger.exception("Fetching npm stats failed")
        return 1
    if report is None:
        return 1

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        version = report.version.version if report.version and report.version.version else "N/A"
        print(f"npm stats for {report.package_name} ({version})")
        for period in DOWNLOAD_PERIODS:
            field = period.replace("-", "_")
            print(f"  {period:<11} {getattr(report.downloads, field):,}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
