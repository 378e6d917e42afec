#!/usr/bin/env python3
"""
Main entry point for generating profile badges.

Fetches GitHub (and optionally npm) stats, renders one SVG badge per
stat and writes them together with a stats.json snapshot.
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from pathlib import Path

import httpx
import yaml

from .fetcher import DEFAULT_TIMEOUT, ConfigurationError, configure_logging, create_client
from .generator import generate_summary_report, github_badges, npm_badges
from .github_stats import GitHubStatsFetcher
from .models import BadgeConfig, GitHubReport, NpmReport, StatsSnapshot
from .npm_stats import NpmStatsFetcher, package_exists
from .storage import BADGES_DIR, BadgeWriter

logger = logging.getLogger(__name__)


def load_badge_config(path: Path | None) -> BadgeConfig:
    """Load badge style and palette from a YAML file, defaults if no path."""
    if path is None:
        return BadgeConfig()
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return BadgeConfig.model_validate(data)


class BadgeGenerator:
    """Runs one badge generation pass."""

    def __init__(
        self,
        username: str,
        token: str,
        npm_package: str | None = None,
        *,
        dry_run: bool = False,
        output_dir: Path = BADGES_DIR,
        badge_config: BadgeConfig | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not username:
            raise ConfigurationError("GitHub username is required")
        if not token:
            raise ConfigurationError("GitHub token is required")

        self.username = username
        self.token = token
        self.npm_package = npm_package
        self.dry_run = dry_run
        self.badge_config = badge_config or BadgeConfig()
        self.timeout = timeout
        self.writer = BadgeWriter(output_dir, dry_run=dry_run)
        self.saved: list[str] = []

    async def generate_github_badges(self, client: httpx.AsyncClient) -> GitHubReport:
        """Fetch GitHub stats and save their badges. Failures propagate."""
        logger.info("Generating GitHub badges")
        fetcher = GitHubStatsFetcher(self.username, self.token, client)
        stats = await fetcher.get_all_stats()

        badges = github_badges(stats, self.badge_config)
        self.saved.extend(self.writer.save_badges(badges))
        logger.info("GitHub badges generated: %d", len(badges))
        return stats

    async def generate_npm_badges(self, client: httpx.AsyncClient) -> NpmReport | None:
        """Fetch npm stats and save their badges. Any failure skips the set."""
        if not self.npm_package:
            logger.info("Skipping npm badges (no package configured)")
            return None

        logger.info("Generating npm badges")
        try:
            if not await package_exists(self.npm_package, client):
                logger.warning(
                    'Package "%s" not found on npm, skipping npm badges',
                    self.npm_package,
                )
                return None

            fetcher = NpmStatsFetcher(self.npm_package, client)
            stats = await fetcher.get_all_stats()

            badges = npm_badges(stats, self.badge_config)
            self.saved.extend(self.writer.save_badges(badges))
        except Exception as e:
            logger.error("Error generating npm badges: %s", e)
            logger.warning("Continuing without npm badges")
            return None

        logger.info("npm badges generated: %d", len(badges))
        return stats

    async def generate_all(self, client: httpx.AsyncClient | None = None) -> StatsSnapshot:
        """Generate every badge set and save the combined snapshot."""
        logger.info(
            "Badge generator starting: user=%s, npm package=%s, dry run=%s",
            self.username,
            self.npm_package or "None",
            "YES" if self.dry_run else "NO",
        )
        start = time.monotonic()
        self.saved = []

        if client is None:
            async with create_client(self.timeout) as own_client:
                snapshot = await self._generate(own_client)
        else:
            snapshot = await self._generate(client)

        logger.info(
            "Badge generation complete in %.2fs (output: %s)",
            time.monotonic() - start,
            self.writer.output_dir,
        )
        return snapshot

    async def _generate(self, client: httpx.AsyncClient) -> StatsSnapshot:
        self.writer.ensure_dir()

        github_stats = await self.generate_github_badges(client)
        npm_stats = await self.generate_npm_badges(client)

        snapshot = StatsSnapshot(github=github_stats, npm=npm_stats)
        self.writer.save_stats(snapshot)
        return snapshot


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate SVG badges from GitHub and npm statistics."
    )
    parser.add_argument(
        "username",
        nargs="?",
        default=os.environ.get("GITHUB_USERNAME"),
        help="GitHub username (default: $GITHUB_USERNAME)",
    )
    parser.add_argument(
        "--package",
        default=os.environ.get("NPM_PACKAGE_NAME"),
        help="npm package name (default: $NPM_PACKAGE_NAME)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch everything but write nothing",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=BADGES_DIR,
        help="Directory for the badges and stats.json",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with badge style and colors",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="HTTP request timeout in seconds",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    configure_logging()
    args = parse_args(argv)

    try:
        generator = BadgeGenerator(
            args.username,
            os.environ.get("GITHUB_TOKEN", ""),
            args.package,
            dry_run=args.dry_run,
            output_dir=args.output_dir,
            badge_config=load_badge_config(args.config),
            timeout=args.timeout,
        )
    except ConfigurationError as e:
        logger.error("%s (set GITHUB_USERNAME and GITHUB_TOKEN)", e)
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid badge config %s: %s", args.config, e)
        return 1

    try:
        snapshot = asyncio.run(generator.generate_all())
    except Exception:
        logger.exception("Badge generation failed")
        return 1

    print(
        "\n"
        + generate_summary_report(
            snapshot.github, snapshot.npm, generator.saved, dry_run=args.dry_run
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
