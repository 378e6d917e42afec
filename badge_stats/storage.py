"""Persistence of rendered badges and the stats snapshot."""

import json
import logging
from pathlib import Path

from .models import StatsSnapshot

logger = logging.getLogger(__name__)

BADGES_DIR = Path("badges")
STATS_FILENAME = "stats.json"


class BadgeWriter:
    """
    Writes badges and the snapshot into ``output_dir``.

    In dry-run mode every write is replaced by a log line.
    """

    def __init__(self, output_dir: Path = BADGES_DIR, dry_run: bool = False):
        self.output_dir = Path(output_dir)
        self.dry_run = dry_run

    def ensure_dir(self) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would create %s", self.output_dir)
            return
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Badges directory ready: %s", self.output_dir)

    def save_badge(self, filename: str, svg: str) -> None:
        if self.dry_run:
            logger.info("[DRY RUN] Would save: %s", filename)
            return
        (self.output_dir / filename).write_text(svg, encoding="utf-8")
        logger.info("Saved: %s", filename)

    def save_badges(self, badges: dict[str, str]) -> list[str]:
        """Save every badge and return the filenames in order."""
        for filename, svg in badges.items():
            self.save_badge(filename, svg)
        return list(badges)

    def save_stats(self, snapshot: StatsSnapshot) -> None:
        """Save the snapshot as JSON with an atomic write."""
        if self.dry_run:
            logger.info("[DRY RUN] Would save %s", STATS_FILENAME)
            return

        stats_file = self.output_dir / STATS_FILENAME
        # Write to temp file first, then rename (atomic on POSIX)
        temp_file = stats_file.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_json_dict(), f, indent=2)

        temp_file.replace(stats_file)
        logger.info("Stats saved to: %s", stats_file.name)
