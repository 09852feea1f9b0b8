"""Sources service with seed and admin operations."""

import json
import logging
from pathlib import Path

from briefing.sources.config import SourcesConfig
from briefing.sources.repository import SourcesRepository
from briefing.sources.schemas import Source
from briefing.storage.database import Database

logger = logging.getLogger(__name__)

_SEED_FILE = Path(__file__).parent / "data" / "seed_sources.json"


def _parse_seed_entry(entry: dict) -> Source:
    """Convert a JSON seed entry to a Source dataclass."""
    return Source(
        name=entry["name"],
        url=entry["url"],
        category=entry["category"],
        platform=entry["platform"],
        config=entry.get("config", {}),
        enabled=entry.get("enabled", True),
        cron=entry.get("cron", "0 */2 * * *"),
    )


class SourcesService:
    """Source lookups plus seeding and enable/disable."""

    def __init__(
        self,
        database: Database,
        config: SourcesConfig | None = None,
    ) -> None:
        self._config = config or SourcesConfig()
        self._repo = SourcesRepository(database)

    @property
    def repository(self) -> SourcesRepository:
        """Access the underlying repository for direct DB operations."""
        return self._repo

    async def get_enabled(
        self,
        category: str | None = None,
        platform: str | None = None,
    ) -> list[Source]:
        return await self._repo.list_enabled(category=category, platform=platform)

    async def enable(self, source_id: int) -> bool:
        changed = await self._repo.set_enabled(source_id, True)
        if changed:
            logger.info("Enabled source %d", source_id)
        return changed

    async def disable(self, source_id: int) -> bool:
        changed = await self._repo.set_enabled(source_id, False)
        if changed:
            logger.info("Disabled source %d", source_id)
        return changed

    # ── Seed ────────────────────────────────────────────────────

    async def seed_from_json(self, path: Path | None = None) -> int:
        """Load sources from a JSON file into the database.

        Returns the number of sources upserted.
        """
        seed_path = path or _SEED_FILE
        with open(seed_path, encoding="utf-8") as f:
            entries = json.load(f)

        sources = [_parse_seed_entry(e) for e in entries]
        count = await self._repo.bulk_upsert(sources)
        logger.info("Seeded %d sources from %s", count, seed_path)
        return count

    async def ensure_seeded(self) -> None:
        """Seed from default JSON if the table is empty and seed_on_init is True."""
        if not self._config.seed_on_init:
            return

        existing = await self._repo.count()
        if existing > 0:
            logger.debug("Sources table has %d rows, skipping seed", existing)
            return

        logger.info("Sources table empty, seeding from default JSON")
        await self.seed_from_json()
