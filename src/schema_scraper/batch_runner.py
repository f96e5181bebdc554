"""
Batch runner module for schema_scraper.

Scrapes every configured item with bounded concurrency and hands the results
to a persistence strategy.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List

from .config import Config, Item
from .fetch import Fetcher
from .persistence import PersistenceStrategy
from .scraper import Scraper, ScrapeResult

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total: int = 0
    success: int = 0
    degraded: int = 0
    failed: int = 0


class BatchRunner:
    """Handles batch scraping of configured items."""

    def __init__(self, fetcher: Fetcher, config: Config, persistence: PersistenceStrategy):
        """
        Initialize BatchRunner.

        Args:
            fetcher: Fetcher shared by all scrapers
            config: Loaded configuration (schemas, items, defaults)
            persistence: Persistence strategy for saving results
        """
        self.config = config
        self.persistence = persistence
        self.scrapers: Dict[str, Scraper] = {
            name: Scraper(schema, fetcher, config.defaults.settings)
            for name, schema in config.schemas.items()
        }
        self.stats = BatchStats()

    async def run(self, items: List[Item]) -> List[ScrapeResult]:
        """
        Scrape items concurrently, at most ``defaults.threads`` at a time.

        Args:
            items: List of items to process

        Returns:
            Results of the items that were scraped, in item order
        """
        if not items:
            logger.info("No items to process")
            return []

        logger.info(f"Starting batch processing of {len(items)} items")
        self.stats.total = len(items)
        semaphore = asyncio.Semaphore(max(1, self.config.defaults.threads))

        async def process(item: Item):
            async with semaphore:
                return await self._process_item(item)

        results = await asyncio.gather(*(process(item) for item in items))

        logger.info(
            f"Batch processing completed: {self.stats.success} success, "
            f"{self.stats.degraded} degraded, {self.stats.failed} failed"
        )
        return [result for result in results if result is not None]

    async def _process_item(self, item: Item):
        """
        Scrape and save a single item; failures are counted, not raised.

        Args:
            item: Item to scrape

        Returns:
            The scrape result, or None if the scrape failed
        """
        scraper = self.scrapers[item.schema_name]
        try:
            result = await scraper.scrape(url=item.url)
        except asyncio.TimeoutError:
            logger.error(f"Timed out fetching {item.url}")
            self.stats.failed += 1
            return None
        except Exception as e:
            logger.error(f"Failed to scrape {item.url}: {e}")
            self.stats.failed += 1
            return None

        record = result.to_dict()
        record["schema"] = item.schema_name
        try:
            path = await self.persistence.save(item.url, record)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save result for {item.url}: {e}")
            self.stats.failed += 1
            return None
        if path:
            logger.debug(f"Saved result: {item.url} -> {path}")

        if result.ok:
            self.stats.success += 1
        else:
            self.stats.degraded += 1
        return result

    def get_stats(self) -> BatchStats:
        """Get processing statistics."""
        return self.stats
