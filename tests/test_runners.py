import json

import pytest
import requests

from conftest import ANTEATER_HTML, PAGE_URL, FakeFetcher
from schema_scraper import BatchRunner, Config, Defaults, Item, parse_schema
from schema_scraper.persistence import PersistenceStrategy, create_persistence_strategy

BROKEN_URL = "https://zoo.example.com/animals/broken"
OFFLINE_URL = "https://offline.example.com/"


class FlakyFetcher(FakeFetcher):
    async def fetch(self, url):
        self.calls.append(url)
        if url == OFFLINE_URL:
            raise requests.ConnectionError("offline")
        return self.pages[url]


class TestBatchRunner:
    """Test suite for the batch runner."""

    @pytest.fixture
    def config(self, anteater_schema):
        return Config(
            defaults=Defaults(threads=2),
            schemas={
                "anteater": parse_schema(anteater_schema),
                "broken": parse_schema({"name": {"selector": "h1"}, "bad": {"selector": "p", "pattern": "("}}),
            },
            items=[
                Item(url=PAGE_URL, schema_name="anteater"),
                Item(url=BROKEN_URL, schema_name="broken"),
                Item(url=OFFLINE_URL, schema_name="anteater"),
            ],
        )

    @pytest.mark.asyncio
    async def test_batch_runner(self, tmp_path, config):
        fetcher = FlakyFetcher({PAGE_URL: ANTEATER_HTML, BROKEN_URL: ANTEATER_HTML})
        persistence = create_persistence_strategy("folder_per_domain", str(tmp_path))

        runner = BatchRunner(fetcher, config, persistence)
        results = await runner.run(config.items)
        await persistence.finalize()

        assert sorted(fetcher.calls) == sorted([PAGE_URL, BROKEN_URL, OFFLINE_URL])
        assert [result.url for result in results] == [PAGE_URL, BROKEN_URL]

        stats = runner.get_stats()
        assert (stats.total, stats.success, stats.degraded, stats.failed) == (3, 1, 1, 1)

        saved = json.loads((tmp_path / "zoo.example.com" / "animals_broken.json").read_text(encoding="utf-8"))
        assert saved["schema"] == "broken"
        assert saved["data"] == {"name": "Giant Anteater"}
        assert saved["warnings"][0]["path"] == "bad"

    @pytest.mark.asyncio
    async def test_no_items(self, tmp_path, config):
        persistence = create_persistence_strategy("folder_per_domain", str(tmp_path))
        runner = BatchRunner(FakeFetcher(), config, persistence)

        assert await runner.run([]) == []
        assert runner.get_stats().total == 0

    @pytest.mark.asyncio
    async def test_save_failure_counts_as_failed(self, tmp_path, config):
        class FailingPersistence(PersistenceStrategy):
            async def save(self, url, record):
                if url == BROKEN_URL:
                    raise OSError("disk full")
                return str(tmp_path / "ok.json")

            async def finalize(self):
                pass

        fetcher = FlakyFetcher({PAGE_URL: ANTEATER_HTML, BROKEN_URL: ANTEATER_HTML})
        runner = BatchRunner(fetcher, config, FailingPersistence())

        results = await runner.run(config.items)

        assert [result.url for result in results] == [PAGE_URL]
        stats = runner.get_stats()
        assert (stats.total, stats.success, stats.degraded, stats.failed) == (3, 1, 0, 2)
