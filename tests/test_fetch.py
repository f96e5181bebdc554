from types import SimpleNamespace

import pytest

from conftest import ANTEATER_HTML, PAGE_URL
from schema_scraper import BrowserFetcher, FetchError, HttpFetcher, create_fetcher
from schema_scraper import fetch as fetch_module


class FakeCrawler:
    """Stands in for crawl4ai's AsyncWebCrawler."""

    instances = []

    def __init__(self, config=None):
        self.config = config
        self.started = False
        self.closed = False
        self.result = SimpleNamespace(success=True, html=ANTEATER_HTML, error_message=None)
        FakeCrawler.instances.append(self)

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    async def arun(self, url, config=None):
        return self.result


@pytest.fixture(autouse=True)
def fake_crawler(monkeypatch):
    FakeCrawler.instances = []
    monkeypatch.setattr(fetch_module, "AsyncWebCrawler", FakeCrawler)
    yield
    FakeCrawler.instances = []


class TestBrowserFetcher:
    """Test suite for the Crawl4AI based fetcher."""

    @pytest.mark.asyncio
    async def test_fetch_rendered_html(self):
        async with BrowserFetcher(timeout=10) as fetcher:
            assert await fetcher.fetch(PAGE_URL) == ANTEATER_HTML

        crawler = FakeCrawler.instances[0]
        assert crawler.started and crawler.closed
        assert fetcher.run_config.page_timeout == 10000

    @pytest.mark.asyncio
    async def test_unsuccessful_crawl_raises(self):
        async with BrowserFetcher() as fetcher:
            fetcher.crawler.result = SimpleNamespace(success=False, html="", error_message="net::ERR_NAME_NOT_RESOLVED")
            with pytest.raises(FetchError, match="ERR_NAME_NOT_RESOLVED") as excinfo:
                await fetcher.fetch(PAGE_URL)

        assert excinfo.value.url == PAGE_URL

    @pytest.mark.asyncio
    async def test_fetch_outside_context(self):
        with pytest.raises(RuntimeError):
            await BrowserFetcher().fetch(PAGE_URL)


class TestCreateFetcher:
    """Test suite for the fetcher factory."""

    def test_known_fetchers(self):
        assert isinstance(create_fetcher("http", timeout=5), HttpFetcher)
        assert isinstance(create_fetcher("browser"), BrowserFetcher)

    def test_unknown_fetcher(self):
        with pytest.raises(ValueError):
            create_fetcher("ftp")
