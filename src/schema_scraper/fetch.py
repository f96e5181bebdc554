"""
Fetch module for schema_scraper.

Retrieves raw markup for a URL, either with a plain HTTP GET (requests) or by
rendering the page in a headless browser (Crawl4AI).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from crawl4ai import AsyncWebCrawler, BrowserConfig, CrawlerRunConfig, CacheMode

from .config import DEFAULT_USER_AGENT
from .exceptions import FetchError

logger = logging.getLogger(__name__)


class Fetcher(ABC):
    """Abstract base class for document fetchers."""

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """
        Retrieve the raw markup at a URL.

        Args:
            url: Location of the document

        Returns:
            Raw markup text
        """
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


class HttpFetcher(Fetcher):
    """Fetches documents with requests, off the event loop."""

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        """
        Initialize HttpFetcher.

        Args:
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}

    def _get(self, url: str) -> str:
        response = requests.get(url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    async def fetch(self, url: str) -> str:
        logger.info(f"Fetching {url}")
        return await asyncio.to_thread(self._get, url)


class BrowserFetcher(Fetcher):
    """
    Fetches rendered documents through a Crawl4AI AsyncWebCrawler.

    Must be used as an async context manager, which owns the browser.
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        """
        Initialize BrowserFetcher.

        Args:
            timeout: Page load timeout in seconds
            user_agent: User-Agent reported by the browser
        """
        self.crawler: Optional[AsyncWebCrawler] = None
        self.browser_config = self._build_browser_config(user_agent)
        self.run_config = CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            page_timeout=int(timeout * 1000),
        )

    def _build_browser_config(self, user_agent: str) -> BrowserConfig:
        """Build browser configuration with performance optimizations."""
        return BrowserConfig(
            headless=True,
            verbose=False,
            user_agent=user_agent,
            extra_args=[
                "--disable-gpu",
                "--disable-dev-shm-usage",
                "--no-sandbox",
            ]
        )

    async def __aenter__(self):
        logger.info("Starting AsyncWebCrawler")
        self.crawler = AsyncWebCrawler(config=self.browser_config)
        await self.crawler.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.crawler:
            logger.info("Closing AsyncWebCrawler")
            await self.crawler.close()
            self.crawler = None

    async def fetch(self, url: str) -> str:
        if self.crawler is None:
            raise RuntimeError("BrowserFetcher must be entered with 'async with' before fetching")

        logger.info(f"Rendering {url}")
        result = await self.crawler.arun(url=url, config=self.run_config)
        if not result.success:
            raise FetchError(url, result.error_message or "Failed to render page")
        return result.html


def create_fetcher(name: str, **kwargs) -> Fetcher:
    """
    Factory function to create a fetcher.

    Args:
        name: Fetcher name ("http" or "browser")
        **kwargs: Passed to the fetcher constructor (timeout, user_agent)

    Returns:
        Configured fetcher

    Raises:
        ValueError: If the fetcher is not supported
    """
    if name == "http":
        return HttpFetcher(**kwargs)
    elif name == "browser":
        return BrowserFetcher(**kwargs)
    else:
        raise ValueError(f"Unsupported fetcher: {name}")
