"""
Configuration module for schema_scraper.

Uses Pydantic models for validation and parsing of batch configuration files.
Includes helpers for sitemap expansion and URL normalization.
"""

import json
import logging
import re
import urllib.parse
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import BaseModel, Field, ConfigDict
from xml.etree import ElementTree

from .exceptions import ConfigurationError
from .schema import NestedNode, load_schema, parse_schema

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "schema-scraper/1.0"


class ScraperSettings(BaseModel):
    """Per-scrape behaviour shared by every Scraper call."""
    propagate_location: bool = Field(False, alias="propagateLocation")
    fetch_timeout: Optional[float] = Field(None, alias="fetchTimeout")
    parser: str = "html.parser"

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Defaults(BaseModel):
    """Default configuration values applied to all items."""
    threads: int = 5
    fetcher: str = "http"  # "http" | "browser"
    timeout: float = 30.0
    user_agent: str = Field(DEFAULT_USER_AGENT, alias="userAgent")
    settings: ScraperSettings = Field(default_factory=ScraperSettings)

    model_config = ConfigDict(populate_by_name=True)


class Item(BaseModel):
    """A single URL to scrape with a named schema."""
    url: str
    schema_name: str = Field(alias="schema")
    is_sitemap: bool = Field(False, alias="isSitemap")

    model_config = ConfigDict(populate_by_name=True)


class Config(BaseModel):
    """Main configuration class."""
    persistence_strategy: str = Field("folder_per_domain", alias="persistenceStrategy")
    defaults: Defaults = Defaults()
    schemas: Dict[str, NestedNode] = Field(default_factory=dict)
    items: List[Item] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


def normalize_url(url: str, strip_utm: bool = True) -> str:
    """
    Normalize URL by removing fragments, trailing slashes, and optionally UTM parameters.

    Args:
        url: URL to normalize
        strip_utm: Whether to remove UTM tracking parameters

    Returns:
        Normalized URL
    """
    url = url.split('#', 1)[0]
    url = re.sub(r'/$', '', url)

    if strip_utm:
        parsed = urllib.parse.urlparse(url)
        query_params = urllib.parse.parse_qs(parsed.query)
        for param in list(query_params):
            if param.startswith('utm_'):
                query_params.pop(param)

        new_query = urllib.parse.urlencode(query_params, doseq=True)
        parsed = parsed._replace(query=new_query)
        url = urllib.parse.urlunparse(parsed)

    return url


def get_urls_from_sitemap(sitemap_url: str, timeout: float = 30.0) -> List[str]:
    """
    Extract URLs from a sitemap XML file.

    Args:
        sitemap_url: URL of the sitemap
        timeout: Request timeout in seconds

    Returns:
        List of URLs found in the sitemap
    """
    try:
        logger.info(f"Fetching sitemap: {sitemap_url}")
        response = requests.get(sitemap_url, timeout=timeout)
        response.raise_for_status()

        root = ElementTree.fromstring(response.content)

        namespace = {'ns': 'http://www.sitemaps.org/schemas/sitemap/0.9'}
        urls = [loc.text.strip() for loc in root.findall('.//ns:loc', namespace) if loc.text]

        logger.info(f"Found {len(urls)} URLs in sitemap: {sitemap_url}")
        return urls

    except (requests.RequestException, ElementTree.ParseError) as e:
        logger.error(f"Error fetching sitemap {sitemap_url}: {e}")
        return []


def expand_sitemaps(items: List[Item], timeout: float = 30.0) -> List[Item]:
    """
    Expand sitemap items into one item per listed URL, keeping the schema.

    Args:
        items: List of items to process
        timeout: Request timeout in seconds

    Returns:
        List of items with sitemaps expanded to individual URLs
    """
    expanded_items = []

    for item in items:
        if item.is_sitemap:
            for url in get_urls_from_sitemap(item.url, timeout):
                expanded_items.append(Item(url=url, schema_name=item.schema_name))
        else:
            expanded_items.append(item)

    return expanded_items


def deduplicate_items(items: List[Item]) -> List[Item]:
    """
    Remove items whose normalized URL and schema were already seen.

    Args:
        items: List of items to deduplicate

    Returns:
        List of items with duplicates removed, order preserved
    """
    seen = set()
    unique_items = []

    for item in items:
        key = (normalize_url(item.url), item.schema_name)
        if key not in seen:
            seen.add(key)
            unique_items.append(item)
        else:
            logger.debug(f"Skipping duplicate URL: {item.url}")

    return unique_items


def _resolve_schemas(raw_schemas: Dict[str, Any], base_dir: Path) -> Dict[str, NestedNode]:
    schemas = {}
    for name, value in raw_schemas.items():
        if isinstance(value, str):
            schemas[name] = load_schema(base_dir / value)
        else:
            schemas[name] = parse_schema(value, name)
    return schemas


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load and process configuration from JSON file.

    Schema entries may be inline mappings or paths to JSON schema files,
    relative to the configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        Processed configuration object

    Raises:
        FileNotFoundError: If the configuration or a schema file is missing
        ConfigurationError: If an item references an unknown schema
        SchemaError: If a schema is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    data["schemas"] = _resolve_schemas(data.get("schemas", {}), config_path.parent)
    config = Config.model_validate(data)

    for item in config.items:
        if item.schema_name not in config.schemas:
            raise ConfigurationError(f"Item {item.url} references unknown schema '{item.schema_name}'")

    logger.info("Expanding sitemaps and normalizing URLs")
    config.items = expand_sitemaps(config.items, config.defaults.timeout)
    config.items = deduplicate_items(config.items)

    logger.info(f"Loaded {len(config.items)} items and {len(config.schemas)} schemas")

    return config
