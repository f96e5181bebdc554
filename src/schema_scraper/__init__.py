"""
schema_scraper - Declarative, schema-driven HTML scraper

Describe where every field of a result comes from (a CSS selector, an
attribute or list of fallback attributes, an optional capture pattern, a
nested schema, or an array of item schemas) and let the scraper walk that
description against a document:

    scraper = Scraper({
        "title": {"selector": "h1"},
        "price": {"selector": ".price", "type": "number"},
        "tags": {"selector": ".tag", "itemSchema": {"name": {"selector": "a"}}},
    })
    result = await scraper.scrape(url="https://example.com/product")
"""

__version__ = "1.0.0"

from .config import load_config, Config, Item, Defaults, ScraperSettings
from .document import DocumentContext, HtmlDocument, HtmlNode
from .exceptions import ScraperError, ConfigurationError, SchemaError, SourceError, FetchError
from .extraction import extract_value, refine_value, coerce_value
from .fetch import Fetcher, HttpFetcher, BrowserFetcher, create_fetcher
from .schema import (
    ArrayNode,
    FieldType,
    MetaKind,
    MetaNode,
    NestedNode,
    NodeKind,
    PrimitiveNode,
    Schema,
    classify_node,
    load_schema,
    parse_schema,
)
from .scraper import Scraper, ScrapeResult, FieldWarning
from .batch_runner import BatchRunner, BatchStats
from .persistence import PersistenceStrategy, FolderPerDomainStrategy, FilePerDomainStrategy, create_persistence_strategy

__all__ = [
    "load_config",
    "Config",
    "Item",
    "Defaults",
    "ScraperSettings",
    "DocumentContext",
    "HtmlDocument",
    "HtmlNode",
    "ScraperError",
    "ConfigurationError",
    "SchemaError",
    "SourceError",
    "FetchError",
    "extract_value",
    "refine_value",
    "coerce_value",
    "Fetcher",
    "HttpFetcher",
    "BrowserFetcher",
    "create_fetcher",
    "ArrayNode",
    "FieldType",
    "MetaKind",
    "MetaNode",
    "NestedNode",
    "NodeKind",
    "PrimitiveNode",
    "Schema",
    "classify_node",
    "load_schema",
    "parse_schema",
    "Scraper",
    "ScrapeResult",
    "FieldWarning",
    "BatchRunner",
    "BatchStats",
    "PersistenceStrategy",
    "FolderPerDomainStrategy",
    "FilePerDomainStrategy",
    "create_persistence_strategy",
]
