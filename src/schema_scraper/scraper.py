"""
Scraper module for schema_scraper.

Walks a schema against a parsed document and builds the result. Primitive
fields go through selector -> extraction -> pattern refinement -> coercion,
nested schemas recurse on the same document, and array nodes walk their item
schema once per matched element against a document re-parsed from that
element alone.

A failure while resolving one field is logged and recorded as a FieldWarning
on the result; the field is left out and the walk carries on.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from .config import ScraperSettings
from .document import DocumentContext
from .exceptions import SourceError
from .extraction import coerce_value, extract_value, refine_value
from .fetch import Fetcher, HttpFetcher
from .schema import ArrayNode, MetaKind, MetaNode, NestedNode, PrimitiveNode, parse_schema

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class FieldWarning:
    """A field that was dropped from the result."""
    path: str
    message: str
    error_type: str


@dataclass
class ScrapeResult:
    """Result of a single scrape."""
    data: Dict[str, Any]
    warnings: List[FieldWarning] = field(default_factory=list)
    url: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when every field resolved."""
        return not self.warnings

    def to_model(self, model: Type[ModelT]) -> ModelT:
        """Validate the scraped data into a pydantic model of the target shape."""
        return model.model_validate(self.data)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready record; non-finite numbers become None."""
        return {
            "url": self.url,
            "data": _json_safe(self.data),
            "warnings": [
                {"path": w.path, "message": w.message, "errorType": w.error_type}
                for w in self.warnings
            ],
        }


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


class Scraper:
    """
    Declarative scraper bound to one schema.

    The scraper holds no per-call state, so one instance can serve any number
    of concurrent scrapes.
    """

    def __init__(
        self,
        schema: Union[NestedNode, Mapping[str, Any]],
        fetcher: Optional[Fetcher] = None,
        settings: Optional[ScraperSettings] = None,
    ):
        """
        Initialize Scraper.

        Args:
            schema: Schema, or a raw mapping to build one from
            fetcher: Fetcher used for URL input (HttpFetcher by default)
            settings: Scrape behaviour settings

        Raises:
            SchemaError: If the schema is invalid
        """
        self.schema = parse_schema(schema)
        self.fetcher = fetcher if fetcher is not None else HttpFetcher()
        self.settings = settings or ScraperSettings()

    async def scrape(self, url: Optional[str] = None, html: Optional[str] = None) -> ScrapeResult:
        """
        Scrape a document given by exactly one of ``url`` or ``html``.

        Args:
            url: Location to fetch the document from
            html: Raw markup

        Returns:
            The scrape result

        Raises:
            SourceError: If both or neither of url/html are given
            asyncio.TimeoutError: If the fetch exceeds settings.fetch_timeout
        """
        if (url and html) or (not url and not html):
            raise SourceError("Provide either a URL or an HTML string, but not both.")

        if url:
            fetch = self.fetcher.fetch(url)
            if self.settings.fetch_timeout is not None:
                html = await asyncio.wait_for(fetch, self.settings.fetch_timeout)
            else:
                html = await fetch

        return self.scrape_html(html, url)

    def scrape_html(self, html: str, url: Optional[str] = None) -> ScrapeResult:
        """
        Walk the schema against markup that is already at hand.

        Args:
            html: Raw markup
            url: Location the markup came from, used for url meta fields

        Returns:
            The scrape result
        """
        context = DocumentContext.from_markup(html, url, self.settings.parser)
        warnings: List[FieldWarning] = []
        data = self._walk_object(self.schema, context, "", warnings)
        if warnings:
            logger.warning(f"Scrape of {url or '<html>'} dropped {len(warnings)} field(s)")
        return ScrapeResult(data=data, warnings=warnings, url=url)

    def _walk_object(
        self,
        schema: NestedNode,
        context: DocumentContext,
        path: str,
        warnings: List[FieldWarning],
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {}

        for name, node in schema.fields.items():
            field_path = _join(path, name)

            if isinstance(node, NestedNode):
                result[name] = self._walk_object(node, context, field_path, warnings)
                continue

            try:
                if isinstance(node, MetaNode):
                    result[name] = self._resolve_meta(node, context)
                elif isinstance(node, ArrayNode):
                    result[name] = self._walk_array(node, context, field_path, warnings)
                else:
                    result[name] = self._resolve_primitive(node, context)
            except Exception as e:
                logger.error(f"Failed to resolve field {field_path}: {e}")
                warnings.append(FieldWarning(field_path, str(e), type(e).__name__))

        return result

    def _walk_array(
        self,
        node: ArrayNode,
        context: DocumentContext,
        path: str,
        warnings: List[FieldWarning],
    ) -> List[Dict[str, Any]]:
        elements = context.query(node.selector)
        logger.debug(f"Found {len(elements)} elements for {node.selector}")

        location = context.location if self.settings.propagate_location else None
        items = []
        for index, element in enumerate(elements):
            item_context = context.rescope(element, location)
            items.append(self._walk_object(node.item_schema, item_context, f"{path}[{index}]", warnings))
        return items

    def _resolve_primitive(self, node: PrimitiveNode, context: DocumentContext) -> Any:
        value = extract_value(context.query(node.selector), node.attributes)
        if node.pattern is not None:
            value = refine_value(value, node.pattern)
        return coerce_value(value, node.type)

    def _resolve_meta(self, node: MetaNode, context: DocumentContext) -> str:
        if node.meta.lower() == MetaKind.URL.value:
            return context.location or ""
        logger.debug(f"Unknown meta kind '{node.meta}'")
        return ""
