"""
Document module for schema_scraper.

Thin wrapper around BeautifulSoup exposing the few operations the walkers
need: CSS selector queries, text and attribute access, and serialization of a
single node so array items can be re-parsed into their own document.
"""

from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

DEFAULT_PARSER = "html.parser"


class HtmlNode:
    """A matched element."""

    def __init__(self, tag: Tag):
        self._tag = tag

    def text(self) -> str:
        return self._tag.get_text()

    def attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def serialize(self) -> str:
        return str(self._tag)

    def __repr__(self) -> str:
        return f"HtmlNode(<{self._tag.name}>)"


class HtmlDocument:
    """A parsed, queryable markup tree."""

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    @classmethod
    def parse(cls, markup: str, parser: str = DEFAULT_PARSER) -> "HtmlDocument":
        # class/rel etc. stay plain strings so attribute() returns them verbatim
        return cls(BeautifulSoup(markup, parser, multi_valued_attributes=None))

    def query(self, selector: str) -> List[HtmlNode]:
        """
        Return every element matching a CSS selector, in document order.

        Raises whatever soupsieve raises for an invalid selector.
        """
        return [HtmlNode(tag) for tag in self._soup.select(selector)]

    def serialize(self) -> str:
        return self._soup.decode()


@dataclass(frozen=True)
class DocumentContext:
    """Parsed document plus the location it was loaded from, if any."""

    document: HtmlDocument
    location: Optional[str] = None
    parser: str = DEFAULT_PARSER

    @classmethod
    def from_markup(
        cls,
        markup: str,
        location: Optional[str] = None,
        parser: str = DEFAULT_PARSER,
    ) -> "DocumentContext":
        return cls(HtmlDocument.parse(markup, parser), location, parser)

    def query(self, selector: str) -> List[HtmlNode]:
        return self.document.query(selector)

    def rescope(self, node: HtmlNode, location: Optional[str] = None) -> "DocumentContext":
        """
        Build an independent context containing only ``node``.

        The node is serialized and parsed again, so selectors run against the
        new context only see that node and its descendants (the node itself
        included).
        """
        return DocumentContext.from_markup(node.serialize(), location, self.parser)
