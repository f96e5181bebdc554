"""
Extraction module for schema_scraper.

Turns matched nodes into a single string, refines it with a capture pattern
and coerces it to the declared field type.
"""

import logging
import re
from typing import Iterable, Optional, Sequence, Union

from .document import HtmlNode
from .schema import FieldType

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def extract_value(
    nodes: Sequence[HtmlNode],
    attribute: Optional[Union[str, Iterable[str]]] = None,
) -> str:
    """
    Resolve matched nodes into a single string.

    Attributes are tried in order against the first node; the first non-empty
    trimmed value wins. Without a usable attribute the trimmed text of the
    first node is returned.

    Args:
        nodes: Nodes matched by the selector, in document order
        attribute: Attribute name or ordered list of attribute names

    Returns:
        Extracted value, or an empty string if nothing matched
    """
    if not nodes:
        return ""

    first = nodes[0]
    if attribute:
        attributes = [attribute] if isinstance(attribute, str) else list(attribute)
        for name in attributes:
            value = (first.attribute(name) or "").strip()
            if value:
                return value

    return first.text().strip()


def refine_value(value: str, pattern: Union[str, "re.Pattern[str]"]) -> str:
    """
    Keep only the first capture group of ``pattern`` found in ``value``.

    Returns an empty string when the pattern does not match. A pattern
    without groups keeps the whole match.

    Raises:
        re.error: If the pattern does not compile
    """
    compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
    match = compiled.search(value)
    if not match:
        return ""
    if compiled.groups == 0:
        return match.group(0)
    return match.group(1) or ""


def coerce_value(raw: str, declared_type: FieldType = FieldType.STRING) -> Union[str, float, bool]:
    """
    Convert an extracted string to the declared scalar type.

    Numbers drop every character other than digits, ``.`` and ``-`` before
    parsing and become ``nan`` when nothing parseable remains. Booleans are
    true for ``"true"`` (any case) or ``"1"``.
    """
    if declared_type is FieldType.NUMBER:
        # Leading numeric prefix only, so "1.2.3" reads as 1.2
        match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", raw))
        if not match:
            logger.debug(f"Cannot parse {raw!r} as a number")
            return float("nan")
        return float(match.group(0))
    if declared_type is FieldType.BOOLEAN:
        return raw.lower() == "true" or raw == "1"
    return raw
