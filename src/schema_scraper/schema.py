"""
Schema module for schema_scraper.

A schema maps result field names to schema nodes. Every node is exactly one of
four variants (meta, array, primitive, nested); raw mappings are classified by
key presence and turned into frozen pydantic models once, when the schema is
built, so the walkers never have to guess a node's shape.
"""

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import SchemaError

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    """The four mutually exclusive schema node shapes."""
    META = "meta"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    NESTED = "nested"


class FieldType(str, Enum):
    """Declared scalar type a primitive value is coerced to."""
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"


class MetaKind(str, Enum):
    """Values injected from the scrape call rather than the document."""
    URL = "url"


# Keys that mark a mapping as a scraping instruction rather than a nested schema
SCRAPING_KEYS = frozenset({
    "selector", "attribute", "pattern", "regex", "type", "meta", "itemSchema", "item_schema",
})

_NODE_CONFIG = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class MetaNode(BaseModel):
    """Resolves to a value of the scrape call, e.g. the source URL."""
    model_config = _NODE_CONFIG

    meta: str

    @field_validator("meta", mode="before")
    @classmethod
    def _meta_name(cls, value: Any) -> Any:
        if isinstance(value, MetaKind):
            return value.value
        return value


class PrimitiveNode(BaseModel):
    """Resolves a single scalar from the first node matching ``selector``."""
    model_config = _NODE_CONFIG

    selector: str
    attribute: Optional[Union[str, Tuple[str, ...]]] = None
    pattern: Optional[Any] = Field(None, validation_alias=AliasChoices("pattern", "regex"))
    type: FieldType = FieldType.STRING

    @field_validator("pattern")
    @classmethod
    def _pattern_type(cls, value: Any) -> Any:
        # Compiled lazily by the walker; a bad pattern only costs its own field
        if value is not None and not isinstance(value, (str, re.Pattern)):
            raise ValueError(f"pattern must be a string or compiled regex, got {type(value).__name__}")
        return value

    @property
    def attributes(self) -> Tuple[str, ...]:
        """Attribute names to try, in order."""
        if self.attribute is None:
            return ()
        if isinstance(self.attribute, str):
            return (self.attribute,)
        return self.attribute


class ArrayNode(BaseModel):
    """Resolves to one ``item_schema`` instance per node matching ``selector``."""
    model_config = _NODE_CONFIG

    selector: str
    item_schema: "NestedNode" = Field(validation_alias=AliasChoices("itemSchema", "item_schema"))


class NestedNode(BaseModel):
    """A schema: ordered mapping of field name to node, resolved as an object."""
    model_config = _NODE_CONFIG

    fields: Dict[str, "SchemaNode"] = Field(default_factory=dict)


SchemaNode = Union[MetaNode, ArrayNode, PrimitiveNode, NestedNode]

ArrayNode.model_rebuild()
NestedNode.model_rebuild()

Schema = NestedNode

_KIND_BY_TYPE = {
    MetaNode: NodeKind.META,
    ArrayNode: NodeKind.ARRAY,
    PrimitiveNode: NodeKind.PRIMITIVE,
    NestedNode: NodeKind.NESTED,
}


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def classify_node(node: Any, path: str = "") -> NodeKind:
    """
    Determine which shape a schema node has.

    The checks run in a fixed order: ``meta``, then ``itemSchema``, then
    ``selector``, then plain mapping. A key whose value is itself a mapping is
    treated as a field name of a nested schema, not as a scraping key.

    Args:
        node: Raw mapping or an already built node
        path: Dotted field path, used in error messages

    Returns:
        The node kind

    Raises:
        SchemaError: If the node matches none of the shapes
    """
    kind = _KIND_BY_TYPE.get(type(node))
    if kind is not None:
        return kind

    if not isinstance(node, Mapping):
        raise SchemaError(f"expected a mapping, got {type(node).__name__}", path)

    if node.get("meta") is not None:
        return NodeKind.META
    if node.get("itemSchema") is not None or node.get("item_schema") is not None:
        return NodeKind.ARRAY
    if node.get("selector") is not None:
        return NodeKind.PRIMITIVE

    instruction_keys = [
        key for key in SCRAPING_KEYS.intersection(node)
        if not isinstance(node[key], Mapping)
    ]
    if not instruction_keys:
        return NodeKind.NESTED

    raise SchemaError(
        f"node has {', '.join(sorted(instruction_keys))} but no selector, meta or itemSchema",
        path,
    )


def _describe(error: ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


def parse_node(raw: Any, path: str = "") -> SchemaNode:
    """
    Build a typed schema node from a raw mapping.

    Args:
        raw: Raw node mapping (or an already built node)
        path: Dotted field path, used in error messages

    Returns:
        The typed node

    Raises:
        SchemaError: If the node is unclassifiable or mixes shapes
    """
    kind = classify_node(raw, path)
    if isinstance(raw, BaseModel):
        return raw

    try:
        if kind is NodeKind.META:
            return MetaNode.model_validate(raw)
        if kind is NodeKind.ARRAY:
            data = dict(raw)
            if "itemSchema" in data and "item_schema" in data:
                raise SchemaError("both itemSchema and item_schema given", path)
            item_raw = data.pop("itemSchema", None)
            if item_raw is None:
                item_raw = data.pop("item_schema")
            data["item_schema"] = parse_schema(item_raw, f"{path}[]")
            return ArrayNode.model_validate(data)
        if kind is NodeKind.PRIMITIVE:
            return PrimitiveNode.model_validate(raw)
    except ValidationError as e:
        raise SchemaError(f"invalid {kind.value} node ({_describe(e)})", path) from e

    return parse_schema(raw, path)


def parse_schema(raw: Any, path: str = "") -> NestedNode:
    """
    Build a schema from a mapping of field name to raw node.

    Args:
        raw: Field mapping, or an existing NestedNode
        path: Dotted path of the schema itself (empty for the root)

    Returns:
        Immutable NestedNode

    Raises:
        SchemaError: If any node is invalid
    """
    if isinstance(raw, NestedNode):
        return raw
    if not isinstance(raw, Mapping):
        raise SchemaError(f"schema must be a mapping, got {type(raw).__name__}", path)

    fields = {}
    for name, value in raw.items():
        if not isinstance(name, str):
            raise SchemaError(f"field names must be strings, got {name!r}", path)
        fields[name] = parse_node(value, _join(path, name))
    return NestedNode(fields=fields)


def load_schema(schema_path: Union[str, Path]) -> NestedNode:
    """
    Load a schema from a JSON file.

    Args:
        schema_path: Path to the JSON schema file

    Returns:
        Parsed schema
    """
    schema_path = Path(schema_path)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    logger.debug(f"Loading schema from: {schema_path}")
    with open(schema_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    return parse_schema(data)
