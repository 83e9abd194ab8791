"""
Rendering of leaf values.
"""

import re
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any

from beanscope.core.coercion import to_text, type_name_of
from beanscope.core.nodes import CompositeNode, ElementNode, LeafNode, Node
from beanscope.identity import ObjectName, encode_for_output

OBJECT_NAME_TYPE = "ObjectName"
OBJECT_NAME_ELEMENTS = "objectNameElements"
OBJECT_NAME_ELEMENTS_TYPE = "objectName"

_SCALARS = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    Decimal,
    Enum,
    date,
    datetime,
    time,
    timedelta,
    uuid.UUID,
    PurePath,
    ObjectName,
)

# Characters XML 1.0 cannot carry, plus lone surrogates UTF-8 cannot encode.
_INVALID_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

# Fixed markup cost of one ``<Property Name="" type=""></Property>``.
_MARKUP_OVERHEAD = 40


def clean_text(text: str) -> str:
    """Replace characters that are not allowed in XML documents."""
    return _INVALID_XML_CHARS.sub("\ufffd", text)


class ValueRenderer:
    """Renders scalar values as typed ``LeafNode`` instances."""

    def is_leaf(self, value: Any) -> bool:
        return isinstance(value, _SCALARS)

    def text_of(self, value: Any) -> str:
        if isinstance(value, ObjectName):
            return encode_for_output(value.canonical_name)
        if isinstance(value, Enum):
            return value.name
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).hex()
        if isinstance(value, (date, time)):
            return value.isoformat()
        return clean_text(to_text(value))

    def type_of(self, value: Any) -> str:
        if isinstance(value, ObjectName):
            return OBJECT_NAME_TYPE
        return type_name_of(value)

    def render(self, name: str, value: Any) -> LeafNode:
        return LeafNode(name, self.type_of(value), self.text_of(value))

    def render_identity(self, name: str, object_name: ObjectName) -> list[Node]:
        """
        Render a name as its leaf plus its structured decomposition.

        The decomposition holds the domain and every key property with raw,
        unquoted values.
        """
        elements = CompositeNode(OBJECT_NAME_ELEMENTS, OBJECT_NAME_ELEMENTS_TYPE)
        for key, value in object_name.elements():
            elements.children.append(LeafNode(key, "string", clean_text(value)))
        return [self.render(name, object_name), elements]

    def estimate(self, node: Node) -> int:
        """Approximate number of characters ``node`` adds to a document."""
        if isinstance(node, ElementNode):
            return self.estimate(node.content) + 12
        size = _MARKUP_OVERHEAD + len(node.name) + len(node.type_name)
        if isinstance(node, LeafNode):
            size += len(node.text)
        return size
