"""
Output tree produced by the graph walker.

A walk yields a tree of ``LeafNode`` (scalar value), ``CompositeNode``
(object with named children) and ``ElementNode`` (one indexed item of a
sequence) instances. The tree is plain data; rendering to XML happens in
``beanscope.core.serializer``.
"""

from dataclasses import dataclass, field
from typing import Union

from beanscope.identity import ObjectName

# Reasons a composite was left unexpanded.
TRUNCATED_DEPTH = "depth"
TRUNCATED_COUNT = "count"
TRUNCATED_SIZE = "size"
TRUNCATED_CYCLE = "cycle"
TRUNCATED_EXCLUDED = "excluded"


@dataclass
class LeafNode:
    name: str
    type_name: str
    text: str


@dataclass
class CompositeNode:
    name: str
    type_name: str
    children: list["Node"] = field(default_factory=list)
    identity: ObjectName | None = None
    truncated: str | None = None

    @property
    def opaque(self) -> bool:
        return self.truncated is not None

    def child(self, name: str) -> "Node | None":
        """First direct child called ``name``."""
        return next((c for c in self.children if c.name == name), None)


@dataclass
class ElementNode:
    """An item of a sequence; ``content`` carries the item's own node."""

    name: str
    index: int
    content: LeafNode | CompositeNode


Node = Union[LeafNode, CompositeNode, ElementNode]
