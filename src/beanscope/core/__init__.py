"""
Read path for beanscope.

Walks the object graph behind a managed resource into a bounded tree of
nodes, applies attribute exclusions and renders the result as XML.
"""

from beanscope.core.coercion import TypeCoercer
from beanscope.core.filters import (
    EXCLUSIONS,
    AttributeFilter,
    ExclusionRegistry,
    ExclusionRules,
    FilterRule,
)
from beanscope.core.introspection import Introspectable, introspect
from beanscope.core.nodes import CompositeNode, ElementNode, LeafNode
from beanscope.core.serializer import ResourceSerializer, parse_overrides
from beanscope.core.values import ValueRenderer
from beanscope.core.walker import GraphWalker, WalkLimits, WalkState

__all__ = [
    "EXCLUSIONS",
    "AttributeFilter",
    "CompositeNode",
    "ElementNode",
    "ExclusionRegistry",
    "ExclusionRules",
    "FilterRule",
    "GraphWalker",
    "Introspectable",
    "LeafNode",
    "ResourceSerializer",
    "TypeCoercer",
    "ValueRenderer",
    "WalkLimits",
    "WalkState",
    "introspect",
    "parse_overrides",
]
