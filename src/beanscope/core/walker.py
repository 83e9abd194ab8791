"""
Bounded traversal of object graphs.

``GraphWalker.walk`` turns the graph reachable from a root object into a
tree of nodes. Expansion is bounded by depth, by the number of emitted
nodes and by a soft size estimate; a composite that hits any of these
bounds, or that is already being expanded higher up the current path, is
emitted as an opaque node. Only the absolute size ceiling is fatal.
"""

from collections.abc import Set as AbstractSet
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from beanscope.core.coercion import type_name_of
from beanscope.core.introspection import introspect
from beanscope.core.nodes import (
    TRUNCATED_COUNT,
    TRUNCATED_CYCLE,
    TRUNCATED_DEPTH,
    TRUNCATED_EXCLUDED,
    TRUNCATED_SIZE,
    CompositeNode,
    ElementNode,
    LeafNode,
    Node,
)
from beanscope.core.values import ValueRenderer
from beanscope.errors import DocumentSizeExceeded
from beanscope.identity import ObjectName
from beanscope.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 2
ABS_MAX_SIZE = 4 * 1024 * 1024

ALL_ATTRIBUTES = "*"


@dataclass(frozen=True)
class WalkLimits:
    """Bounds for one walk. ``None`` means unbounded below the ceiling."""

    max_depth: int = DEFAULT_MAX_DEPTH
    max_count: int | None = None
    max_size: int | None = None
    abs_max_size: int = ABS_MAX_SIZE


@dataclass
class WalkState:
    """
    Mutable context shared by every walk that feeds one document.

    ``path`` holds the ids of the composites currently being expanded,
    including the objects wrapped by managed resources; an id on the path
    is never expanded again.
    """

    query: str | None = None
    count: int = 0
    size: int = 0
    path: set[int] = field(default_factory=set)

    def charge(self, amount: int, limits: WalkLimits) -> None:
        self.size += amount
        if self.size > limits.abs_max_size:
            logger.warning(
                f"Document for '{self.query}' passed the {limits.abs_max_size} "
                f"character ceiling"
            )
            raise DocumentSizeExceeded(limits.abs_max_size, self.query)

    def count_exhausted(self, limits: WalkLimits) -> bool:
        return limits.max_count is not None and self.count >= limits.max_count

    def size_exhausted(self, limits: WalkLimits) -> bool:
        return limits.max_size is not None and self.size > limits.max_size


def declared_type(value: Any) -> str:
    """Declared type name of a composite value."""
    declared = getattr(value, "declared_type", None)
    if isinstance(declared, str):
        return declared
    return type_name_of(value)


def identity_of(value: Any) -> ObjectName | None:
    name = getattr(value, "object_name", None)
    return name if isinstance(name, ObjectName) else None


def path_keys(value: Any) -> frozenset[int]:
    """Ids that stand for ``value`` on the cycle path."""
    keys = {id(value)}
    if identity_of(value) is not None and hasattr(value, "target"):
        keys.add(id(value.target))
    return frozenset(keys)


def is_sequence(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray)):
        return False
    return isinstance(value, (Sequence, AbstractSet))


class GraphWalker:
    """
    Walks object graphs into node trees.

    Args:
        renderer: Renders scalar leaves. Defaults to ``ValueRenderer()``.
        attribute_filter: Optional filter consulted for every composite that
            carries its own identity; its excluded attributes are never read.
        store: Store name passed to the filter.
    """

    def __init__(
        self,
        renderer: ValueRenderer | None = None,
        attribute_filter=None,
        store: str = "*",
    ):
        self.renderer = renderer or ValueRenderer()
        self.attribute_filter = attribute_filter
        self.store = store

    def walk(
        self,
        root: Any,
        limits: WalkLimits | None = None,
        state: WalkState | None = None,
        name: str | None = None,
    ) -> CompositeNode:
        """
        Walk the graph reachable from ``root``.

        The root sits at depth 0 and is only expanded when ``max_depth`` is
        above 0. An unexpanded root, or one whose identity excludes every
        attribute, carries its identity decomposition instead of properties.

        Raises:
            DocumentSizeExceeded: If the absolute ceiling is passed.
        """
        limits = limits or WalkLimits()
        state = state if state is not None else WalkState()

        identity = identity_of(root)
        type_name = declared_type(root)
        node = CompositeNode(name or type_name, type_name, identity=identity)
        state.charge(self.renderer.estimate(node), limits)

        excluded = self._excluded(identity)
        if limits.max_depth <= 0:
            node.truncated = TRUNCATED_DEPTH
        elif ALL_ATTRIBUTES in excluded:
            logger.debug(f"All attributes of {identity} are excluded")
            node.truncated = TRUNCATED_EXCLUDED

        if node.truncated:
            if identity is not None:
                for child in self.renderer.render_identity("objectName", identity):
                    self._emit(child, state, limits)
                    node.children.append(child)
            return node

        keys = path_keys(root) - state.path
        state.path.update(keys)
        try:
            self._expand(node, root, 0, excluded, limits, state)
        finally:
            state.path.difference_update(keys)
        return node

    # ─── Internals ───────────────────────────────────────────────────

    def _excluded(self, identity: ObjectName | None) -> frozenset[str]:
        if identity is None or self.attribute_filter is None:
            return frozenset()
        return self.attribute_filter.excluded(self.store, identity)

    def _emit(self, node: Node, state: WalkState, limits: WalkLimits) -> None:
        state.count += 1
        state.charge(self.renderer.estimate(node), limits)

    def _expand(
        self,
        node: CompositeNode,
        obj: Any,
        depth: int,
        excluded: frozenset[str],
        limits: WalkLimits,
        state: WalkState,
    ) -> None:
        view = introspect(obj)
        try:
            names = list(view.property_names())
        except Exception as e:
            logger.debug(f"Cannot list properties of {node.type_name}: {e}")
            return

        for prop in names:
            if prop in excluded:
                logger.debug(f"Excluding attribute '{prop}' of {node.identity}")
                continue
            try:
                value = view.property_value(prop)
            except Exception as e:
                logger.debug(f"Skipping property '{prop}' of {node.type_name}: {e}")
                continue
            node.children.extend(self._property(prop, value, depth + 1, limits, state))

    def _property(
        self, name: str, value: Any, depth: int, limits: WalkLimits, state: WalkState
    ) -> list[Node]:
        if value is None:
            return []
        if isinstance(value, ObjectName):
            rendered = self.renderer.render_identity(name, value)
            for child in rendered:
                self._emit(child, state, limits)
            return rendered
        return [self._value(name, value, depth, limits, state)]

    def _value(
        self, name: str, value: Any, depth: int, limits: WalkLimits, state: WalkState
    ) -> LeafNode | CompositeNode:
        if self.renderer.is_leaf(value):
            leaf = self.renderer.render(name, value)
            self._emit(leaf, state, limits)
            return leaf

        identity = identity_of(value)
        node = CompositeNode(name, declared_type(value), identity=identity)
        self._emit(node, state, limits)

        node.truncated = self._stop_reason(value, depth, limits, state)
        excluded = self._excluded(identity)
        if node.truncated is None and ALL_ATTRIBUTES in excluded:
            node.truncated = TRUNCATED_EXCLUDED
        if node.truncated:
            logger.debug(f"Not expanding '{name}' ({node.truncated})")
            return node

        keys = path_keys(value)
        state.path.update(keys)
        try:
            if is_sequence(value):
                self._expand_sequence(node, value, depth, limits, state)
            else:
                self._expand(node, value, depth, excluded, limits, state)
        finally:
            state.path.difference_update(keys)
        return node

    def _expand_sequence(
        self,
        node: CompositeNode,
        items: Any,
        depth: int,
        limits: WalkLimits,
        state: WalkState,
    ) -> None:
        for index, item in enumerate(items):
            if item is None:
                continue
            content = self._value(node.name, item, depth + 1, limits, state)
            node.children.append(ElementNode(node.name, index, content))

    @staticmethod
    def _stop_reason(
        value: Any, depth: int, limits: WalkLimits, state: WalkState
    ) -> str | None:
        if not state.path.isdisjoint(path_keys(value)):
            return TRUNCATED_CYCLE
        if depth >= limits.max_depth:
            return TRUNCATED_DEPTH
        if state.count_exhausted(limits):
            return TRUNCATED_COUNT
        if state.size_exhausted(limits):
            return TRUNCATED_SIZE
        return None
