"""
Resource documents.

Single resource::

    <Resource version="0.1.0" Name="app.Cache" identity="app:type=Cache">
      <Properties>
        <Property Name="size" type="int">12</Property>
        <Property Name="owner" type="app.User">
          <Property Name="login" type="string">ada</Property>
        </Property>
        <Property Name="tags" type="list">
          <Property Name="tags" index="0" type="string">hot</Property>
        </Property>
      </Properties>
    </Resource>

Many resources are wrapped in ``<Resources version="...">``. A resource
that is not expanded (depth 0, or every attribute excluded) carries its
identity decomposition directly instead of a ``Properties`` element.
Opaque composites carry a ``truncated`` attribute naming the bound that
stopped them.
"""

import io
import re
from collections.abc import Iterable, Mapping
from typing import Any
from xml.sax.saxutils import XMLGenerator
from xml.sax.xmlreader import AttributesImpl

from beanscope.config import CONFIG
from beanscope.core.filters import EXCLUSIONS, AttributeFilter
from beanscope.core.nodes import CompositeNode, ElementNode, LeafNode, Node
from beanscope.core.values import clean_text
from beanscope.core.walker import GraphWalker, WalkLimits, WalkState
from beanscope.errors import BeanScopeError, DocumentSizeExceeded, ErrorCode, RequestError
from beanscope.identity import encode_for_output
from beanscope.logger import get_logger

logger = get_logger(__name__)

RESOURCES_TAG = "Resources"
RESOURCE_TAG = "Resource"
PROPERTIES_TAG = "Properties"
PROPERTY_TAG = "Property"
ERROR_TAG = "Error"

_LIMIT_RE = re.compile(r"\d+\Z")


def _parse_limit(param: str, raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise RequestError(ErrorCode.INVALID_LIMIT, param=param, value=raw)
    if isinstance(raw, int):
        if raw < 0:
            raise RequestError(ErrorCode.INVALID_LIMIT, param=param, value=raw)
        return raw
    text = str(raw).strip()
    if not _LIMIT_RE.match(text):
        raise RequestError(ErrorCode.INVALID_LIMIT, param=param, value=raw)
    return int(text)


def parse_overrides(
    overrides: Mapping[str, Any] | None = None, config=None
) -> WalkLimits:
    """
    Build walk limits from caller overrides.

    ``overrides`` may hold ``max_depth``, ``max_count`` and ``max_size`` as
    integers or decimal strings; missing ones take the configured
    defaults.

    Raises:
        RequestError: ``INVALID_LIMIT`` for a negative or non-numeric value.
    """
    config = config or CONFIG
    overrides = overrides or {}

    max_depth = _parse_limit("max_depth", overrides.get("max_depth"))
    max_count = _parse_limit("max_count", overrides.get("max_count"))
    max_size = _parse_limit("max_size", overrides.get("max_size"))

    return WalkLimits(
        max_depth=config.default_max_depth if max_depth is None else max_depth,
        max_count=config.default_max_count if max_count is None else max_count,
        max_size=config.default_max_size if max_size is None else max_size,
        abs_max_size=config.abs_max_xml_size,
    )


# ─── XML writing ─────────────────────────────────────────────────────


def _new_generator() -> tuple[io.StringIO, XMLGenerator]:
    out = io.StringIO()
    gen = XMLGenerator(out, encoding="utf-8", short_empty_elements=True)
    gen.startDocument()
    return out, gen


def _write_node(gen: XMLGenerator, node: Node) -> None:
    attrs = {"Name": clean_text(node.name)}
    if isinstance(node, ElementNode):
        attrs["index"] = str(node.index)
        node = node.content
    attrs["type"] = clean_text(node.type_name)

    if isinstance(node, LeafNode):
        gen.startElement(PROPERTY_TAG, AttributesImpl(attrs))
        gen.characters(node.text)
        gen.endElement(PROPERTY_TAG)
        return

    if node.truncated:
        attrs["truncated"] = node.truncated
    gen.startElement(PROPERTY_TAG, AttributesImpl(attrs))
    for child in node.children:
        _write_node(gen, child)
    gen.endElement(PROPERTY_TAG)


def _write_resource(gen: XMLGenerator, node: CompositeNode, version: str | None) -> None:
    attrs = {}
    if version is not None:
        attrs["version"] = version
    attrs["Name"] = clean_text(node.type_name)
    if node.identity is not None:
        attrs["identity"] = clean_text(encode_for_output(node.identity.canonical_name))

    gen.startElement(RESOURCE_TAG, AttributesImpl(attrs))
    if node.truncated:
        for child in node.children:
            _write_node(gen, child)
    else:
        gen.startElement(PROPERTIES_TAG, AttributesImpl({}))
        for child in node.children:
            _write_node(gen, child)
        gen.endElement(PROPERTIES_TAG)
    gen.endElement(RESOURCE_TAG)


def error_document(error: BeanScopeError, version: str | None = None) -> str:
    """Render a read-path failure."""
    out, gen = _new_generator()
    attrs = {"version": version or CONFIG.protocol_version, "code": error.code.value}
    gen.startElement(ERROR_TAG, AttributesImpl(attrs))
    gen.characters(clean_text(str(error)))
    gen.endElement(ERROR_TAG)
    gen.endDocument()
    return out.getvalue()


# ─── Serializer ──────────────────────────────────────────────────────


class ResourceSerializer:
    """
    Renders managed resources as XML documents.

    Each call takes one snapshot of the exclusion rules and one walk state,
    so the size accounting and the absolute ceiling cover the whole
    document.
    """

    def __init__(self, exclusions=None, config=None):
        self.exclusions = exclusions or EXCLUSIONS
        self.config = config or CONFIG

    def serialize_one(
        self,
        store: str,
        resource: Any,
        overrides: Mapping[str, Any] | WalkLimits | None = None,
        query: str | None = None,
    ) -> str:
        """
        Render a single resource document.

        Raises:
            RequestError: For invalid overrides.
            DocumentSizeExceeded: If the absolute ceiling is passed.
        """
        limits = self._limits(overrides)
        query = query or _identity_text(resource)
        state = WalkState(query=query)
        node = self._walk(store, resource, limits, state, AttributeFilter(self.exclusions.current()))

        out, gen = _new_generator()
        _write_resource(gen, node, self.config.protocol_version)
        gen.endDocument()
        return self._checked(out.getvalue(), limits, query)

    def serialize_many(
        self,
        resources: Mapping[str, Iterable[Any]],
        overrides: Mapping[str, Any] | WalkLimits | None = None,
        query: str | None = None,
    ) -> str:
        """
        Render every resource of every store into one ``Resources`` document.

        Args:
            resources: Store name to the resources matched in that store.
            overrides: Caller limits (see ``parse_overrides``).
            query: The query that selected the resources; named in the
                error raised when the absolute ceiling is passed.

        Raises:
            RequestError: For invalid overrides.
            DocumentSizeExceeded: If the document as a whole passes the
                absolute ceiling; nothing is returned for any resource.
        """
        limits = self._limits(overrides)
        state = WalkState(query=query)
        attribute_filter = AttributeFilter(self.exclusions.current())

        out, gen = _new_generator()
        gen.startElement(
            RESOURCES_TAG, AttributesImpl({"version": self.config.protocol_version})
        )
        total = 0
        for store, members in resources.items():
            for resource in members:
                node = self._walk(store, resource, limits, state, attribute_filter)
                _write_resource(gen, node, None)
                total += 1
        gen.endElement(RESOURCES_TAG)
        gen.endDocument()

        logger.debug(f"Rendered {total} resources for '{query}' ({state.size} chars estimated)")
        return self._checked(out.getvalue(), limits, query)

    # ─── Internals ───────────────────────────────────────────────────

    def _limits(self, overrides) -> WalkLimits:
        if isinstance(overrides, WalkLimits):
            return overrides
        return parse_overrides(overrides, self.config)

    @staticmethod
    def _walk(store, resource, limits, state, attribute_filter) -> CompositeNode:
        walker = GraphWalker(attribute_filter=attribute_filter, store=store)
        node = walker.walk(resource, limits, state)
        if node.identity is None:
            return node
        return attribute_filter.apply(store, node.identity, node)

    @staticmethod
    def _checked(document: str, limits: WalkLimits, query: str | None) -> str:
        if len(document) > limits.abs_max_size:
            logger.warning(
                f"Document for '{query}' is {len(document)} characters, "
                f"over the {limits.abs_max_size} ceiling"
            )
            raise DocumentSizeExceeded(limits.abs_max_size, query)
        return document


def _identity_text(resource: Any) -> str | None:
    name = getattr(resource, "object_name", None)
    return None if name is None else str(name)
