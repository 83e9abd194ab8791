"""
Attribute exclusion rules.

Rules are read from YAML::

    exclusions:
      - store: "*"
        resource: "python:type=Runtime"
        attributes: [environment]

``store`` is a store name or ``*``-pattern, ``resource`` a resource name
pattern (``*`` alone matches every resource) and ``attributes`` the
attribute names to drop; the attribute ``*`` drops them all and leaves an
identity-only node.

The active rule set is an immutable ``ExclusionRules`` snapshot held by
``EXCLUSIONS``; reloading builds a new snapshot and swaps it in.
"""

import fnmatch
import threading
from dataclasses import replace
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from beanscope.core.nodes import TRUNCATED_EXCLUDED, CompositeNode, LeafNode
from beanscope.core.values import OBJECT_NAME_ELEMENTS, OBJECT_NAME_TYPE, ValueRenderer
from beanscope.errors import RequestError
from beanscope.identity import ObjectName
from beanscope.logger import get_logger

logger = get_logger(__name__)

WILDCARD = "*"


class FilterRule(BaseModel):
    """One (store pattern, resource pattern, attributes) exclusion."""

    model_config = ConfigDict(frozen=True)

    store: str = WILDCARD
    resource: str = WILDCARD
    attributes: tuple[str, ...] = Field(default=(WILDCARD,))

    _resource_pattern: ObjectName | None = PrivateAttr(default=None)

    @field_validator("resource")
    @classmethod
    def _check_resource(cls, value: str) -> str:
        if value != WILDCARD:
            try:
                ObjectName.parse(value)
            except RequestError as e:
                raise ValueError(str(e)) from e
        return value

    def model_post_init(self, context) -> None:
        if self.resource != WILDCARD:
            self._resource_pattern = ObjectName.parse(self.resource)

    def applies_to(self, store: str, identity: ObjectName) -> bool:
        if self.store != WILDCARD and not fnmatch.fnmatchcase(store, self.store):
            return False
        pattern = self._resource_pattern
        if pattern is None:
            return True
        return pattern.matches(identity)


class _ExclusionFile(BaseModel):
    exclusions: list[FilterRule] = Field(default_factory=list)


class ExclusionRules:
    """Immutable set of rules."""

    def __init__(self, rules: list[FilterRule] | tuple[FilterRule, ...] = ()):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[FilterRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def excluded(self, store: str, identity: ObjectName) -> frozenset[str]:
        """Every attribute name excluded for ``identity`` in ``store``."""
        names: set[str] = set()
        for rule in self._rules:
            if rule.applies_to(store, identity):
                names.update(rule.attributes)
        return frozenset(names)

    @classmethod
    def from_yaml(cls, text: str) -> "ExclusionRules":
        """
        Parse rules from YAML text.

        Raises:
            ValueError: If the text is not a valid exclusions document.
        """
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError("Exclusions document must be a mapping")
        try:
            parsed = _ExclusionFile(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid exclusions: {e}") from e
        return cls(parsed.exclusions)


class ExclusionRegistry:
    """Process-wide holder of the active ``ExclusionRules``."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current = ExclusionRules()

    def current(self) -> ExclusionRules:
        return self._current

    def swap(self, rules: ExclusionRules) -> ExclusionRules:
        with self._lock:
            previous, self._current = self._current, rules
        logger.info(f"Loaded {len(rules)} exclusion rules")
        return previous

    def load_string(self, text: str) -> ExclusionRules:
        rules = ExclusionRules.from_yaml(text)
        self.swap(rules)
        return rules

    def load_file(self, path: Path | str) -> ExclusionRules:
        path = Path(path)
        if not path.exists():
            logger.debug(f"No exclusions file at {path}")
            rules = ExclusionRules()
        else:
            rules = ExclusionRules.from_yaml(path.read_text(encoding="utf-8"))
        self.swap(rules)
        return rules

    def clear(self) -> None:
        self.swap(ExclusionRules())


EXCLUSIONS = ExclusionRegistry()


class AttributeFilter:
    """Applies one ``ExclusionRules`` snapshot to resource nodes."""

    def __init__(self, rules: ExclusionRules | None = None, renderer: ValueRenderer | None = None):
        self.rules = rules if rules is not None else EXCLUSIONS.current()
        self.renderer = renderer or ValueRenderer()

    def excluded(self, store: str, identity: ObjectName) -> frozenset[str]:
        return self.rules.excluded(store, identity)

    def apply(self, store: str, identity: ObjectName, node: CompositeNode) -> CompositeNode:
        """
        Drop the immediate children of ``node`` excluded for ``identity``.

        A ``*`` rule leaves an identity-only node. An identity-valued
        property is dropped together with its decomposition. Nested nodes
        are left untouched.
        """
        excluded = self.excluded(store, identity)
        if not excluded:
            return node
        if WILDCARD in excluded:
            if node.truncated == TRUNCATED_EXCLUDED:
                return node
            children = self.renderer.render_identity("objectName", identity)
            return replace(node, children=children, truncated=TRUNCATED_EXCLUDED)

        kept = []
        dropped_identity = False
        for child in node.children:
            if child.name == OBJECT_NAME_ELEMENTS and dropped_identity:
                dropped_identity = False
                continue
            dropped_identity = False
            if child.name in excluded:
                dropped_identity = (
                    isinstance(child, LeafNode) and child.type_name == OBJECT_NAME_TYPE
                )
                continue
            kept.append(child)
        return replace(node, children=kept)
