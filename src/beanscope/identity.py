"""
Structured resource names.

A name is a *domain* plus an ordered list of ``key=value`` properties,
written ``domain:key1=value1,key2=value2``. Values holding reserved
characters are written quoted (``key="a,b"``). A name may also be a
pattern: ``*``/``?`` wildcards in the domain or in unquoted values, and a
trailing ``*`` in the property list meaning "any other properties".
"""

import re
from functools import cached_property

from beanscope.errors import ErrorCode, RequestError

# Characters that force a value to be quoted on output.
_RESERVED_VALUE_CHARS = set(',=:"*?\n\\')
_INVALID_KEY_CHARS = set(':,=*?"\n')
_WILDCARDS = set("*?")

# Legacy encoding of ':' inside values, decoded on output.
_LEGACY_COLON = "&colon;"


def quote(value: str) -> str:
    """Quote a value so it may hold any character."""
    out = ['"']
    for ch in value:
        if ch in '"*?\\':
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\n")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def unquote(text: str) -> str:
    """
    Reverse ``quote``.

    Raises:
        ValueError: If ``text`` is not a well formed quoted value.
    """
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise ValueError(f"Not a quoted value: {text!r}")
    out = []
    i = 1
    end = len(text) - 1
    while i < end:
        ch = text[i]
        if ch == "\\":
            if i + 1 >= end:
                raise ValueError(f"Dangling escape in {text!r}")
            nxt = text[i + 1]
            if nxt == "n":
                out.append("\n")
            elif nxt in '"*?\\':
                out.append(nxt)
            else:
                raise ValueError(f"Invalid escape \\{nxt} in {text!r}")
            i += 2
            continue
        if ch == '"':
            raise ValueError(f"Unescaped quote in {text!r}")
        out.append(ch)
        i += 1
    return "".join(out)


def encode_for_output(text: str) -> str:
    """Escape an identity string for output documents."""
    return text.replace(_LEGACY_COLON, ":").replace("%", "%25")


def decode_from_output(text: str) -> str:
    """Reverse ``encode_for_output``."""
    return text.replace("%25", "%")


def _wildcard_regex(pattern: str) -> re.Pattern:
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


def _split_outside_quotes(text: str, sep: str) -> list[str]:
    """Split on ``sep`` ignoring separators inside double quotes."""
    pieces = []
    current = []
    in_quotes = False
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and in_quotes:
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            in_quotes = not in_quotes
        if ch == sep and not in_quotes:
            pieces.append("".join(current))
            current = []
            continue
        current.append(ch)
    pieces.append("".join(current))
    return pieces


class ObjectName:
    """An immutable, possibly wildcarded, resource name."""

    def __init__(
        self,
        domain: str,
        properties: list[tuple[str, str]] | dict[str, str] | None = None,
        property_pattern: bool = False,
        value_patterns: set[str] | None = None,
    ):
        items = list(properties.items()) if isinstance(properties, dict) else list(properties or [])
        seen = set()
        for key, _ in items:
            if not key or _INVALID_KEY_CHARS & set(key):
                raise ValueError(f"Invalid property key {key!r}")
            if key in seen:
                raise ValueError(f"Duplicate property key {key!r}")
            seen.add(key)
        if ":" in domain or "\n" in domain:
            raise ValueError(f"Invalid domain {domain!r}")
        if not items and not property_pattern:
            raise ValueError("A name needs at least one key property")

        self.domain = domain
        self._props = tuple(items)
        self._patterns = frozenset(value_patterns or ())
        self.property_pattern = property_pattern

    # ─── Parsing ─────────────────────────────────────────────────────

    @classmethod
    def parse(cls, text: str) -> "ObjectName":
        """
        Parse a name or pattern.

        Raises:
            RequestError: ``MALFORMED_NAME`` if the text is not a valid name.
        """
        try:
            return cls._parse_strict(text)
        except ValueError as e:
            raise RequestError(ErrorCode.MALFORMED_NAME, name=text) from e

    @classmethod
    def parse_lenient(cls, text: str) -> "ObjectName":
        """
        Parse a name whose values were written without the required quoting.

        Values are taken verbatim (properly quoted values are still
        unquoted). Wildcards are not recognised in values.

        Raises:
            RequestError: ``MALFORMED_NAME`` if even the lenient form fails.
        """
        if text is None or ":" not in text:
            raise RequestError(ErrorCode.MALFORMED_NAME, name=text)
        domain, _, rest = text.partition(":")
        props = []
        pattern = False
        for piece in _split_outside_quotes(rest, ","):
            if piece == "*":
                pattern = True
                continue
            key, sep, value = piece.partition("=")
            if not sep:
                value = ""
            if value.startswith('"') and value.endswith('"') and len(value) >= 2:
                try:
                    value = unquote(value)
                except ValueError:
                    pass
            props.append((key, value))
        try:
            return cls(domain, props, property_pattern=pattern)
        except ValueError as e:
            raise RequestError(ErrorCode.MALFORMED_NAME, name=text) from e

    @classmethod
    def _parse_strict(cls, text: str) -> "ObjectName":
        if text is None:
            raise ValueError("Name is missing")
        domain, sep, rest = text.partition(":")
        if not sep:
            raise ValueError(f"No domain separator in {text!r}")
        if not rest:
            raise ValueError(f"Empty property list in {text!r}")

        props = []
        patterns = set()
        property_pattern = False
        for piece in _split_outside_quotes(rest, ","):
            if piece == "*":
                if property_pattern:
                    raise ValueError("Repeated property wildcard")
                property_pattern = True
                continue
            key, eq, value = piece.partition("=")
            if not eq or not value:
                raise ValueError(f"Invalid key property {piece!r}")
            if value.startswith('"'):
                value = unquote(value)
            else:
                if set(value) & set(',=:"\n'):
                    raise ValueError(f"Invalid unquoted value {value!r}")
                if set(value) & _WILDCARDS:
                    patterns.add(key)
            props.append((key, value))
        return cls(domain, props, property_pattern, patterns)

    # ─── Views ───────────────────────────────────────────────────────

    @property
    def properties(self) -> dict[str, str]:
        return dict(self._props)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.properties.get(key, default)

    def _format_value(self, key: str, value: str) -> str:
        if key in self._patterns:
            return value
        if _RESERVED_VALUE_CHARS & set(value):
            return quote(value)
        return value

    def _format(self, items) -> str:
        body = ",".join(f"{k}={self._format_value(k, v)}" for k, v in items)
        if self.property_pattern:
            body = f"{body},*" if body else "*"
        return f"{self.domain}:{body}"

    @cached_property
    def canonical_name(self) -> str:
        """Name with properties sorted by key."""
        return self._format(sorted(self._props))

    @cached_property
    def key_property_list(self) -> str:
        """Name with properties in declaration order."""
        return self._format(self._props)

    def elements(self) -> list[tuple[str, str]]:
        """Structured decomposition: domain first, then raw property values."""
        return [("Domain", self.domain)] + list(self._props)

    @property
    def is_domain_pattern(self) -> bool:
        return bool(set(self.domain) & _WILDCARDS)

    @property
    def is_pattern(self) -> bool:
        return self.is_domain_pattern or self.property_pattern or bool(self._patterns)

    # ─── Matching ────────────────────────────────────────────────────

    def matches(self, other: "ObjectName") -> bool:
        """True if ``other`` (a concrete name) is selected by this pattern."""
        if other.is_pattern:
            return False

        if self.is_domain_pattern:
            if not _wildcard_regex(self.domain).match(other.domain):
                return False
        elif self.domain != other.domain:
            return False

        theirs = other.properties
        for key, value in self._props:
            if key not in theirs:
                return False
            if key in self._patterns:
                if not _wildcard_regex(value).match(theirs[key]):
                    return False
            elif theirs[key] != value:
                return False

        if not self.property_pattern and len(theirs) != len(self._props):
            return False
        return True

    # ─── Dunder ──────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectName):
            return NotImplemented
        return self.canonical_name == other.canonical_name

    def __hash__(self) -> int:
        return hash(self.canonical_name)

    def __str__(self) -> str:
        return self.canonical_name

    def __repr__(self) -> str:
        return f"ObjectName({self.canonical_name!r})"
