"""
Conversion between textual values and typed values.

Declared type names are matched case-insensitively and grouped into
families; every alias of a family is interchangeable (``int``,
``integer`` and ``java.lang.Integer`` all name the ``int`` family).
"""

import re
from typing import Any

from beanscope.errors import ErrorCode, ResolutionError

VOID = "void"

TYPE_ALIASES: dict[str, tuple[str, ...]] = {
    "int": ("int", "integer", "java.lang.integer"),
    "long": ("long", "java.lang.long"),
    "short": ("short", "java.lang.short"),
    "byte": ("byte", "java.lang.byte"),
    "float": ("float", "java.lang.float"),
    "double": ("double", "java.lang.double"),
    "string": ("string", "str", "java.lang.string"),
    "char": ("char", "character", "java.lang.character"),
    "boolean": ("boolean", "bool", "java.lang.boolean"),
}

_FAMILY_BY_ALIAS = {
    alias: family for family, aliases in TYPE_ALIASES.items() for alias in aliases
}

_INTEGER_RANGES = {
    "byte": (-(2**7), 2**7 - 1),
    "short": (-(2**15), 2**15 - 1),
    "int": (-(2**31), 2**31 - 1),
    "long": (-(2**63), 2**63 - 1),
}

_INTEGER_RE = re.compile(r"[+-]?\d+\Z")

# Python annotation -> declared family
_PY_TYPES = {
    bool: "boolean",
    int: "int",
    float: "double",
    str: "string",
}


def canonical_type(type_name: str | None) -> str | None:
    """Return the family of a declared type name, or None if unknown."""
    if type_name is None:
        return None
    return _FAMILY_BY_ALIAS.get(type_name.strip().lower())


def same_type(a: str, b: str) -> bool:
    """True if both names are known and belong to the same family."""
    fa, fb = canonical_type(a), canonical_type(b)
    return fa is not None and fa == fb


def type_for_annotation(annotation: Any) -> str | None:
    """Map a Python annotation (or annotation string) to a family name."""
    if annotation is None or annotation is type(None):
        return VOID
    if isinstance(annotation, str):
        if annotation == "None":
            return VOID
        return canonical_type(annotation)
    return _PY_TYPES.get(annotation)


def type_name_of(value: Any) -> str:
    """Declared type name used when rendering ``value``."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        low, high = _INTEGER_RANGES["int"]
        return "int" if low <= value <= high else "long"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    cls = type(value)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def to_text(value: Any) -> str:
    """Render a scalar the way ``coerce`` reads it back."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


class TypeCoercer:
    """Turns (text, declared type) pairs into typed values."""

    def coerce(self, text: str | None, type_name: str, index: int = 1) -> Any:
        """
        Convert ``text`` to the family named by ``type_name``.

        Args:
            text: Raw parameter text; None is treated as empty.
            type_name: Declared type name of the parameter.
            index: 1-based parameter position, used in error messages.

        Raises:
            ResolutionError: ``PARAM_TYPE_INVALID`` for an unknown type,
                ``PARAM_VALUE_INVALID`` when the text does not convert.
                Empty text is only accepted for the string family.
        """
        family = canonical_type(type_name)
        if family is None:
            raise ResolutionError(
                ErrorCode.PARAM_TYPE_INVALID,
                index=index,
                operation="?",
                actual=type_name,
                expected="a known type",
            )

        text = "" if text is None else text
        if family == "string":
            return text

        if text == "":
            raise self._invalid(index, text, family)

        if family in _INTEGER_RANGES:
            if not _INTEGER_RE.match(text):
                raise self._invalid(index, text, family)
            value = int(text)
            low, high = _INTEGER_RANGES[family]
            if not low <= value <= high:
                raise self._invalid(index, text, family)
            return value

        if family in ("float", "double"):
            if "_" in text:
                raise self._invalid(index, text, family)
            try:
                return float(text)
            except ValueError:
                raise self._invalid(index, text, family) from None

        if family == "boolean":
            lowered = text.strip().lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            raise self._invalid(index, text, family)

        # char
        return text[0]

    @staticmethod
    def _invalid(index: int, text: str, family: str) -> ResolutionError:
        return ResolutionError(
            ErrorCode.PARAM_VALUE_INVALID, index=index, value=text, type=family
        )
