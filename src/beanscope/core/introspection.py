"""
Property enumeration for arbitrary objects.

The graph walker only ever sees ``Introspectable`` views. Objects that
implement the protocol themselves are used as-is; anything else is
adapted by ``introspect``.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Introspectable(Protocol):
    def property_names(self) -> list[str]: ...

    def property_value(self, name: str) -> Any: ...


class _MappingView:
    def __init__(self, mapping: Mapping):
        self._keys = {str(k): k for k in mapping}
        self._mapping = mapping

    def property_names(self) -> list[str]:
        return list(self._keys)

    def property_value(self, name: str) -> Any:
        return self._mapping[self._keys[name]]


class _ObjectView:
    def __init__(self, obj: Any, names: list[str]):
        self._obj = obj
        self._names = names

    def property_names(self) -> list[str]:
        return self._names

    def property_value(self, name: str) -> Any:
        return getattr(self._obj, name)


def _public_attributes(obj: Any) -> list[str]:
    cls = type(obj)
    names = [
        name
        for name, value in getattr(obj, "__dict__", {}).items()
        if not name.startswith("_") and not callable(value)
    ]

    for klass in cls.__mro__:
        slots = getattr(klass, "__slots__", ())
        for name in [slots] if isinstance(slots, str) else slots:
            if not name.startswith("_") and name not in names:
                names.append(name)

    for name in sorted(dir(cls)):
        if name.startswith("_") or name in names:
            continue
        if isinstance(getattr(cls, name, None), property):
            names.append(name)

    return names


def introspect(obj: Any) -> Introspectable:
    """
    Return an ``Introspectable`` view of ``obj``.

    Dataclasses expose their fields, pydantic models their model fields,
    mappings their keys (as strings) and other objects their public
    instance attributes followed by their public properties.
    """
    if isinstance(obj, Introspectable):
        return obj
    if isinstance(obj, Mapping):
        return _MappingView(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _ObjectView(obj, [f.name for f in dataclasses.fields(obj)])
    if isinstance(obj, BaseModel):
        return _ObjectView(obj, list(type(obj).model_fields))
    return _ObjectView(obj, _public_attributes(obj))
