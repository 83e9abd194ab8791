"""
Managed resources and their operations.

A ``ManagedResource`` wraps any Python object under an ``ObjectName``.
Its attributes are read through introspection; its operations are the
target's methods decorated with ``@managed_operation``::

    class Cache:
        @managed_operation(name="evict")
        def evict_all(self) -> None: ...

        @managed_operation(name="evict", params=[("key", "string")])
        def evict_one(self, key): ...

Several methods may share one exposed name (overloads) as long as their
parameter type sequences differ.
"""

import inspect
import typing
from dataclasses import dataclass, field
from typing import Any, Callable

from beanscope.core.coercion import VOID, canonical_type, type_for_annotation, type_name_of
from beanscope.core.introspection import introspect
from beanscope.identity import ObjectName
from beanscope.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class OperationParam:
    name: str
    type_name: str


@dataclass(frozen=True)
class OperationSignature:
    """
    Exposed shape of one operation.

    ``returns`` is a declared type name, ``"void"``, or None when the type
    is only known from the value returned at run time.
    """

    name: str
    params: tuple[OperationParam, ...] = ()
    returns: str | None = VOID
    description: str = ""

    @property
    def param_types(self) -> tuple[str, ...]:
        return tuple(p.type_name for p in self.params)

    @property
    def key(self) -> tuple[str, tuple[str | None, ...]]:
        return self.name, tuple(canonical_type(t) for t in self.param_types)

    @property
    def is_void(self) -> bool:
        return self.returns == VOID

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "params": [{"name": p.name, "type": p.type_name} for p in self.params],
            "returns": self.returns,
        }


@dataclass
class BoundOperation:
    signature: OperationSignature
    fn: Callable[..., Any] = field(repr=False)

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.fn)


def managed_operation(
    name: str | None = None,
    params: list[tuple[str, str]] | list[str] | dict[str, str] | None = None,
    returns: str | None = None,
    description: str = "",
):
    """
    Decorator exposing a method as a remotely invocable operation.

    Args:
        name: Exposed operation name. Defaults to the function name.
        params: Declared parameter types, as ``(name, type)`` pairs, a
            ``{name: type}`` mapping or bare type names. Inferred from the
            annotations when omitted.
        returns: Declared result type. Inferred from the return annotation
            when omitted.
        description: Free text shown in operation listings.
    """

    def decorator(fn: Callable[..., Any]):
        fn._operation_meta = {  # type: ignore[attr-defined]
            "name": name or fn.__name__,
            "params": params,
            "returns": returns,
            "description": description or (inspect.getdoc(fn) or "").split("\n")[0],
        }
        return fn

    return decorator


def _annotations(fn: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn)
    except Exception:
        return dict(getattr(fn, "__annotations__", {}))


def build_signature(fn: Callable[..., Any], meta: dict[str, Any]) -> OperationSignature:
    """
    Build the signature of a decorated callable.

    Raises:
        ValueError: If a parameter type is missing or unknown.
    """
    op_name = meta["name"]
    declared = meta.get("params")
    hints = _annotations(fn)

    if declared is None:
        sig = inspect.signature(fn)
        pairs = []
        for param in sig.parameters.values():
            if param.name == "self":
                continue
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                raise ValueError(f"Operation '{op_name}' cannot take *args or **kwargs")
            type_name = type_for_annotation(hints.get(param.name))
            if type_name is None or type_name == VOID:
                raise ValueError(
                    f"Cannot infer the type of parameter '{param.name}' of '{op_name}'"
                )
            pairs.append((param.name, type_name))
    elif isinstance(declared, dict):
        pairs = list(declared.items())
    else:
        pairs = [
            item if isinstance(item, tuple) else (f"p{i + 1}", item)
            for i, item in enumerate(declared)
        ]

    for param_name, type_name in pairs:
        if canonical_type(type_name) is None:
            raise ValueError(
                f"Parameter '{param_name}' of '{op_name}' has unsupported type '{type_name}'"
            )

    returns = meta.get("returns")
    if returns is None and "return" in hints:
        returns = type_for_annotation(hints["return"]) or type_name_of_annotation(hints["return"])

    return OperationSignature(
        name=op_name,
        params=tuple(OperationParam(n, t) for n, t in pairs),
        returns=returns,
        description=meta.get("description", ""),
    )


def type_name_of_annotation(annotation: Any) -> str | None:
    if isinstance(annotation, type):
        if annotation.__module__ == "builtins":
            return annotation.__qualname__
        return f"{annotation.__module__}.{annotation.__qualname__}"
    return None


class ManagedResource:
    """
    A named, introspectable object with invocable operations.

    Args:
        object_name: Concrete (non-pattern) name of the resource.
        target: The object whose attributes and operations are exposed.
        declared_type: Type name shown in documents. Defaults to the
            target's qualified class name.
        attributes: Attribute names to expose. Defaults to everything
            ``introspect`` finds on the target.
    """

    def __init__(
        self,
        object_name: ObjectName | str,
        target: Any,
        declared_type: str | None = None,
        attributes: list[str] | None = None,
    ):
        if isinstance(object_name, str):
            object_name = ObjectName.parse(object_name)
        if object_name.is_pattern:
            raise ValueError(f"A resource name cannot be a pattern: {object_name}")

        self.object_name = object_name
        self.target = target
        self.declared_type = declared_type or type_name_of(target)
        self._attributes = list(attributes) if attributes is not None else None
        self._operations: dict[str, list[BoundOperation]] = {}

        cls = type(target)
        for attr in dir(cls):
            meta = getattr(getattr(cls, attr, None), "_operation_meta", None)
            if meta is not None:
                bound = getattr(target, attr)
                self._add(build_signature(bound, meta), bound)

    # ─── Attributes ──────────────────────────────────────────────────

    def property_names(self) -> list[str]:
        if self._attributes is not None:
            return list(self._attributes)
        return introspect(self.target).property_names()

    def property_value(self, name: str) -> Any:
        return introspect(self.target).property_value(name)

    # ─── Operations ──────────────────────────────────────────────────

    def _add(self, signature: OperationSignature, fn: Callable[..., Any]) -> None:
        existing = self._operations.setdefault(signature.name, [])
        if any(op.signature.key == signature.key for op in existing):
            raise ValueError(
                f"Duplicate operation {signature.name}{signature.param_types} "
                f"on {self.object_name}"
            )
        existing.append(BoundOperation(signature, fn))

    def add_operation(
        self,
        fn: Callable[..., Any],
        name: str | None = None,
        params: list[tuple[str, str]] | list[str] | dict[str, str] | None = None,
        returns: str | None = None,
        description: str = "",
    ) -> OperationSignature:
        """Expose a free callable as an operation of this resource."""
        meta = getattr(fn, "_operation_meta", None) or {
            "name": name or fn.__name__,
            "params": params,
            "returns": returns,
            "description": description,
        }
        signature = build_signature(fn, meta)
        self._add(signature, fn)
        return signature

    def operations(self, name: str | None = None) -> list[BoundOperation]:
        """Operations called ``name``, or all of them."""
        if name is not None:
            return list(self._operations.get(name, []))
        return [op for ops in self._operations.values() for op in ops]

    def signatures(self) -> list[OperationSignature]:
        return [op.signature for op in self.operations()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": str(self.object_name),
            "type": self.declared_type,
            "operations": [s.to_dict() for s in self.signatures()],
        }

    def __repr__(self) -> str:
        return f"ManagedResource({str(self.object_name)!r})"
