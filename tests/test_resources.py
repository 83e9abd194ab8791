"""
Unit tests for managed resources, stores and the store registry.
"""

import pytest

from beanscope.errors import RequestError
from beanscope.identity import ObjectName
from beanscope.invoke.resolver import OperationResolver
from beanscope.resources import (
    InMemoryStore,
    ManagedResource,
    StoreRegistry,
    managed_operation,
)
from beanscope.resources.manager import parse_query
from beanscope.resources.runtime import (
    LoggingControl,
    builtin_resources,
    register_builtin_resources,
)


class Gadget:
    def __init__(self):
        self.level = 1

    @property
    def expensive(self):
        raise AssertionError("properties are not read while scanning operations")

    @managed_operation(description="Reset the gadget")
    def reset(self) -> None:
        self.level = 0

    @managed_operation(params=["int", "string"], returns="string")
    def label(self, a, b):
        return f"{b}{a}"

    @managed_operation(params={"amount": "long"})
    def bump(self, amount) -> int:
        self.level += amount
        return self.level


class Untyped:
    @managed_operation()
    def echo(self, x):
        return x


class Broken:
    @managed_operation()
    def first(self, value: int) -> int:
        return value

    @managed_operation(name="first")
    def again(self, value: int) -> int:
        return value


class Variadic:
    @managed_operation()
    def spread(self, *values: int) -> int:
        return sum(values)


class TestManagedOperation:
    def test_annotations_and_declarations(self):
        resource = ManagedResource("app:type=Gadget", Gadget(), attributes=["level"])
        signatures = {s.name: s for s in resource.signatures()}
        assert signatures["reset"].is_void
        assert signatures["reset"].description == "Reset the gadget"
        assert signatures["label"].param_types == ("int", "string")
        assert [p.name for p in signatures["label"].params] == ["p1", "p2"]
        assert signatures["label"].returns == "string"
        assert signatures["bump"].param_types == ("long",)
        assert signatures["bump"].returns == "int"

    def test_missing_annotation_is_rejected(self):
        with pytest.raises(ValueError):
            ManagedResource("app:type=Untyped", Untyped())

    def test_duplicate_overload_is_rejected(self):
        with pytest.raises(ValueError):
            ManagedResource("app:type=Broken", Broken())

    def test_variadic_is_rejected(self):
        with pytest.raises(ValueError):
            ManagedResource("app:type=Variadic", Variadic())

    def test_add_free_operation(self, cache_resource):
        def double(value: int) -> int:
            return value * 2

        signature = cache_resource.add_operation(double, name="double")
        assert signature.param_types == ("int",)
        assert [op.signature.name for op in cache_resource.operations("double")] == ["double"]

    def test_to_dict(self, cache_resource):
        data = cache_resource.to_dict()
        assert data["name"] == "app:name=main,type=Cache"
        names = sorted((op["name"], len(op["params"])) for op in data["operations"])
        assert names == [("evict", 0), ("evict", 1)]

    def test_pattern_name_is_rejected(self):
        with pytest.raises(ValueError):
            ManagedResource("app:*", object())

    def test_declared_type(self, cache):
        assert ManagedResource("app:type=Cache", cache, declared_type="app.Cache").declared_type == "app.Cache"


class TestInMemoryStore:
    def setup_method(self):
        self.store = InMemoryStore("local")
        for name in ("app:type=B", "app:type=A", "other:type=C"):
            self.store.register(ManagedResource(name, object()))

    def test_duplicate_registration(self):
        with pytest.raises(ValueError):
            self.store.register(ManagedResource("app:type=A", object()))

    def test_query_pattern_is_sorted(self):
        found = self.store.query(ObjectName.parse("app:*"))
        assert [str(r.object_name) for r in found] == ["app:type=A", "app:type=B"]

    def test_exact_lookup(self):
        assert self.store.get(ObjectName.parse("other:type=C")) is not None
        assert self.store.query(ObjectName.parse("other:type=D")) == []

    def test_unregister(self):
        assert self.store.unregister("app:type=A")
        assert not self.store.unregister("app:type=A")
        assert len(self.store) == 2

    def test_to_dict(self):
        data = self.store.to_dict()
        assert data["name"] == "local"
        assert data["type"] == "InMemoryStore"
        assert data["resources"] == 3


class OfflineStore(InMemoryStore):
    def verify(self) -> bool:
        return False


class TestStoreRegistry:
    def test_query_skips_unusable_stores(self):
        registry = StoreRegistry()
        offline = OfflineStore("offline")
        offline.register(ManagedResource("app:type=A", object()))
        online = InMemoryStore("online")
        online.register(ManagedResource("app:type=B", object()))
        registry.register_store(offline)
        registry.register_store(online)

        assert list(registry.query("app:*")) == ["online"]
        assert registry.resource_count == 2

    def test_stores_without_matches_are_omitted(self, registry):
        assert registry.query("none:*") == {}

    def test_unregister_store(self, registry):
        assert registry.unregister_store("local")
        assert not registry.unregister_store("local")
        assert registry.list_stores() == []

    def test_parse_query_falls_back_to_lenient(self):
        assert parse_query("app:path=/a:b").get("path") == "/a:b"
        with pytest.raises(RequestError):
            parse_query("nocolon")


class TestRuntimeResources:
    def test_builtin_names(self):
        names = {str(r.object_name) for r in builtin_resources()}
        assert names == {
            "python:type=Runtime",
            "python:type=Memory",
            "python:type=Threads",
            "beanscope:type=Logging",
        }

    def test_register_builtin_resources(self):
        registry = StoreRegistry()
        store = register_builtin_resources(registry)
        assert registry.get_store("local") is store
        assert len(store) == 4

    def test_memory_collect_overloads(self):
        registry = StoreRegistry()
        register_builtin_resources(registry)
        _, memory = registry.locate("python:type=Memory")
        signatures = sorted(s.param_types for s in memory.signatures())
        assert signatures == [(), ("int",)]

        resolver = OperationResolver()
        op = resolver.resolve(memory, "collect", [])
        assert op.signature.param_types == ()
        assert isinstance(op.fn(), int)

    def test_collect_rejects_bad_generation(self):
        registry = StoreRegistry()
        register_builtin_resources(registry)
        _, memory = registry.locate("python:type=Memory")
        (op,) = [o for o in memory.operations("collect") if o.signature.params]
        with pytest.raises(ValueError):
            op.fn(7)

    def test_logging_control(self):
        control = LoggingControl("warning")
        assert control.level == "WARNING"
        control.set_level(" error ")
        assert control.level == "ERROR"
        with pytest.raises(ValueError):
            control.set_level("LOUD")
        control.set_level("WARNING")
