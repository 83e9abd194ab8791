"""
Unit tests for resource location and overload resolution.
"""

import pytest

from beanscope.errors import ErrorCode, ResolutionError
from beanscope.invoke.models import MethodParameter
from beanscope.invoke.resolver import OperationResolver
from beanscope.resources import InMemoryStore, ManagedResource, StoreRegistry, managed_operation


class Calculator:
    @managed_operation(name="scale")
    def scale_int(self, value: int) -> int:
        return value * 2

    @managed_operation(name="scale")
    def scale_double(self, value: float) -> float:
        return value * 1.5

    @managed_operation(name="scale")
    def scale_pair(self, value: int, factor: int) -> int:
        return value * factor

    @managed_operation()
    def greet(self, name: str) -> str:
        return f"hello {name}"


def _params(*pairs) -> list[MethodParameter]:
    return [MethodParameter(type_name=t, value=v) for t, v in pairs]


class TestResolve:
    def setup_method(self):
        self.resolver = OperationResolver()
        self.resource = ManagedResource("app:type=Calculator", Calculator())

    @pytest.mark.parametrize("type_name", ["int", "Integer", "java.lang.Integer"])
    def test_selects_int_overload(self, type_name):
        op = self.resolver.resolve(self.resource, "scale", _params((type_name, "2")))
        assert op.signature.param_types == ("int",)
        assert op.fn(2) == 4

    @pytest.mark.parametrize("type_name", ["double", "DOUBLE", "java.lang.Double"])
    def test_selects_double_overload(self, type_name):
        op = self.resolver.resolve(self.resource, "scale", _params((type_name, "2")))
        assert op.signature.param_types == ("double",)

    def test_selects_by_arity(self):
        op = self.resolver.resolve(self.resource, "scale", _params(("int", "2"), ("int", "3")))
        assert op.signature.param_types == ("int", "int")

    def test_unknown_operation(self):
        with pytest.raises(ResolutionError) as exc:
            self.resolver.resolve(self.resource, "divide", [])
        assert exc.value.code == ErrorCode.OPERATION_NOT_FOUND

    def test_type_mismatch(self):
        with pytest.raises(ResolutionError) as exc:
            self.resolver.resolve(self.resource, "greet", _params(("int", "2")))
        assert exc.value.code == ErrorCode.PARAM_TYPE_INVALID

    def test_last_overload_reports_the_mismatch(self):
        # scale_pair is tried last and fails on its parameter count
        with pytest.raises(ResolutionError) as exc:
            self.resolver.resolve(self.resource, "scale", _params(("long", "2")))
        assert exc.value.code == ErrorCode.PARAM_COUNT_MISMATCH

    def test_count_mismatch(self):
        with pytest.raises(ResolutionError) as exc:
            self.resolver.resolve(self.resource, "greet", _params(("string", "a"), ("string", "b")))
        assert exc.value.code == ErrorCode.PARAM_COUNT_MISMATCH

    def test_parameter_names_are_not_used(self):
        params = [MethodParameter(name="whatever", type_name="string", value="ada")]
        op = self.resolver.resolve(self.resource, "greet", params)
        assert op.signature.name == "greet"


class TestCoerce:
    def setup_method(self):
        self.resolver = OperationResolver()
        self.resource = ManagedResource("app:type=Calculator", Calculator())

    def test_typed_arguments(self):
        params = _params(("int", "6"), ("int", "-7"))
        op = self.resolver.resolve(self.resource, "scale", params)
        assert self.resolver.coerce(op.signature, params) == [6, -7]

    def test_empty_numeric_value(self):
        params = _params(("int", ""))
        op = self.resolver.resolve(self.resource, "scale", params)
        with pytest.raises(ResolutionError) as exc:
            self.resolver.coerce(op.signature, params)
        assert exc.value.code == ErrorCode.PARAM_VALUE_INVALID

    def test_empty_string_value(self):
        params = _params(("string", ""))
        op = self.resolver.resolve(self.resource, "greet", params)
        assert self.resolver.coerce(op.signature, params) == [""]


class TestLocate:
    def setup_method(self):
        self.resolver = OperationResolver()

    def test_unique_match(self, registry):
        store, resource = self.resolver.locate(registry, "app:type=Worker")
        assert store == "local"
        assert str(resource.object_name) == "app:type=Worker"

    def test_no_match(self, registry):
        with pytest.raises(ResolutionError) as exc:
            self.resolver.locate(registry, "app:type=Nothing")
        assert exc.value.code == ErrorCode.RESOURCE_NOT_FOUND

    def test_ambiguous_pattern(self, registry):
        with pytest.raises(ResolutionError) as exc:
            self.resolver.locate(registry, "app:*")
        assert exc.value.code == ErrorCode.RESOURCE_AMBIGUOUS
        assert "(2)" in str(exc.value)

    def test_ambiguous_across_stores(self):
        registry = StoreRegistry()
        for name in ("east", "west"):
            store = InMemoryStore(name)
            store.register(ManagedResource("app:type=Calculator", Calculator()))
            registry.register_store(store)
        with pytest.raises(ResolutionError) as exc:
            self.resolver.locate(registry, "app:type=Calculator")
        assert exc.value.code == ErrorCode.RESOURCE_AMBIGUOUS
