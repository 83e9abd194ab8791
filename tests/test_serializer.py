"""
Unit tests for resource documents.
"""

import xml.etree.ElementTree as ET

import pytest

from beanscope.config import BeanScopeConfig
from beanscope.core.filters import ExclusionRegistry
from beanscope.core.serializer import ResourceSerializer, error_document, parse_overrides
from beanscope.core.walker import WalkLimits
from beanscope.errors import DocumentSizeExceeded, ErrorCode, RequestError
from beanscope.resources import ManagedResource


def _properties(resource: ET.Element) -> dict[str, ET.Element]:
    return {p.get("Name"): p for p in resource.find("Properties")}


class TestOverrides:
    def setup_method(self):
        self.config = BeanScopeConfig()

    def test_defaults(self):
        limits = parse_overrides({}, self.config)
        assert limits == WalkLimits(
            max_depth=2, max_count=None, max_size=None, abs_max_size=self.config.abs_max_xml_size
        )

    def test_string_and_int_overrides(self):
        limits = parse_overrides({"max_depth": "3", "max_count": 10, "max_size": " 500 "}, self.config)
        assert (limits.max_depth, limits.max_count, limits.max_size) == (3, 10, 500)

    def test_zero_is_valid(self):
        assert parse_overrides({"max_depth": "0"}, self.config).max_depth == 0

    def test_configured_defaults(self):
        config = BeanScopeConfig(default_max_depth=4, default_max_count=100)
        limits = parse_overrides(None, config)
        assert (limits.max_depth, limits.max_count) == (4, 100)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_depth": "-1"},
            {"max_count": "ten"},
            {"max_size": "1.5"},
            {"max_depth": -2},
            {"max_depth": True},
            {"max_size": ""},
        ],
    )
    def test_invalid_overrides(self, overrides):
        with pytest.raises(RequestError) as exc:
            parse_overrides(overrides, self.config)
        assert exc.value.code == ErrorCode.INVALID_LIMIT


class TestSerializeOne:
    def setup_method(self):
        self.serializer = ResourceSerializer(exclusions=ExclusionRegistry(), config=BeanScopeConfig())

    def test_document_shape(self, cache_resource):
        root = ET.fromstring(self.serializer.serialize_one("local", cache_resource))
        assert root.tag == "Resource"
        assert root.get("version") == BeanScopeConfig().protocol_version
        assert root.get("Name") == cache_resource.declared_type
        assert root.get("identity") == "app:name=main,type=Cache"

        props = _properties(root)
        assert props["size"].get("type") == "int"
        assert props["size"].text == "12"
        assert props["secret"].text == "hunter2"
        assert "missing" not in props

    def test_nested_and_sequence_properties(self, cache_resource):
        root = ET.fromstring(self.serializer.serialize_one("local", cache_resource))
        props = _properties(root)

        owner = props["owner"]
        assert owner.get("truncated") is None
        login = owner.find("Property[@Name='login']")
        assert login.text == "ada"
        assert owner.find("Property[@Name='team']").get("truncated") == "depth"

        tags = props["tags"]
        assert [(t.get("index"), t.text) for t in tags] == [("0", "a"), ("2", "b")]

    def test_identity_property_elements(self, cache_resource):
        root = ET.fromstring(self.serializer.serialize_one("local", cache_resource))
        props = _properties(root)
        assert props["peer"].get("type") == "ObjectName"
        elements = props["objectNameElements"]
        assert {e.get("Name"): e.text for e in elements} == {
            "Domain": "app",
            "type": "Peer",
            "name": "west",
        }

    def test_depth_zero_has_no_properties(self, cache_resource):
        document = self.serializer.serialize_one("local", cache_resource, {"max_depth": 0})
        root = ET.fromstring(document)
        assert root.find("Properties") is None
        assert [p.get("Name") for p in root] == ["objectName", "objectNameElements"]

    def test_opaque_property_carries_reason(self, cache_resource):
        root = ET.fromstring(
            self.serializer.serialize_one("local", cache_resource, {"max_depth": "1"})
        )
        owner = _properties(root)["owner"]
        assert owner.get("truncated") == "depth"
        assert len(owner) == 0

    def test_identity_is_escaped(self):
        resource = ManagedResource("app:type=Cache,name=50%", object())
        root = ET.fromstring(self.serializer.serialize_one("local", resource))
        assert root.get("identity") == "app:name=50%25,type=Cache"

    def test_lone_surrogates_are_replaced(self):
        target = {"path": "/tmp/\udcff", "bad\udc80key": 1}
        resource = ManagedResource("app:type=Weird", target)
        document = self.serializer.serialize_one("local", resource)
        document.encode("utf-8")
        props = _properties(ET.fromstring(document))
        assert props["path"].text == "/tmp/\ufffd"
        assert "bad\ufffdkey" in props

    def test_leaf_values_appear_once(self):
        target = {"a": 1, "b": "two", "c": {"d": 3.5, "e": False}}
        resource = ManagedResource("app:type=Plain", target)
        root = ET.fromstring(self.serializer.serialize_one("local", resource))
        leaves = [p.text for p in root.iter("Property") if len(p) == 0]
        assert sorted(leaves) == sorted(["1", "two", "3.5", "false"])

    def test_exclusions(self, cache_resource):
        exclusions = ExclusionRegistry()
        exclusions.load_string(
            "exclusions:\n  - resource: 'app:*'\n    attributes: [secret, owner]\n"
        )
        serializer = ResourceSerializer(exclusions=exclusions, config=BeanScopeConfig())
        props = _properties(ET.fromstring(serializer.serialize_one("local", cache_resource)))
        assert "secret" not in props
        assert "owner" not in props
        assert "size" in props

    def test_wildcard_exclusion_is_identity_only(self, cache_resource):
        exclusions = ExclusionRegistry()
        exclusions.load_string("exclusions:\n  - store: local\n    attributes: ['*']\n")
        serializer = ResourceSerializer(exclusions=exclusions, config=BeanScopeConfig())
        root = ET.fromstring(serializer.serialize_one("local", cache_resource))
        assert root.get("identity") == "app:name=main,type=Cache"
        assert root.find("Properties") is None
        assert [p.get("Name") for p in root] == ["objectName", "objectNameElements"]

    def test_ceiling_names_the_query(self, cache_resource):
        serializer = ResourceSerializer(
            exclusions=ExclusionRegistry(), config=BeanScopeConfig(abs_max_xml_size=300)
        )
        with pytest.raises(DocumentSizeExceeded) as exc:
            serializer.serialize_one("local", cache_resource)
        assert exc.value.query == "app:name=main,type=Cache"
        assert exc.value.code == ErrorCode.DOCUMENT_SIZE_EXCEEDED


class TestSerializeMany:
    def setup_method(self):
        self.serializer = ResourceSerializer(exclusions=ExclusionRegistry(), config=BeanScopeConfig())

    def test_collection(self, registry):
        matches = registry.query("app:*")
        root = ET.fromstring(self.serializer.serialize_many(matches, query="app:*"))
        assert root.tag == "Resources"
        assert root.get("version") == BeanScopeConfig().protocol_version
        identities = [r.get("identity") for r in root]
        assert identities == ["app:name=main,type=Cache", "app:type=Worker"]
        assert all(r.get("version") is None for r in root)

    def test_empty_collection(self):
        root = ET.fromstring(self.serializer.serialize_many({}, query="none:*"))
        assert root.tag == "Resources"
        assert len(root) == 0

    def test_count_budget_spans_resources(self, registry):
        matches = registry.query("app:*")
        root = ET.fromstring(self.serializer.serialize_many(matches, {"max_count": 1}))
        cache = root[0]
        assert _properties(cache)["owner"].get("truncated") == "count"

    def test_ceiling_fails_whole_document(self, registry):
        serializer = ResourceSerializer(
            exclusions=ExclusionRegistry(), config=BeanScopeConfig(abs_max_xml_size=400)
        )
        with pytest.raises(DocumentSizeExceeded) as exc:
            serializer.serialize_many(registry.query("app:*"), query="app:*")
        assert "app:*" in str(exc.value)


def test_error_document():
    error = RequestError(ErrorCode.QUERY_EMPTY)
    root = ET.fromstring(error_document(error, version="9.9"))
    assert root.tag == "Error"
    assert root.get("version") == "9.9"
    assert root.get("code") == "ERROR_QUERY_EMPTY"
    assert root.text == str(error)
