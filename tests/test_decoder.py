"""
Unit tests for invocation request decoding.
"""

import pytest

from beanscope.errors import ErrorCode, RequestError
from beanscope.invoke.decoder import decode
from beanscope.invoke.models import InvocationRequest, MethodParameter

REQUEST = (
    "<Invoke>"
    "<ResourceName> app:type=Cache,name=main </ResourceName>"
    '<Operation name="evict">'
    '<Param type="string" name="key">user:1</Param>'
    '<Param type="int"></Param>'
    "</Operation>"
    "</Invoke>"
)


def _code(body, length, max_size=8192) -> ErrorCode:
    with pytest.raises(RequestError) as exc:
        decode(body, length, max_size)
    return exc.value.code


class TestDecode:
    def test_valid_request(self):
        request = decode(REQUEST, len(REQUEST))
        assert request.resource == "app:type=Cache,name=main"
        assert request.operation == "evict"
        assert request.params == (
            MethodParameter(name="key", type_name="string", value="user:1"),
            MethodParameter(name="", type_name="int", value=""),
        )

    def test_trailing_characters_are_ignored(self):
        request = decode(REQUEST + "<garbage>", len(REQUEST))
        assert request.operation == "evict"

    def test_truncation_to_declared_length(self):
        assert _code(REQUEST, len(REQUEST) - 5) == ErrorCode.REQUEST_MALFORMED

    def test_extra_attributes_are_ignored(self):
        body = (
            '<Invoke id="7"><ResourceName lang="en">app:type=Worker</ResourceName>'
            '<Operation name="run" async="no"><Param type="int" unit="s">5</Param></Operation></Invoke>'
        )
        request = decode(body, len(body))
        assert request.params[0].value == "5"

    def test_request_round_trip(self):
        request = InvocationRequest(
            resource='app:path="a,b"',
            operation="put",
            params=(MethodParameter(type_name="string", value="<&>"),),
        )
        body = request.to_xml()
        assert decode(body, len(body)) == request


class TestDecodeErrors:
    def test_missing_body(self):
        assert _code(None, 10) == ErrorCode.REQUEST_EMPTY

    def test_missing_length(self):
        assert _code(REQUEST, None) == ErrorCode.REQUEST_EMPTY

    def test_zero_length(self):
        assert _code(REQUEST, 0) == ErrorCode.REQUEST_EMPTY

    def test_negative_length(self):
        assert _code(REQUEST, -1) == ErrorCode.REQUEST_LENGTH_INVALID

    def test_length_over_maximum(self):
        assert _code(REQUEST, 9000) == ErrorCode.REQUEST_TOO_LARGE
        assert _code(REQUEST, len(REQUEST), max_size=len(REQUEST) - 1) == ErrorCode.REQUEST_TOO_LARGE

    def test_short_body(self):
        assert _code(REQUEST, len(REQUEST) + 1) == ErrorCode.REQUEST_MALFORMED

    @pytest.mark.parametrize(
        "body",
        [
            "not xml at all",
            "<Call><ResourceName>a:b=c</ResourceName><Operation name='x'/></Call>",
            "<Invoke><Operation name='x'/></Invoke>",
            "<Invoke><ResourceName>a:b=c</ResourceName></Invoke>",
            "<Invoke><ResourceName>a:b=c</ResourceName><ResourceName>a:b=d</ResourceName>"
            "<Operation name='x'/></Invoke>",
            "<Invoke><ResourceName>a:b=c</ResourceName><Operation/></Invoke>",
            "<Invoke><ResourceName>a:b=c</ResourceName><Operation name='x'>"
            "<Param name='p'>1</Param></Operation></Invoke>",
        ],
    )
    def test_malformed_documents(self, body):
        assert _code(body, len(body)) == ErrorCode.REQUEST_MALFORMED
