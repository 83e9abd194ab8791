"""
Decoding of invocation request documents.
"""

import xml.etree.ElementTree as ET

from beanscope.config import CONFIG
from beanscope.errors import ErrorCode, RequestError
from beanscope.invoke.models import (
    INVOKE_TAG,
    OPERATION_TAG,
    PARAM_TAG,
    RESOURCE_NAME_TAG,
    InvocationRequest,
    MethodParameter,
)
from beanscope.logger import get_logger

logger = get_logger(__name__)


def _malformed(reason: str) -> RequestError:
    logger.debug(f"Malformed invoke request: {reason}")
    return RequestError(ErrorCode.REQUEST_MALFORMED)


def _text(element: ET.Element) -> str:
    return "".join(element.itertext())


def decode(
    body: str | None, declared_length: int | None, max_size: int | None = None
) -> InvocationRequest:
    """
    Decode an invocation request.

    Exactly ``declared_length`` characters of ``body`` are used; anything
    after them is ignored.

    Args:
        body: Request text, or None when the request had no body.
        declared_length: Number of characters the caller announced.
        max_size: Largest accepted ``declared_length``. Defaults to the
            configured ``max_request_size``.

    Raises:
        RequestError: ``REQUEST_EMPTY`` for a missing body or a zero length,
            ``REQUEST_LENGTH_INVALID`` for a negative length,
            ``REQUEST_TOO_LARGE`` for a length over ``max_size`` and
            ``REQUEST_MALFORMED`` for a short body or a document without
            the expected elements.
    """
    max_size = CONFIG.max_request_size if max_size is None else max_size

    if body is None or declared_length is None or declared_length == 0:
        raise RequestError(ErrorCode.REQUEST_EMPTY)
    if declared_length < 0:
        raise RequestError(ErrorCode.REQUEST_LENGTH_INVALID, length=declared_length)
    if declared_length > max_size:
        raise RequestError(ErrorCode.REQUEST_TOO_LARGE, limit=max_size)
    if len(body) < declared_length:
        raise _malformed(f"expected {declared_length} characters, got {len(body)}")

    raw = body[:declared_length]
    logger.debug(f"Invoke request: {raw}")

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise _malformed(str(e)) from None

    if root.tag != INVOKE_TAG:
        raise _malformed(f"unexpected root element <{root.tag}>")

    names = root.findall(RESOURCE_NAME_TAG)
    if len(names) != 1:
        raise _malformed(f"expected one <{RESOURCE_NAME_TAG}>, found {len(names)}")

    operations = root.findall(OPERATION_TAG)
    if len(operations) != 1:
        raise _malformed(f"expected one <{OPERATION_TAG}>, found {len(operations)}")
    operation = operations[0]

    operation_name = operation.get("name")
    if not operation_name:
        raise _malformed("operation has no name")

    params = []
    for element in operation.findall(PARAM_TAG):
        type_name = element.get("type")
        if type_name is None:
            raise _malformed(f"parameter {len(params) + 1} has no type")
        params.append(
            MethodParameter(
                name=element.get("name", ""),
                type_name=type_name,
                value=_text(element),
            )
        )

    return InvocationRequest(
        resource=_text(names[0]).strip(),
        operation=operation_name,
        params=tuple(params),
    )
