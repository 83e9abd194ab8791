"""
Error taxonomy for beanscope.

Every failure carries an ``ErrorCode`` and a message rendered from the
code's template, so callers can branch on ``code`` while clients read
``str(error)``.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    # Request decoding / validation
    REQUEST_MALFORMED = "ERROR_MALFORMED_REQUEST"
    REQUEST_EMPTY = "ERROR_REQUEST_NO_BODY"
    REQUEST_TOO_LARGE = "ERROR_REQUEST_BODY_TOO_LARGE"
    REQUEST_LENGTH_INVALID = "ERROR_REQUEST_LENGTH_INVALID"
    INVALID_LIMIT = "ERROR_INVALID_LIMIT"
    QUERY_MISSING = "ERROR_QUERY_MISSING"
    QUERY_EMPTY = "ERROR_QUERY_EMPTY"
    URL_TOO_LONG = "ERROR_URL_LENGTH_EXCEEDS_LIMITS"
    MALFORMED_NAME = "ERROR_MALFORMED_NAME"
    INVALID_POST_PATH = "ERROR_INVALID_POST_QUERY"

    # Resolution
    RESOURCE_NOT_FOUND = "ERROR_RESOURCE_NOT_FOUND"
    RESOURCE_AMBIGUOUS = "ERROR_RESOURCE_NOT_UNIQUE"
    OPERATION_NOT_FOUND = "ERROR_OPERATION_NOT_FOUND"
    PARAM_COUNT_MISMATCH = "ERROR_PARAM_COUNT_MISMATCH"
    PARAM_TYPE_INVALID = "ERROR_PARAM_TYPE_MISMATCH"
    PARAM_VALUE_INVALID = "ERROR_PARAM_VALUE"

    # Invocation
    INVOCATION_TIMEOUT = "ERROR_INVOKE_TIMEOUT"
    INVOCATION_FAILED = "ERROR_INVOKE_EXCEPTION"
    RESPONSE_TOO_LARGE = "ERROR_INVOKE_RESPONSE_TOO_LARGE"

    # Rendering
    DOCUMENT_SIZE_EXCEEDED = "ERROR_SIZE_OF_XML_EXCEEDS_LIMITS"
    TRANSFORM_FAILED = "ERROR_TRANSFORMING"


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.REQUEST_MALFORMED: "The invoke request document is malformed",
    ErrorCode.REQUEST_EMPTY: "The invoke request has no body",
    ErrorCode.REQUEST_TOO_LARGE: "The invoke request body exceeds {limit} characters",
    ErrorCode.REQUEST_LENGTH_INVALID: "The declared request length {length} is not valid",
    ErrorCode.INVALID_LIMIT: "Invalid value '{value}' for the {param} parameter",
    ErrorCode.QUERY_MISSING: "No query parameter was specified",
    ErrorCode.QUERY_EMPTY: "The query parameter was specified with no value",
    ErrorCode.URL_TOO_LONG: "The request URL exceeds {limit} characters",
    ErrorCode.MALFORMED_NAME: "The resource name '{name}' is malformed",
    ErrorCode.INVALID_POST_PATH: "Invalid POST request path '{path}'",
    ErrorCode.RESOURCE_NOT_FOUND: "No resource matches '{query}'",
    ErrorCode.RESOURCE_AMBIGUOUS: "Too many resources ({count}) match '{query}'",
    ErrorCode.OPERATION_NOT_FOUND: "Operation '{operation}' was not found on '{resource}'",
    ErrorCode.PARAM_COUNT_MISMATCH: "Operation '{operation}' expects {expected} parameters, got {actual}",
    ErrorCode.PARAM_TYPE_INVALID: "Parameter {index} of '{operation}' has type '{actual}', expected '{expected}'",
    ErrorCode.PARAM_VALUE_INVALID: "Parameter {index} value '{value}' is not a valid {type}",
    ErrorCode.INVOCATION_TIMEOUT: "Operation '{operation}' did not complete within {seconds} seconds",
    ErrorCode.INVOCATION_FAILED: "Operation '{operation}' raised {error_type}: {error}",
    ErrorCode.RESPONSE_TOO_LARGE: "The invoke response exceeds {limit} characters",
    ErrorCode.DOCUMENT_SIZE_EXCEEDED: (
        "The size of the XML response has reached the limit of {limit} characters "
        "for the query: {query}"
    ),
    ErrorCode.TRANSFORM_FAILED: "Failed to build the response: {error}",
}


class BeanScopeError(Exception):
    """Base error; ``code`` identifies the failure kind."""

    def __init__(self, code: ErrorCode, **details: Any):
        self.code = code
        self.details = details
        template = _MESSAGES.get(code, code.value)
        try:
            message = template.format(**details)
        except (KeyError, IndexError):
            message = template
        super().__init__(message)


class RequestError(BeanScopeError):
    """The request itself is unusable; nothing was attempted."""


class ResolutionError(BeanScopeError):
    """The target resource, operation or parameters could not be resolved."""


class InvocationError(BeanScopeError):
    """The operation was attempted but did not produce a usable result."""


class DocumentSizeExceeded(BeanScopeError):
    """The absolute output ceiling was breached while rendering."""

    def __init__(self, limit: int, query: str | None):
        super().__init__(
            ErrorCode.DOCUMENT_SIZE_EXCEEDED, limit=limit, query=query or "<unknown>"
        )
        self.limit = limit
        self.query = query
