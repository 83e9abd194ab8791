"""
Pydantic models for the invocation protocol.

Request document::

    <Invoke>
      <ResourceName>python:type=Memory</ResourceName>
      <Operation name="collect">
        <Param name="generation" type="int">0</Param>
      </Operation>
    </Invoke>

Outcome document::

    <InvokeResponse version="0.1.0">
      <Result>SUCCESS</Result>
      <Response type="int">12</Response>
    </InvokeResponse>

or, on failure, ``<Result>ERROR</Result><ErrorReason code="...">...</ErrorReason>``.
"""

import io
from enum import Enum
from xml.sax.saxutils import XMLGenerator
from xml.sax.xmlreader import AttributesImpl

from pydantic import BaseModel, ConfigDict

from beanscope.core.values import clean_text
from beanscope.errors import ErrorCode

INVOKE_TAG = "Invoke"
RESOURCE_NAME_TAG = "ResourceName"
OPERATION_TAG = "Operation"
PARAM_TAG = "Param"

INVOKE_RESPONSE_TAG = "InvokeResponse"
RESULT_TAG = "Result"
RESPONSE_TAG = "Response"
ERROR_REASON_TAG = "ErrorReason"


class OutcomeStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class MethodParameter(BaseModel):
    """One decoded parameter: optional name, declared type, raw text."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    type_name: str
    value: str = ""


class InvocationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource: str
    operation: str
    params: tuple[MethodParameter, ...] = ()

    def to_xml(self) -> str:
        """Render the request document (used by clients)."""
        out = io.StringIO()
        gen = XMLGenerator(out, encoding="utf-8", short_empty_elements=True)
        gen.startDocument()
        gen.startElement(INVOKE_TAG, AttributesImpl({}))
        gen.startElement(RESOURCE_NAME_TAG, AttributesImpl({}))
        gen.characters(self.resource)
        gen.endElement(RESOURCE_NAME_TAG)
        gen.startElement(OPERATION_TAG, AttributesImpl({"name": self.operation}))
        for param in self.params:
            attrs = {"type": param.type_name}
            if param.name:
                attrs["name"] = param.name
            gen.startElement(PARAM_TAG, AttributesImpl(attrs))
            gen.characters(param.value)
            gen.endElement(PARAM_TAG)
        gen.endElement(OPERATION_TAG)
        gen.endElement(INVOKE_TAG)
        gen.endDocument()
        return out.getvalue()


class InvocationOutcome(BaseModel):
    """Result of one invocation, successful or not."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    version: str
    result_type: str | None = None
    result: str | None = None
    code: ErrorCode | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @classmethod
    def success(
        cls, version: str, result_type: str | None = None, result: str | None = None
    ) -> "InvocationOutcome":
        return cls(
            status=OutcomeStatus.SUCCESS,
            version=version,
            result_type=result_type,
            result=result,
        )

    @classmethod
    def failure(cls, version: str, error: str, code: ErrorCode | None = None) -> "InvocationOutcome":
        return cls(status=OutcomeStatus.ERROR, version=version, error=error, code=code)

    def to_xml(self) -> str:
        out = io.StringIO()
        gen = XMLGenerator(out, encoding="utf-8", short_empty_elements=True)
        gen.startDocument()
        gen.startElement(INVOKE_RESPONSE_TAG, AttributesImpl({"version": self.version}))
        gen.startElement(RESULT_TAG, AttributesImpl({}))
        gen.characters(self.status.value)
        gen.endElement(RESULT_TAG)

        if self.ok:
            if self.result is not None:
                gen.startElement(RESPONSE_TAG, AttributesImpl({"type": self.result_type or ""}))
                gen.characters(self.result)
                gen.endElement(RESPONSE_TAG)
        else:
            attrs = {"code": self.code.value} if self.code else {}
            gen.startElement(ERROR_REASON_TAG, AttributesImpl(attrs))
            gen.characters(clean_text(self.error or ""))
            gen.endElement(ERROR_REASON_TAG)

        gen.endElement(INVOKE_RESPONSE_TAG)
        gen.endDocument()
        return out.getvalue()
