"""
Routes for invoking resource operations.

POST /invoke takes an invocation request document and always answers
200 with an ``InvokeResponse`` document; failures are ``ERROR`` outcomes.
"""

from starlette.requests import Request
from starlette.responses import Response

from beanscope.errors import ErrorCode, RequestError
from beanscope.invoke.dispatcher import InvocationService
from beanscope.logger import get_logger
from beanscope.routes.resource_routes import xml_response

logger = get_logger(__name__)


def _get_invocation_service(request: Request) -> InvocationService:
    service = getattr(request.app.state, "invocation_service", None)
    if service is None:
        service = InvocationService(request.app.state.store_registry)
        request.app.state.invocation_service = service
    return service


def _declared_characters(raw: bytes, header: str | None) -> int | None:
    """
    Translate a byte Content-Length into a character count.

    Values that cannot be honoured (negative, or past the received body)
    are passed through so the decoder reports them.
    """
    if header is None:
        return None
    try:
        declared = int(header)
    except ValueError:
        return -1
    if 0 < declared <= len(raw):
        return len(raw[:declared].decode("utf-8", errors="replace"))
    return declared


async def invoke_operation(request: Request) -> Response:
    """
    POST /invoke[?max_time=<seconds>&max_size=<characters>]

    Body: ``<Invoke><ResourceName>..</ResourceName><Operation name="..">
    <Param type=".." name="..">value</Param>..</Operation></Invoke>``
    """
    service = _get_invocation_service(request)

    raw = await request.body()
    header = request.headers.get("content-length")
    declared = _declared_characters(raw, header)
    body = raw.decode("utf-8", errors="replace") if (raw or header is not None) else None

    outcome = await service.handle(
        body,
        declared,
        max_time=request.query_params.get("max_time"),
        max_size=request.query_params.get("max_size"),
    )
    if not outcome.ok:
        logger.debug(f"Invoke failed: {outcome.error}")
    return xml_response(outcome.to_xml())


async def invalid_post(request: Request) -> Response:
    """POST on any other path."""
    service = _get_invocation_service(request)
    path = request.url.path
    logger.debug(f"Invalid POST request for {path}")
    outcome = service.reject(RequestError(ErrorCode.INVALID_POST_PATH, path=path))
    return xml_response(outcome.to_xml())
