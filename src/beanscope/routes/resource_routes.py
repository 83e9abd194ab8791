"""
Routes for reading resources.

Provides:
- GET /resources  every resource matching a name pattern, as XML
- GET /resource   the single resource matching a name, as XML
- GET /stores     registered stores, as JSON
"""

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from beanscope.config import CONFIG
from beanscope.core.serializer import ResourceSerializer, error_document, parse_overrides
from beanscope.errors import (
    BeanScopeError,
    DocumentSizeExceeded,
    ErrorCode,
    RequestError,
    ResolutionError,
)
from beanscope.logger import get_logger

logger = get_logger(__name__)

XML_MEDIA_TYPE = "application/xml; charset=utf-8"

LIMIT_PARAMS = ("max_depth", "max_count", "max_size")

_STATUS = {
    ErrorCode.URL_TOO_LONG: 414,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RESOURCE_AMBIGUOUS: 409,
}


def _get_registry(request: Request):
    """Get StoreRegistry from app state."""
    return getattr(request.app.state, "store_registry", None)


def _get_serializer(request: Request) -> ResourceSerializer:
    serializer = getattr(request.app.state, "serializer", None)
    return serializer or ResourceSerializer()


def xml_response(document: str, status_code: int = 200) -> Response:
    return Response(document, status_code=status_code, media_type=XML_MEDIA_TYPE)


def error_response(error: BeanScopeError) -> Response:
    if error.code in _STATUS:
        status = _STATUS[error.code]
    elif isinstance(error, RequestError):
        status = 400
    else:
        status = 500
    return xml_response(error_document(error), status_code=status)


def check_url_length(request: Request) -> None:
    """
    Raises:
        RequestError: ``URL_TOO_LONG`` when the full URL is over the limit.
    """
    limit = CONFIG.url_length_limit
    if len(str(request.url)) > limit:
        logger.debug(f"Request URL exceeds {limit} characters")
        raise RequestError(ErrorCode.URL_TOO_LONG, limit=limit)


def query_param(request: Request) -> str:
    """
    Raises:
        RequestError: ``QUERY_MISSING`` or ``QUERY_EMPTY``.
    """
    if "query" not in request.query_params:
        raise RequestError(ErrorCode.QUERY_MISSING)
    query = request.query_params["query"].strip()
    if not query:
        raise RequestError(ErrorCode.QUERY_EMPTY)
    return query


def _overrides(request: Request) -> dict[str, str | None]:
    return {name: request.query_params.get(name) for name in LIMIT_PARAMS}


async def query_resources(request: Request) -> Response:
    """
    GET /resources?query=<pattern>[&max_depth=&max_count=&max_size=]

    Renders every matching resource of every store into one document.
    """
    registry = _get_registry(request)
    if registry is None:
        return JSONResponse({"error": "Store registry not initialized"}, status_code=503)

    try:
        check_url_length(request)
        query = query_param(request)
        limits = parse_overrides(_overrides(request))
        matches = registry.query(query)
        document = await run_in_threadpool(
            _get_serializer(request).serialize_many, matches, limits, query
        )
    except DocumentSizeExceeded as e:
        logger.warning(str(e))
        return error_response(e)
    except BeanScopeError as e:
        logger.debug(f"Rejected resource query: {e}")
        return error_response(e)

    return xml_response(document)


async def get_resource(request: Request) -> Response:
    """
    GET /resource?query=<name>[&max_depth=&max_count=&max_size=]

    Renders the single resource matching ``query``; 404 when nothing
    matches and 409 when more than one resource does.
    """
    registry = _get_registry(request)
    if registry is None:
        return JSONResponse({"error": "Store registry not initialized"}, status_code=503)

    try:
        check_url_length(request)
        query = query_param(request)
        limits = parse_overrides(_overrides(request))
        store, resource = registry.locate(query)
        document = await run_in_threadpool(
            _get_serializer(request).serialize_one, store, resource, limits, query
        )
    except (RequestError, ResolutionError, DocumentSizeExceeded) as e:
        logger.debug(f"Rejected resource lookup: {e}")
        return error_response(e)

    return xml_response(document)


async def list_stores(request: Request) -> JSONResponse:
    """GET /stores: list registered stores."""
    registry = _get_registry(request)
    if registry is None:
        return JSONResponse({"stores": [], "error": "Store registry not initialized"})

    stores = registry.list_stores()
    return JSONResponse({"stores": stores, "count": len(stores)})
