"""
Starlette-based web server for beanscope.

This server provides the following endpoints:
- GET  /resources: resources matching a name pattern, as XML
- GET  /resource: the single resource matching a name, as XML
- POST /invoke: invoke an operation on a resource
- GET  /stores: registered resource stores
- GET  /health: liveness information

Any other POST path answers with an ``INVALID_POST_PATH`` outcome.
"""

import os
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.routing import Route

from beanscope.config import CONFIG, PROJECT_DIR
from beanscope.core.filters import EXCLUSIONS
from beanscope.core.serializer import ResourceSerializer
from beanscope.invoke.dispatcher import InvocationService
from beanscope.logger import get_logger, setup_logging
from beanscope.resources.manager import StoreRegistry
from beanscope.resources.runtime import register_builtin_resources
from beanscope.routes.health_routes import health_check
from beanscope.routes.invoke_routes import invalid_post, invoke_operation
from beanscope.routes.resource_routes import get_resource, list_stores, query_resources

load_dotenv(PROJECT_DIR / ".env")

if "--debug" in sys.argv:
    os.environ["LOG_LEVEL"] = "DEBUG"

log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE")
setup_logging(level=log_level, log_file=log_file)

logger = get_logger(__name__)


def init_services(app: Starlette, registry: StoreRegistry | None = None, builtins: bool = True) -> None:
    """Load configuration and exclusions and attach the services to ``app``."""
    try:
        CONFIG.reload()
    except Exception as e:
        logger.error(f"Failed to reload config: {e}")

    path = CONFIG.exclusions_path()
    if path is not None:
        try:
            EXCLUSIONS.load_file(path)
        except ValueError as e:
            logger.error(f"Failed to load exclusions from {path}: {e}")

    registry = registry or StoreRegistry()
    if builtins and registry.get_store("local") is None:
        store = register_builtin_resources(registry, log_level, log_file)
        logger.info(f"Local store registered with {len(store)} resources")

    app.state.store_registry = registry
    app.state.serializer = ResourceSerializer()
    app.state.invocation_service = InvocationService(registry)


def create_app(registry: StoreRegistry | None = None, builtins: bool = True) -> Starlette:
    """
    Build the ASGI application.

    Args:
        registry: Registry to serve. A new one is created when omitted.
        builtins: Register the built-in ``local`` store on startup.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info("Application startup - initializing services")
        init_services(app, registry, builtins)
        yield
        logger.info("Application shutdown")

    return Starlette(
        debug=False,
        routes=[
            Route("/resources", query_resources, methods=["GET"]),
            Route("/resource", get_resource, methods=["GET"]),
            Route("/stores", list_stores, methods=["GET"]),
            Route("/health", health_check, methods=["GET"]),
            Route("/invoke", invoke_operation, methods=["POST"]),
            Route("/{path:path}", invalid_post, methods=["POST"]),
        ],
        lifespan=lifespan,
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("BEANSCOPE_HOST", CONFIG.host),
        port=int(os.getenv("BEANSCOPE_PORT", CONFIG.port)),
        log_level=log_level.lower(),
    )
