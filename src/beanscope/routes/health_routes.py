"""
Health check endpoint.
"""

import time
from datetime import datetime

from starlette.requests import Request
from starlette.responses import JSONResponse

from beanscope.config import CONFIG
from beanscope.logger import get_logger

logger = get_logger(__name__)
start_time = time.time()


async def health_check(request: Request) -> JSONResponse:
    """
    Basic health check endpoint.

    Returns 200 if service is running.
    """
    registry = getattr(request.app.state, "store_registry", None)
    return JSONResponse(
        {
            "status": "healthy",
            "version": CONFIG.protocol_version,
            "timestamp": datetime.now().isoformat(),
            "uptime_seconds": int(time.time() - start_time),
            "stores": len(registry.stores) if registry else 0,
            "resources": registry.resource_count if registry else 0,
        }
    )
