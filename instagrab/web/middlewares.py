from __future__ import annotations

import time
import uuid

import structlog
from aiohttp import web
from aiohttp.typedefs import Handler

from instagrab.errors import InstagrabError

logger = structlog.get_logger()


@web.middleware
async def logging_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Log every incoming request with structured context."""
    start = time.monotonic()
    status = 500
    with structlog.contextvars.bound_contextvars(
        request_id=uuid.uuid4().hex[:12],
        method=request.method,
        path=request.path,
    ):
        logger.info("request_received", remote=request.remote)
        try:
            response = await handler(request)
            status = response.status
            return response
        except web.HTTPException as exc:
            status = exc.status
            raise
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info("request_handled", status=status, duration_ms=duration_ms)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn errors into ``{"error": ...}`` JSON without leaking internal detail."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except InstagrabError as exc:
        logger.warning(
            "request_failed",
            status=exc.status,
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
        return web.json_response({"error": exc.message}, status=exc.status)
    except Exception:
        logger.exception("unhandled_error")
        return web.json_response({"error": "Internal server error"}, status=500)
