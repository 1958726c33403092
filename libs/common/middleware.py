"""Request tracing middleware.

Every request gets an ``X-Request-ID`` (taken from the incoming header when the
client supplies one) that is bound to the logging context and echoed back on
the response, together with start/finish log lines and timing.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request context for logging and time each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        if not quiet:
            logger.info("%s %s started", request.method, request.url.path)

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)

            if not quiet:
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "%s %s -> %s (%.2fms)",
                    request.method,
                    request.url.path,
                    response.status_code,
                    duration_ms,
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "duration_ms": duration_ms,
                        }
                    },
                )

            response.headers["X-Request-ID"] = request_id
            return response
        except Exception:
            logger.exception(
                "%s %s failed after %.2fms",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
            )
            raise
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install the request context middleware."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
