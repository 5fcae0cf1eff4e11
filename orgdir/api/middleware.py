"""Request logging middleware."""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from orgdir.core.metrics import observe_http_request
from orgdir.core.structured_logging import log_json, new_request_id, request_id_context

logger = logging.getLogger(__name__)


def _incoming_request_id(request: Request) -> str | None:
    candidate = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate or len(candidate) > 128 or "\n" in candidate or "\r" in candidate:
        return None
    return candidate


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one JSON line per request and binds the correlation ID."""

    async def dispatch(self, request: Request, call_next):
        request_id = _incoming_request_id(request) or new_request_id()
        request.state.request_id = request_id

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        with request_id_context(request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    method=method,
                    path=path,
                    status_code=500,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    exception=exc.__class__.__name__,
                )
                raise

            response.headers.setdefault("X-Request-ID", request_id)
            duration_ms = (time.perf_counter() - start_time) * 1000

            route_obj = request.scope.get("route")
            route_template = getattr(route_obj, "path", None) or "unmatched"
            observe_http_request(
                method=method,
                route=route_template,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            log_json(
                logger,
                level,
                "request",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
            return response
