"""Request timing and tracing middleware for the CPQ pricing API."""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("cpq-api.middleware")

SKIP_LOG_PATHS = {"/health"}


def _team_id(request: Request):
    # Bulk-operation and settings calls name the team in the query string;
    # the frontend also sends it as a header on every call
    return request.headers.get("X-Team-ID") or request.query_params.get("team_id")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Per-request tracing for the pricing API.

    Reuses the caller's X-Request-ID (or assigns one), stores it and the team
    id on ``request.state`` for route handlers, adds X-Process-Time (ms) to the
    response and logs one structured line per request except /health.
    Requests slower than ``slow_request_ms`` are logged at WARNING; a handler
    that raises is logged with status 500 and the exception propagates.
    """

    def __init__(self, app, slow_request_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        team_id = _team_id(request)
        request.state.request_id = request_id
        request.state.team_id = team_id
        start_time = time.perf_counter()

        extra = {
            "http_method": request.method,
            "http_path": request.url.path,
            "request_id": request_id,
            "team_id": team_id,
        }

        try:
            response: Response = await call_next(request)
        except Exception:
            extra["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.exception("request failed", extra={**extra, "http_status": 500})
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            level = logging.WARNING if duration_ms > self.slow_request_ms else logging.INFO
            logger.log(
                level,
                "slow request" if level == logging.WARNING else "request completed",
                extra={**extra, "http_status": response.status_code, "duration_ms": duration_ms},
            )

        return response
