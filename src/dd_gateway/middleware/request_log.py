"""Per-request access log for the round API.

Each request gets a request_id on ``request.state``; routers copy it into
the response envelope so a client-reported id can be matched to this line:

    INFO [POST] /api/v1/bet → 400 (4ms) req_a1b2c3d4e5f6

Server errors log at WARNING. The advance-round trigger is polled by an
external scheduler every few seconds, so its successful calls log at DEBUG.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.dd_common.response import new_request_id

logger = logging.getLogger("dd.request")

POLLED_PATHS = frozenset({"/api/v1/cron/advance-round", "/health"})


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.WARNING
    if path in POLLED_PATHS and status_code < 400:
        return logging.DEBUG
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = new_request_id()

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.log(
            _level_for(request.url.path, response.status_code),
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        return response
