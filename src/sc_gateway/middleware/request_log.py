"""Request logging middleware.

Every request gets a request id, taken from an incoming X-Request-ID header
when the edge proxy supplied one, otherwise generated. The id is put on
request.state for ApiResponse and echoed back in the X-Request-ID response
header, so a player's support ticket can be matched to the purchase log.

Log format:
    INFO [POST] /api/v1/plays → 200 (23ms) req_a1b2c3d4e5f6

Server errors are logged at WARNING so they stand out from normal traffic.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("sc.request")

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INCOMING_ID = 64


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= _MAX_INCOMING_ID:
        return incoming
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
