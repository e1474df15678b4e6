"""Request logging and request-id propagation.

An inbound X-Request-ID (from a proxy or the Paystack retry loop) is kept
when it looks sane, otherwise a fresh `req_<12 hex>` id is minted. The id is
stored on request.state for the response envelope and echoed back as a
header, so settlement log lines can be matched to a client report.

    INFO [POST] /api/v1/payments/webhook -> 200 (38ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("ku.request")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_\-]{8,64}$")


def resolve_request_id(inbound: str | None) -> str:
    if inbound and _VALID_REQUEST_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s",
            request.method, request.url.path, response.status_code, elapsed_ms, request_id,
        )
        return response
