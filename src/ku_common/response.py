"""Unified API response envelope.

Every endpoint (and every AppError) returns:
{
    "code": 0,           // 0=success, non-0=AppError code
    "message": "success",
    "data": { ... },     // null on error
    "timestamp": "...",
    "request_id": "..."  // same id RequestLogMiddleware logs
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.ku_common.datetime_utils import utc_now


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def _request_id(request: Request | None) -> str | None:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


def success_response(
    data: Any = None, request: Request | None = None, message: str = "success"
) -> ApiResponse:
    resp = ApiResponse(code=0, message=message, data=data)
    request_id = _request_id(request)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=None)
    request_id = _request_id(request)
    if request_id:
        resp.request_id = request_id
    return resp
