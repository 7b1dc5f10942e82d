"""Response envelope shared by every route.

    {"code": 0, "message": "success", "data": {"live_round": ...},
     "timestamp": "2024-05-01T12:00:00+00:00", "request_id": "req_3f9c0a1b2d4e"}

``code`` is 0 on success, otherwise one of the AppError codes in
``dd_common.errors`` (1xxx round, 2xxx stake, 3xxx auth, 9xxx system),
in which case ``data`` is null. Round and stake timestamps inside ``data``
are epoch milliseconds; only the envelope timestamp is ISO-8601.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data)


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None)
