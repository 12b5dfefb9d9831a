from __future__ import annotations

import time
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


def success(
    data: Any,
    message: str = "request processed successfully",
    request_id: str | None = None,
) -> dict[str, Any]:
    body = {"status": "success", "message": message, "data": data, "timestamp": now_ms()}
    if request_id:
        body["request_id"] = request_id
    return body


def failure(message: str, request_id: str | None = None) -> dict[str, Any]:
    body = {"status": "failure", "message": message, "timestamp": now_ms()}
    if request_id:
        body["request_id"] = request_id
    return body
