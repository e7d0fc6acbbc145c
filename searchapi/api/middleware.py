from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response

log = logging.getLogger("searchapi.api")


async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["x-request-id"] = request_id
        return response
    finally:
        latency_ms = (time.perf_counter() - start) * 1000.0
        log.info(
            "request",
            extra={
                "request_id": request_id,
                "path": str(request.url.path),
                "method": request.method,
                "status_code": status_code,
                "latency_ms": round(latency_ms, 2),
            },
        )
