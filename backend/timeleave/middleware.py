from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request, Response

    from timeleave.config import Settings

logger = logging.getLogger("timeleave.access")


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log method, path, status and latency of every request."""
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "extra": {
                "company_id": request.headers.get("x-company-id"),
                "user_id": request.headers.get("x-user-id"),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        },
    )
    return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure CORS for the admin console and request logging."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Company-Id", "X-User-Id", "X-Role", "X-Branch-Id", "X-User-Name"],
    )
    app.middleware("http")(log_requests)
