from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request, Response

    from siteledger.config import Settings

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log failed and write requests with their timing, and expose the timing as a header."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        if response.status_code >= 400 or request.method != "GET":
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                "%s %s -> %d in %.3fs (org=%s user=%s)",
                request.method,
                request.url.path,
                response.status_code,
                duration,
                request.headers.get("X-Organization-Id", "-"),
                request.headers.get("X-User-Id", "-"),
            )
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    app.add_middleware(RequestLoggingMiddleware)  # ty: ignore[invalid-argument-type]
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Response-Time"],
    )
