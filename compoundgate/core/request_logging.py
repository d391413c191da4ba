"""Per-request access logging and client address helpers."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from compoundgate.core.constants import Routes
from compoundgate.core.logging import _env_flag

logger = logging.getLogger("compoundgate.request")


def client_ip_from_request(request: Request) -> str:
    """Best-effort client IP, honouring proxy headers before the socket peer.

    Also stored on device sessions, so it must never raise.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


def _level_for(path: str, status_code: int | None) -> int:
    if status_code is None or status_code >= 500:
        return logging.ERROR
    # Probes hit this every few seconds.
    if path.startswith(Routes.HEALTH.prefix):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            status_code = response.status_code if response else None
            path = request.url.path
            query = request.url.query

            logger.log(
                _level_for(path, status_code),
                "%s %s%s -> %s (%.2fms)",
                request.method,
                path,
                f"?{query}" if query else "",
                status_code,
                elapsed_ms,
                extra={
                    "method": request.method,
                    "path": path,
                    "query": query,
                    "status_code": status_code,
                    "duration_ms": elapsed_ms,
                    "client_ip": client_ip_from_request(request),
                    "user_agent": request.headers.get("user-agent"),
                },
            )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach the access log unless LOG_REQUESTS is off."""
    if _env_flag("LOG_REQUESTS", default=True):
        app.add_middleware(RequestLoggingMiddleware)
