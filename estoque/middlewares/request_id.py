"""Per-request correlation id, timing header and access log line."""

from __future__ import annotations

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)
logger = logging.getLogger("estoque.request")

# Inbound ids are echoed back in headers and logs, so only accept plain tokens.
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")
# Probes hit these constantly; they still get an id, just no log line.
_UNLOGGED_PATHS = ("/health", "/metrics")


def _incoming_id(request: Request, header_name: str) -> str:
    candidate = (request.headers.get(header_name) or "").strip()
    return candidate if _SAFE_ID.match(candidate) else uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _incoming_id(request, self.header_name)
        request.state.request_id = request_id
        id_token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            response.headers[self.header_name] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
            if request.url.path not in _UNLOGGED_PATHS:
                self._log(request, response.status_code, elapsed_ms)
        finally:
            request_id_ctx_var.reset(id_token)
            principal_ctx_var.reset(principal_token)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, elapsed_ms: float) -> None:
        # Dependencies run in their own context; the auth dependency leaves
        # the principal on request.state for us.
        principal = getattr(request.state, "principal", None)
        if principal:
            principal_ctx_var.set(principal)
        level = logging.WARNING if status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request.completed",
            extra={
                "extra_data": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": status_code,
                    "duration_ms": elapsed_ms,
                }
            },
        )
