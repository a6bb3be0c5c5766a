from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Baseline headers for a JSON API consumed by the admin frontend."""

    def __init__(self, app, auth_path_prefix: str = "/api/auth") -> None:  # type: ignore[override]
        super().__init__(app)
        self.auth_path_prefix = auth_path_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        # Login/logout responses carry the session cookie
        if request.url.path.startswith(self.auth_path_prefix):
            response.headers["Cache-Control"] = "no-store"
        return response
