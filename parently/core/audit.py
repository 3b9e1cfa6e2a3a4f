"""
HTTP middleware - origin policy, request auditing and security headers.

OriginPolicyMiddleware enforces the ALLOWED_ORIGINS list: browsers from
other origins are refused outright instead of merely missing CORS headers.
AuditMiddleware logs every request with timing. SecurityHeadersMiddleware
hardens every response.
"""
import logging
import time
from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from parently.core.logging_config import get_logger

logger = get_logger(__name__)

BASE_CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

QUIET_PATHS = frozenset({"/health"})


class OriginPolicyMiddleware(BaseHTTPMiddleware):
    """
    Allow-list based CORS handling.

    - No Origin header: request passes untouched (server-to-server, curl)
    - Origin not allowed: 403 for preflight and regular requests
    - Origin allowed: preflight answered with 200, CORS headers added
    """

    def __init__(self, app: ASGIApp, allowed_origins: Iterable[str] = ()):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    def _cors_headers(self, origin: str) -> dict:
        headers = dict(BASE_CORS_HEADERS)
        if origin:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        return headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        origin = request.headers.get("origin", "")
        origin_allowed = not origin or origin in self.allowed_origins

        if request.method == "OPTIONS":
            if not origin_allowed:
                return Response(status_code=403)
            return Response(status_code=200, headers=self._cors_headers(origin))

        if not origin_allowed:
            logger.warning(f"Rejected request from origin {origin}")
            return JSONResponse(
                status_code=403,
                content={"success": False, "error": "Origin not allowed"},
            )

        response = await call_next(request)
        for key, value in self._cors_headers(origin).items():
            response.headers[key] = value
        return response


class AuditMiddleware(BaseHTTPMiddleware):
    """
    One log line per request: method, path, status, latency and caller IP.

    The latency is echoed back in X-Response-Time. Health probes are logged
    at DEBUG so load balancer polling does not flood the log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            logger.error(
                f"{request.method} {request.url.path} crashed after {elapsed:.3f}s "
                f"ip={client_ip}: {type(e).__name__}"
            )
            raise

        elapsed = time.perf_counter() - started
        self._log_request(request.method, request.url.path, response.status_code, elapsed, client_ip)
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response

    @staticmethod
    def _log_request(method: str, path: str, status_code: int, elapsed: float, client_ip: str) -> None:
        if path in QUIET_PATHS:
            logger.debug(f"{method} {path} -> {status_code} ({elapsed:.3f}s)")
            return

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(level, f"{method} {path} -> {status_code} ({elapsed:.3f}s) ip={client_ip}")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the fixed set of hardening headers in SECURITY_HEADERS to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        return response
