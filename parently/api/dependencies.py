"""
FastAPI dependencies - service singletons, authentication and rate limits.

Route handlers declare what they need:

    user: AuthenticatedUser = Depends(rate_limited("chat", role="parent"))

which authenticates the bearer token, checks the role, charges the
named rate-limit bucket and sets the X-RateLimit-* response headers,
in that order.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, Request, Response

from parently.core.config import get_settings
from parently.core.rate_limiter import RateLimitInfo, get_rate_limiter
from parently.core.security import TokenService
from parently.database.repository import get_repository
from parently.services.ai_service import AIService
from parently.services.auth_service import AuthenticatedUser, AuthService

# ============================================================
# Service singletons
# ============================================================

_auth_service: Optional[AuthService] = None
_ai_service: Optional[AIService] = None


def get_auth_service() -> AuthService:
    """Get or create the auth service instance."""
    global _auth_service
    if _auth_service is None:
        settings = get_settings()
        _auth_service = AuthService(
            get_repository(),
            TokenService(
                settings.jwt_secret,
                access_ttl_seconds=settings.access_token_ttl_seconds,
                refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
            ),
        )
    return _auth_service


def get_ai_service() -> AIService:
    """Get or create the AI service instance (builds the LLM client lazily)."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service


# ============================================================
# Authentication
# ============================================================

def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """Resolve the bearer token to a user or raise 401."""
    return auth.authenticate(authorization)


def get_client_ip(request: Request) -> str:
    """Client address, honouring proxy headers."""
    ip = request.headers.get("cf-connecting-ip")
    if ip:
        return ip
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


# ============================================================
# Rate limiting
# ============================================================

def _set_rate_limit_headers(response: Response, info: RateLimitInfo) -> None:
    response.headers["X-RateLimit-Limit"] = str(info.limit)
    response.headers["X-RateLimit-Remaining"] = str(info.remaining)


def rate_limited(bucket: str, role: Optional[str] = None) -> Callable[..., AuthenticatedUser]:
    """
    Dependency factory for authenticated endpoints.

    Args:
        bucket: Rate-limit bucket name
        role: "parent" or "child" to restrict the endpoint, None for any user
    """
    def dependency(
        response: Response,
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if role == "parent":
            AuthService.require_parent(user)
        elif role == "child":
            AuthService.require_child(user)

        info = get_rate_limiter().apply(user.id, bucket)
        _set_rate_limit_headers(response, info)
        return user

    return dependency


def ip_rate_limited(bucket: str) -> Callable[..., None]:
    """Dependency factory for anonymous endpoints, keyed by client IP."""
    def dependency(request: Request, response: Response) -> None:
        info = get_rate_limiter().apply(get_client_ip(request), bucket)
        _set_rate_limit_headers(response, info)

    return dependency
