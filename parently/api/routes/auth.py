"""
Auth Routes - Registration, login and token lifecycle.

Anonymous endpoints are rate limited by client IP; authenticated ones
by user id. All share the `general` bucket.
"""
from fastapi import APIRouter, Depends

from parently.api.dependencies import get_auth_service, ip_rate_limited, rate_limited
from parently.cache.service import CacheService, get_cache_service
from parently.core.exceptions import NotFoundError
from parently.core.logging_config import get_logger
from parently.database.repository import FamilyRepository, get_repository
from parently.models.common import success
from parently.models.requests import LoginRequest, RefreshRequest, RegisterRequest
from parently.services.auth_service import AuthenticatedUser, AuthService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["Auth"],
)


@router.post(
    "/register",
    status_code=201,
    summary="Create a parent or child account",
    dependencies=[Depends(ip_rate_limited("general"))],
)
def register(
    request: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    """
    Register a new account and return it with a fresh token pair.

    Child accounts pass `parentId` pointing at an existing parent.
    """
    user, tokens = auth.register(request)
    return success({"user": user, "tokens": tokens})


@router.post(
    "/login",
    summary="Exchange credentials for tokens",
    dependencies=[Depends(ip_rate_limited("general"))],
)
def login(
    request: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    user, tokens = auth.login(request.email, request.password)
    logger.info(f"User {user.id[:8]}... logged in")
    return success({"user": user, "tokens": tokens})


@router.post(
    "/refresh",
    summary="Exchange a refresh token for a new access token",
    dependencies=[Depends(ip_rate_limited("general"))],
)
def refresh(
    request: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict:
    return success(auth.refresh_access_token(request.refresh_token))


@router.get("/me", summary="Current user profile")
def me(
    user: AuthenticatedUser = Depends(rate_limited("general")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    profile = repository.get_user_by_id(user.id)
    if profile is None:
        raise NotFoundError("User not found")
    return success(profile)


@router.post("/logout", summary="Drop the user's cached AI output")
def logout(
    user: AuthenticatedUser = Depends(rate_limited("general")),
    cache: CacheService = Depends(get_cache_service),
) -> dict:
    """
    Tokens are stateless, so logout clears the user's cached plans,
    AI responses and insights.
    """
    cleared = cache.clear_user_cache(user.id)
    logger.info(f"User {user.id[:8]}... logged out ({cleared} cache entries cleared)")
    return success(message="Logged out successfully")
