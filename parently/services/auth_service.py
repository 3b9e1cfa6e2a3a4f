"""
Auth Service - Accounts, tokens and role checks.

Routes stay thin: they hand the raw Authorization header or the
validated request body to this service and get back typed users and
token bundles, or a ParentlyException with the right status code.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from parently.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from parently.core.logging_config import get_logger
from parently.core.security import (
    TokenPayload,
    TokenService,
    hash_password,
    verify_password,
)
from parently.database.repository import FamilyRepository
from parently.models.records import User
from parently.models.requests import RegisterRequest

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached to a request after token verification."""
    id: str
    email: str
    user_type: str
    parent_id: Optional[str] = None

    @property
    def is_parent(self) -> bool:
        return self.user_type == "parent"

    @property
    def is_child(self) -> bool:
        return self.user_type == "child"


class AuthService:
    """
    Registration, login, token refresh and authorization helpers.

    Example:
        >>> auth = AuthService(repository, TokenService("secret"))
        >>> user, tokens = auth.login("parent@family.com", "password123")
        >>> auth.authenticate(f"Bearer {tokens['accessToken']}").id == user.id
        True
    """

    def __init__(self, repository: FamilyRepository, tokens: TokenService):
        self.repository = repository
        self.tokens = tokens

    # ============================================================
    # Tokens
    # ============================================================

    def generate_tokens(self, user: User) -> Dict[str, Any]:
        """Issue an access/refresh pair for a user."""
        payload = TokenPayload(
            user_id=user.id,
            email=user.email,
            user_type=user.user_type,
            parent_id=user.parent_id,
        )
        return {
            "accessToken": self.tokens.generate_access_token(payload),
            "refreshToken": self.tokens.generate_refresh_token(user.id),
            "expiresIn": self.tokens.access_ttl_seconds,
            "refreshExpiresIn": self.tokens.refresh_ttl_seconds,
        }

    def refresh_access_token(self, refresh_token: Optional[str]) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new access token.

        Raises:
            ValidationError: If no token was supplied
            AuthenticationError: If the token is invalid or the user is gone
        """
        if not refresh_token:
            raise ValidationError("Refresh token required", field="refreshToken")

        user_id = self.tokens.verify_refresh_token(refresh_token)
        user = self.repository.get_user_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")

        payload = TokenPayload(
            user_id=user.id,
            email=user.email,
            user_type=user.user_type,
            parent_id=user.parent_id,
        )
        return {
            "accessToken": self.tokens.generate_access_token(payload),
            "expiresIn": self.tokens.access_ttl_seconds,
        }

    # ============================================================
    # Accounts
    # ============================================================

    def register(self, request: RegisterRequest) -> Tuple[User, Dict[str, Any]]:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: Bad parentId for the requested account type
            ConflictError: Email already registered
        """
        if request.parent_id is not None:
            if request.user_type == "parent":
                raise ValidationError("Parent accounts cannot have a parent", field="parentId")
            parent = self.repository.get_user_by_id(request.parent_id)
            if parent is None or parent.user_type != "parent":
                raise ValidationError("Invalid parent ID", field="parentId")

        user = self.repository.create_user(
            email=request.email,
            name=request.name,
            password_hash=hash_password(request.password),
            user_type=request.user_type,
            parent_id=request.parent_id,
        )
        logger.info(f"Registered {user.user_type} account {user.id[:8]}...")
        return user, self.generate_tokens(user)

    def login(self, email: str, password: str) -> Tuple[User, Dict[str, Any]]:
        """
        Verify credentials.

        Unknown email and wrong password produce the same error.
        """
        stored = self.repository.get_user_by_email(email)
        if stored is None or not verify_password(password, stored.password_hash):
            logger.warning("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = User.model_validate(stored.model_dump())
        return user, self.generate_tokens(user)

    # ============================================================
    # Request authentication
    # ============================================================

    def authenticate(self, authorization: Optional[str]) -> AuthenticatedUser:
        """
        Resolve the Authorization header to a live user.

        Raises:
            AuthenticationError: Missing/invalid token or deleted user
        """
        token = self.tokens.extract_token_from_header(authorization)
        claims = self.tokens.verify_access_token(token)

        user = self.repository.get_user_by_id(claims.user_id)
        if user is None:
            raise AuthenticationError("User not found")

        return AuthenticatedUser(
            id=user.id,
            email=user.email,
            user_type=user.user_type,
            parent_id=user.parent_id,
        )

    @staticmethod
    def require_parent(user: AuthenticatedUser) -> AuthenticatedUser:
        if not user.is_parent:
            raise AuthorizationError("Parent access required")
        return user

    @staticmethod
    def require_child(user: AuthenticatedUser) -> AuthenticatedUser:
        if not user.is_child:
            raise AuthorizationError("Child access required")
        return user

    def require_own_child(self, parent: AuthenticatedUser, child_id: Optional[str]) -> User:
        """
        Load a child that belongs to the given parent.

        Raises:
            ValidationError: childId missing
            AuthorizationError: Not a child of this parent
        """
        if not child_id:
            raise ValidationError("childId query parameter is required", field="childId")

        child = self.repository.get_user_by_id(child_id)
        if child is None or child.user_type != "child" or child.parent_id != parent.id:
            raise AuthorizationError("Access denied")
        return child
