"""
Token and password primitives.

Access tokens are short-lived HS256 JWTs carrying the user's identity and
role. Refresh tokens live longer, carry only the user id and are signed
with a derived secret so one can never be replayed as the other.
"""
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import bcrypt
import jwt

from parently.core.exceptions import AuthenticationError

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt (cost 10)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@dataclass(frozen=True)
class TokenPayload:
    """Claims carried by an access token."""
    user_id: str
    email: str
    user_type: str
    parent_id: Optional[str] = None
    iat: int = 0
    exp: int = 0


class TokenService:
    """
    Issues and verifies access and refresh tokens.

    Example:
        >>> tokens = TokenService("secret")
        >>> token = tokens.generate_access_token(TokenPayload("u1", "a@b.co", "parent"))
        >>> tokens.verify_access_token(token).user_id
        'u1'
    """

    def __init__(
        self,
        secret: str,
        access_ttl_seconds: int = 15 * 60,
        refresh_ttl_seconds: int = 7 * 24 * 60 * 60,
    ):
        self.secret = secret
        self.refresh_secret = secret + "_refresh"
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_seconds = refresh_ttl_seconds

    def generate_access_token(self, payload: TokenPayload) -> str:
        now = int(time.time())
        claims: Dict[str, Any] = {
            "userId": payload.user_id,
            "email": payload.email,
            "userType": payload.user_type,
            "iat": now,
            "exp": now + self.access_ttl_seconds,
        }
        if payload.parent_id:
            claims["parentId"] = payload.parent_id
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def generate_refresh_token(self, user_id: str) -> str:
        now = int(time.time())
        claims = {
            "userId": user_id,
            "type": "refresh",
            "iat": now,
            "exp": now + self.refresh_ttl_seconds,
        }
        return jwt.encode(claims, self.refresh_secret, algorithm=ALGORITHM)

    def verify_access_token(self, token: str) -> TokenPayload:
        try:
            decoded = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        if "userId" not in decoded or "userType" not in decoded:
            raise AuthenticationError("Invalid token")

        return TokenPayload(
            user_id=decoded["userId"],
            email=decoded.get("email", ""),
            user_type=decoded["userType"],
            parent_id=decoded.get("parentId"),
            iat=decoded.get("iat", 0),
            exp=decoded.get("exp", 0),
        )

    def verify_refresh_token(self, token: str) -> str:
        """Return the user id carried by a valid refresh token."""
        try:
            decoded = jwt.decode(token, self.refresh_secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Refresh token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid refresh token")

        if decoded.get("type") != "refresh" or not decoded.get("userId"):
            raise AuthenticationError("Invalid token type")

        return decoded["userId"]

    @staticmethod
    def extract_token_from_header(auth_header: Optional[str]) -> str:
        if not auth_header or not auth_header.startswith("Bearer "):
            raise AuthenticationError("Invalid authorization header")
        token = auth_header[len("Bearer "):].strip()
        if not token:
            raise AuthenticationError("Invalid authorization header")
        return token
