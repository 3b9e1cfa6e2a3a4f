"""
Error types raised by services and routes.

Each class carries the HTTP status it maps to. The handler in
parently.api.main turns any of them into {"success": false, "error": message};
`details` never reaches the client.
"""
from typing import Optional


class ParentlyException(Exception):
    """Root of the hierarchy. Subclasses override status_code."""
    status_code: int = 500

    def __init__(self, message: str = "Internal server error", details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
        }


class ValidationError(ParentlyException):
    """Bad input that got past schema validation (e.g. an invalid parentId)."""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class AuthenticationError(ParentlyException):
    """Raised when a request carries no valid credentials."""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(ParentlyException):
    """Raised when the caller is authenticated but not allowed."""
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(ParentlyException):
    """Raised when a requested resource does not exist for the caller."""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(ParentlyException):
    """Raised when a write collides with existing state."""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message)


class RateLimitExceeded(ParentlyException):
    """Bucket exhausted; `retry_after` becomes the Retry-After header."""
    status_code = 429

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message=f"Rate limit exceeded. Try again in {retry_after} seconds",
            details=f"retry_after={retry_after}"
        )
        self.retry_after = retry_after


class DatabaseError(ParentlyException):
    """Storage failure; the original error stays in the log."""
    status_code = 500

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)


class LLMError(ParentlyException):
    """Raised when every LLM attempt (and the fallback) has failed."""
    status_code = 500

    def __init__(self, message: str = "LLM service unavailable"):
        super().__init__(message)


class EncryptionError(ParentlyException):
    """Raised when a field cannot be encrypted or decrypted."""
    status_code = 500

    def __init__(self, message: str = "Failed to process encrypted data"):
        super().__init__(message)
