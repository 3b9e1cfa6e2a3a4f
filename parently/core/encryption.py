"""
Field encryption and identifier helpers.

Free-text columns (check-in notes, chat messages, child messages) are
stored encrypted. Fernet gives authenticated symmetric encryption; the
Fernet key is derived from the configured ENCRYPTION_KEY so operators can
supply any passphrase.
"""
import base64
import hashlib
import uuid

from cryptography.fernet import Fernet, InvalidToken

from parently.core.exceptions import EncryptionError
from parently.core.logging_config import get_logger

logger = get_logger(__name__)


class EncryptionService:
    """
    Symmetric encrypt/decrypt for sensitive text plus random ID generation.

    Example:
        >>> service = EncryptionService("my-secret")
        >>> token = service.encrypt("hello")
        >>> service.decrypt(token)
        'hello'
    """

    def __init__(self, encryption_key: str):
        if not encryption_key:
            raise ValueError("Encryption key must not be empty")
        digest = hashlib.sha256(encryption_key.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, text: str) -> str:
        """Encrypt text. Empty input stays empty."""
        if not text:
            return ""
        try:
            return self._fernet.encrypt(text.encode("utf-8")).decode("ascii")
        except (TypeError, ValueError) as e:
            logger.error(f"Encryption error: {e}")
            raise EncryptionError("Failed to encrypt data") from e

    def decrypt(self, encrypted_text: str) -> str:
        """Decrypt text produced by encrypt()."""
        if not encrypted_text:
            return ""
        try:
            return self._fernet.decrypt(encrypted_text.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError, ValueError) as e:
            logger.error(f"Decryption error: {type(e).__name__}")
            raise EncryptionError("Failed to decrypt data") from e

    @staticmethod
    def hash(text: str) -> str:
        """One-way SHA-256 hex digest."""
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    @staticmethod
    def generate_secure_id() -> str:
        """Random UUID4 string used as a primary key."""
        return str(uuid.uuid4())
