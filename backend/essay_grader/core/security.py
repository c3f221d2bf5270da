"""
Encryption of the stored API key.
"""

import base64
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# Salt for key derivation (in production, this should be stored securely)
DEFAULT_SALT = b"essay_grader_salt_2025"


def get_encryption_key(password: Optional[str] = None) -> bytes:
    """
    Derive a Fernet key from a password or the ESSAY_GRADER_ENCRYPTION_KEY environment variable.
    """
    if password is None:
        password = os.environ.get(
            "ESSAY_GRADER_ENCRYPTION_KEY", "default_key_for_local_use"
        )

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=DEFAULT_SALT,
        iterations=480000,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode()))


def encrypt_api_key(api_key: str, password: Optional[str] = None) -> str:
    """
    Encrypt an API key for storage.

    Args:
        api_key: The API key to encrypt.
        password: Optional password for encryption.

    Returns:
        Encrypted API key as a base64-encoded string.
    """
    fernet = Fernet(get_encryption_key(password))
    encrypted = fernet.encrypt(api_key.encode())
    return base64.urlsafe_b64encode(encrypted).decode()


def decrypt_api_key(encrypted_key: str, password: Optional[str] = None) -> str:
    """
    Decrypt an encrypted API key.

    Raises:
        cryptography.fernet.InvalidToken: If the key was encrypted with another password.
    """
    fernet = Fernet(get_encryption_key(password))
    encrypted_bytes = base64.urlsafe_b64decode(encrypted_key.encode())
    return fernet.decrypt(encrypted_bytes).decode()


def decrypt_api_key_safe(encrypted_key: Optional[str], password: Optional[str] = None) -> Optional[str]:
    """Decrypt an API key, returning None when it is missing or cannot be decrypted."""
    if not encrypted_key:
        return None
    try:
        return decrypt_api_key(encrypted_key, password)
    except (InvalidToken, ValueError):
        return None
