"""
Fernet helpers for the bearer token kept in settings (AUTH_TOKEN_ENCRYPTED)
"""
from typing import Optional

from cryptography.fernet import Fernet

from staff_permissions.config import settings


def get_fernet(key: Optional[str] = None) -> Fernet:
    """Fernet for the stored bearer token; an explicit empty key is not replaced by settings"""
    if key is None:
        key = settings.ENCRYPTION_KEY
    if not key:
        raise ValueError("No Fernet key configured for the stored bearer token (ENCRYPTION_KEY)")

    if isinstance(key, str):
        key = key.encode()

    return Fernet(key)


def encrypt_token(token: str, key: Optional[str] = None) -> str:
    """
    Encrypt a bearer token for storage in AUTH_TOKEN_ENCRYPTED

    Args:
        token: Bearer token without the "Bearer " prefix
        key: Fernet key, defaults to settings.ENCRYPTION_KEY

    Returns:
        Fernet token text safe to put in the environment or .env file
    """
    fernet = get_fernet(key)
    encrypted = fernet.encrypt(token.encode())
    return encrypted.decode()


def decrypt_token(encrypted_token: str, key: Optional[str] = None) -> str:
    """
    Recover the bearer token from its stored AUTH_TOKEN_ENCRYPTED form

    Args:
        encrypted_token: Value produced by encrypt_token
        key: Fernet key, defaults to settings.ENCRYPTION_KEY

    Returns:
        Bearer token sent in the Authorization header

    Raises:
        ValueError: no key is configured
        cryptography.fernet.InvalidToken: wrong key or corrupted value
    """
    fernet = get_fernet(key)
    decrypted = fernet.decrypt(encrypted_token.encode())
    return decrypted.decode()
