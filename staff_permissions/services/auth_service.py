"""
Auth token providers for the permission API
"""
import logging
from typing import Optional

from cryptography.fernet import InvalidToken

from staff_permissions.config import Settings, settings as default_settings
from staff_permissions.exceptions import AuthMissing
from staff_permissions.utils.encryption import decrypt_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def bearer_header(token: str) -> str:
    """Build the Authorization header value, tolerating pre-prefixed tokens"""
    if token.startswith(BEARER_PREFIX):
        return token
    return f"{BEARER_PREFIX}{token}"


class TokenProvider:
    """Source of the current bearer token"""

    async def get_token(self) -> str:
        """
        Return the current token

        Raises:
            AuthMissing: no token is available
        """
        raise NotImplementedError


class StaticTokenProvider(TokenProvider):

    def __init__(self, token: Optional[str]):
        self._token = token

    async def get_token(self) -> str:
        if not self._token:
            raise AuthMissing()
        return self._token


class SettingsTokenProvider(TokenProvider):
    """Reads AUTH_TOKEN, or decrypts AUTH_TOKEN_ENCRYPTED with ENCRYPTION_KEY."""

    def __init__(self, config: Optional[Settings] = None):
        self._settings = config or default_settings

    async def get_token(self) -> str:
        if self._settings.AUTH_TOKEN:
            return self._settings.AUTH_TOKEN

        if not self._settings.AUTH_TOKEN_ENCRYPTED:
            raise AuthMissing()

        try:
            token = decrypt_token(
                self._settings.AUTH_TOKEN_ENCRYPTED.strip(),
                key=self._settings.ENCRYPTION_KEY,
            )
        except (ValueError, InvalidToken) as exc:
            logger.warning("Stored auth token could not be decrypted: %s", exc.__class__.__name__)
            raise AuthMissing("Stored auth token could not be decrypted") from exc

        if not token:
            raise AuthMissing()
        return token
