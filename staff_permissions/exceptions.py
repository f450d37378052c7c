"""
Error taxonomy for the permission manager.

Every failure raised by the services derives from PermissionManagerError so a
caller can catch the whole family in one place.
"""
from typing import Optional


class PermissionManagerError(Exception):
    """Base class for permission manager failures"""


class AuthMissing(PermissionManagerError):
    """No bearer token is available. The caller must re-authenticate."""

    def __init__(self, message: str = "Auth token not found"):
        super().__init__(message)
        self.message = message


class NetworkError(PermissionManagerError):
    """The request never reached the server (connect error, timeout, ...)"""

    def __init__(self, message: str = "Network error. Please check your connection."):
        super().__init__(message)
        self.message = message


class ServerError(PermissionManagerError):
    """The server answered, but not with a success payload"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class StaleOperation(PermissionManagerError):
    """Result of an operation that belongs to a closed or refreshed session"""
