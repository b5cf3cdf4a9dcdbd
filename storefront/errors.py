"""Exception types raised by the storefront client."""
from typing import Optional


class StorefrontError(Exception):
    """Base class for storefront errors."""


class NotAuthenticated(StorefrontError):
    """No user session; the caller should prompt for login and redirect."""

    def __init__(
        self,
        message: str = "Please login to continue",
        redirect_to: str = "login"
    ):
        super().__init__(message)
        self.message = message
        self.redirect_to = redirect_to


class ValidationError(StorefrontError):
    """A required identifier or field was missing."""


class RemoteFailure(StorefrontError):
    """Network error, timeout, HTTP error or a ``success: false`` reply."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
