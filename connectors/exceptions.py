"""
Errors raised by the OAuth connector.

Construction errors (``OAuthConfigError``, ``UnknownPresetError``) always
reach the caller.  Everything raised while handling a request is caught at
the connector boundary and turned into a redirect or handed to the
configured ``on_error`` continuation.
"""

from __future__ import annotations

from typing import Optional


class OAuthError(Exception):
    """Base class for every connector error."""

    def __init__(self, message: str, *, platform: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.platform = platform


class OAuthConfigError(OAuthError):
    """A required configuration field is missing or malformed."""


class UnknownPresetError(OAuthError):
    """No preset is registered for the requested platform."""


class ProviderDeniedError(OAuthError):
    """The provider redirected back with ``error`` (user declined, etc.)."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> None:
        super().__init__(message, platform=platform)
        self.error_code = error_code


class CSRFError(OAuthError):
    """Returned ``state`` does not match the one stored in the session."""


class MissingRefreshTokenError(OAuthError):
    """``refresh_token`` was called without a refresh token."""


class OAuthTransportError(OAuthError):
    """Network or HTTP-status failure talking to the provider."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        platform: Optional[str] = None,
    ) -> None:
        super().__init__(message, platform=platform)
        self.status_code = status_code


class TokenResponseError(OAuthError):
    """Token endpoint answered 2xx but the body carries an error or no token."""
