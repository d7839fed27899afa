"""
connectors — OAuth2 connector for linking social platforms to user accounts.

Provides a generic, config-driven connector that handles:
  • Authorization URL generation (state + optional PKCE)
  • Callback handling (code → token exchange, user-info fetch)
  • Token refresh and expiry checks
  • AES-256-CBC encryption of tokens at rest
  • Presets for Twitter, Instagram, LinkedIn, YouTube and GitHub

Platforms differ only in their ``OAuthConfig``; there are no subclasses.
"""

from connectors.base import OAuthConnector, is_token_expired
from connectors.exceptions import (
    CSRFError,
    MissingRefreshTokenError,
    OAuthConfigError,
    OAuthError,
    OAuthTransportError,
    ProviderDeniedError,
    TokenResponseError,
    UnknownPresetError,
)
from connectors.models import NormalizedTokenResponse, OAuthConfig, OAuthResult, Redirect
from connectors.presets import PRESETS, from_preset
from connectors.session import MappingSessionStore, RequestContext, SessionStore

__all__ = [
    "CSRFError",
    "MappingSessionStore",
    "MissingRefreshTokenError",
    "NormalizedTokenResponse",
    "OAuthConfig",
    "OAuthConfigError",
    "OAuthConnector",
    "OAuthError",
    "OAuthResult",
    "OAuthTransportError",
    "PRESETS",
    "ProviderDeniedError",
    "Redirect",
    "RequestContext",
    "SessionStore",
    "TokenResponseError",
    "UnknownPresetError",
    "from_preset",
    "is_token_expired",
]
