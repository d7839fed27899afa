"""
Token lifecycle helpers — refresh before expiry, seal / unseal for storage.

The connector never persists anything.  These helpers turn an
``OAuthResult`` into a storage record with encrypted tokens, and refresh a
token bundle shortly before it expires.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from config.settings import config
from connectors.base import OAuthConnector
from connectors.encryption import decrypt_token, encrypt_token
from connectors.models import NormalizedTokenResponse, OAuthResult

logger = logging.getLogger(__name__)


def needs_refresh(
    expires_at: Union[datetime, str, None],
    buffer_seconds: Optional[int] = None,
) -> bool:
    """True once ``now + buffer`` reaches ``expires_at``; False if no expiry is known."""
    if not expires_at:
        return False
    if buffer_seconds is None:
        buffer_seconds = config.token_refresh_buffer_seconds
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= expires_at


async def refresh_if_needed(
    connector: OAuthConnector,
    tokens: NormalizedTokenResponse,
    *,
    buffer_seconds: Optional[int] = None,
) -> NormalizedTokenResponse:
    """
    Refresh ``tokens`` if they are about to expire.

    Returns the same object when no refresh is due or no refresh token is
    held.  Providers that do not rotate refresh tokens keep the old one.
    """
    if not needs_refresh(tokens.expires_at, buffer_seconds):
        return tokens
    if not tokens.refresh_token:
        logger.info("[%s] Token near expiry but no refresh token held", connector.platform)
        return tokens

    refreshed = await connector.refresh_token(tokens.refresh_token)
    if not refreshed.refresh_token:
        refreshed = refreshed.model_copy(update={"refresh_token": tokens.refresh_token})
    return refreshed


def seal_tokens(result: OAuthResult) -> Dict[str, Any]:
    """Storage record for a completed connection, tokens encrypted."""
    tokens = result.tokens
    return {
        "platform": result.platform,
        "access_token": encrypt_token(tokens.access_token),
        "refresh_token": encrypt_token(tokens.refresh_token) if tokens.refresh_token else None,
        "token_type": tokens.token_type,
        "expires_at": tokens.expires_at.isoformat() if tokens.expires_at else None,
        "scope": tokens.scope,
        "user_info": result.user_info,
    }


def unseal_tokens(record: Dict[str, Any]) -> NormalizedTokenResponse:
    """Rebuild a token bundle from a record produced by ``seal_tokens``."""
    expires_at = record.get("expires_at")
    refresh = record.get("refresh_token")
    return NormalizedTokenResponse(
        access_token=decrypt_token(record["access_token"]),
        refresh_token=decrypt_token(refresh) if refresh else None,
        token_type=record.get("token_type") or "Bearer",
        expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        scope=record.get("scope"),
    )
