"""
Pydantic models for the OAuth connector: configuration, token bundle,
callback result and the outcome variants returned to the HTTP adapter.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from connectors.exceptions import ProviderDeniedError


class OAuthConfig(BaseModel):
    """
    Immutable configuration for one platform connector.

    The five required fields (``platform``, ``auth_url``, ``token_url``,
    ``client_id``, ``client_secret``) are validated by ``OAuthConnector``
    so that a missing one surfaces as ``OAuthConfigError``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    platform: Optional[str] = None
    auth_url: Optional[str] = None
    token_url: Optional[str] = None
    user_info_url: Optional[str] = None
    scopes: Tuple[str, ...] = ()
    client_id: Optional[str] = None
    client_secret: Optional[str] = Field(default=None, repr=False)
    redirect_uri: Optional[str] = None
    display_name: Optional[str] = None

    auth_type: str = "oauth2"
    use_pkce: bool = False
    use_basic_auth: bool = False
    require_state: bool = False  # fail closed when no state was stored
    extra_params: Dict[str, str] = Field(default_factory=dict)

    transform_user_info: Optional[Callable[[Any], Any]] = None
    on_success: Optional[Callable[..., Any]] = None
    on_error: Optional[Callable[..., Any]] = None


class AuthorizationRequestState(BaseModel):
    """Per-attempt values kept in the session between initiate and callback."""

    state: str
    code_verifier: Optional[str] = Field(default=None, repr=False)


class NormalizedTokenResponse(BaseModel):
    """Canonical token-endpoint result handed to the caller for persistence."""

    access_token: str = Field(repr=False)
    refresh_token: Optional[str] = Field(default=None, repr=False)
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    scope: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_provider(
        cls,
        data: Dict[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> "NormalizedTokenResponse":
        """Normalise a raw token response; ``expires_at`` is now + expires_in."""
        now = now or datetime.now(timezone.utc)
        expires_in = data.get("expires_in")
        if expires_in is not None and expires_in != "":
            expires_in = int(expires_in)
        else:
            expires_in = None
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or None,
            token_type=data.get("token_type") or "Bearer",
            expires_in=expires_in,
            expires_at=now + timedelta(seconds=expires_in) if expires_in else None,
            scope=data.get("scope"),
            raw=dict(data),
        )


class OAuthResult(BaseModel):
    """Bundle produced by a completed callback."""

    platform: str
    tokens: NormalizedTokenResponse
    user_info: Optional[Any] = None


class Redirect(BaseModel):
    """Instruction to send the user-agent elsewhere."""

    url: str
    status_code: int = 302


# ── Callback outcomes ──────────────────────────────────────────────────


class CallbackSuccess(BaseModel):
    result: OAuthResult


class CallbackDenied(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: ProviderDeniedError


class CallbackFailed(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    error: Exception


CallbackOutcome = Union[CallbackSuccess, CallbackDenied, CallbackFailed]
