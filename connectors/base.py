"""
OAuthConnector — generic OAuth2 authorization-code client for one platform.

One instance per platform, configured entirely by an ``OAuthConfig``.
Platform differences (PKCE, Basic auth, user-info shape) are data on the
config, not subclasses.  An instance holds no per-request state and is safe
to share; the CSRF state and PKCE verifier live in the caller's session.

Usage::

    github = OAuthConnector(
        platform="github",
        auth_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        client_id=...,
        client_secret=...,
    )

    redirect = github.initiate_auth(ctx)          # → Redirect
    outcome = await github.handle_callback(ctx)   # → OAuthResult / Redirect / on_* result
"""

from __future__ import annotations

import base64
import hmac
import inspect
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

from connectors import encryption, pkce
from connectors.exceptions import (
    CSRFError,
    MissingRefreshTokenError,
    OAuthConfigError,
    OAuthError,
    OAuthTransportError,
    ProviderDeniedError,
    TokenResponseError,
)
from connectors.models import (
    AuthorizationRequestState,
    CallbackDenied,
    CallbackFailed,
    CallbackOutcome,
    CallbackSuccess,
    NormalizedTokenResponse,
    OAuthConfig,
    OAuthResult,
    Redirect,
)
from connectors.session import SESSION_STATE_KEY, SESSION_VERIFIER_KEY, RequestContext

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("platform", "auth_url", "token_url", "client_id", "client_secret")
ERROR_PATH = "/oauth/error"


def is_token_expired(expires_at: Union[datetime, str, None]) -> bool:
    """True when ``expires_at`` is at or before now; unknown expiry is never expired."""
    if not expires_at:
        return False
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= datetime.now(timezone.utc)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class OAuthConnector:
    """OAuth2 authorization-code flow (optionally PKCE) for one platform."""

    def __init__(
        self,
        config: Union[OAuthConfig, Mapping[str, Any], None] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        **overrides: Any,
    ) -> None:
        if isinstance(config, OAuthConfig):
            fields = {name: getattr(config, name) for name in OAuthConfig.model_fields}
        else:
            fields = dict(config or {})
        fields.update(overrides)

        # Validate before building the model so a missing field is reported
        # as a configuration error rather than a pydantic ValidationError.
        for name in REQUIRED_FIELDS:
            if not fields.get(name):
                raise OAuthConfigError(
                    f"OAuth config missing required field: {name}",
                    platform=fields.get("platform"),
                )

        try:
            self._config = OAuthConfig(**fields)
        except ValidationError as exc:
            raise OAuthConfigError(
                f"Invalid OAuth config: {exc}", platform=fields.get("platform")
            ) from exc
        self._http_client = http_client

    @classmethod
    def create(cls, config: Union[OAuthConfig, Mapping[str, Any], None] = None, **kwargs: Any) -> "OAuthConnector":
        return cls(config, **kwargs)

    # ── Identity ────────────────────────────────────────────────────────

    @property
    def config(self) -> OAuthConfig:
        return self._config

    @property
    def platform(self) -> str:
        return self._config.platform  # type: ignore[return-value]

    @property
    def display_name(self) -> str:
        return self._config.display_name or self.platform.capitalize()

    def __repr__(self) -> str:
        return f"OAuthConnector(platform={self.platform!r}, use_pkce={self._config.use_pkce})"

    # ── Random values ───────────────────────────────────────────────────

    generate_state = staticmethod(pkce.generate_state)
    generate_code_verifier = staticmethod(pkce.generate_code_verifier)
    generate_code_challenge = staticmethod(pkce.generate_code_challenge)

    # ── Authorization leg ───────────────────────────────────────────────

    def get_redirect_uri(self, ctx: RequestContext) -> str:
        """Configured redirect URI, else derived from the request host."""
        if self._config.redirect_uri:
            return self._config.redirect_uri
        scheme = "https" if ctx.is_https else "http"
        return f"{scheme}://{ctx.host}/api/oauth/{self.platform}/callback"

    def build_auth_url(
        self,
        *,
        state: str,
        redirect_uri: str,
        code_challenge: Optional[str] = None,
    ) -> str:
        params: Dict[str, str] = {
            "client_id": self._config.client_id,  # type: ignore[dict-item]
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": state,
        }
        params.update(self._config.extra_params)

        if self._config.scopes:
            params["scope"] = " ".join(self._config.scopes)

        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"

        separator = "&" if "?" in self._config.auth_url else "?"  # type: ignore[operator]
        return f"{self._config.auth_url}{separator}{urlencode(params)}"

    def new_request_state(self) -> AuthorizationRequestState:
        """Fresh CSRF state, plus a PKCE verifier when the platform uses PKCE."""
        return AuthorizationRequestState(
            state=self.generate_state(),
            code_verifier=self.generate_code_verifier() if self._config.use_pkce else None,
        )

    def prepare_authorization(self, ctx: RequestContext) -> str:
        """
        Generate state (and PKCE verifier), store them in the session and
        return the provider authorization URL.
        """
        request_state = self.new_request_state()
        code_verifier = request_state.code_verifier
        code_challenge = self.generate_code_challenge(code_verifier) if code_verifier else None

        ctx.session.set(SESSION_STATE_KEY, request_state.state)
        if code_verifier:
            ctx.session.set(SESSION_VERIFIER_KEY, code_verifier)

        return self.build_auth_url(
            state=request_state.state,
            redirect_uri=self.get_redirect_uri(ctx),
            code_challenge=code_challenge,
        )

    def initiate_auth(self, ctx: RequestContext) -> Redirect:
        """Start the flow. Never raises: failures become an error redirect."""
        try:
            url = self.prepare_authorization(ctx)
        except Exception as exc:
            logger.error("[%s] Auth initiation failed: %s", self.platform, exc)
            return self.error_redirect(exc)
        logger.info("[%s] Redirecting user to provider for authorization", self.platform)
        return Redirect(url=url)

    def error_redirect(self, error: BaseException) -> Redirect:
        message = getattr(error, "message", None) or str(error) or type(error).__name__
        return Redirect(
            url=f"{ERROR_PATH}?platform={quote(self.platform, safe='')}&error={quote(message, safe='')}"
        )

    # ── Callback leg ────────────────────────────────────────────────────

    async def complete_callback(self, ctx: RequestContext) -> CallbackOutcome:
        """
        Run the callback steps and report the outcome. Never raises.

        The stored state and verifier are removed from the session whatever
        happens.
        """
        try:
            result = await self._run_callback(ctx)
        except ProviderDeniedError as exc:
            logger.error("[%s] Provider denied authorization: %s", self.platform, exc.message)
            return CallbackDenied(error=exc)
        except Exception as exc:
            logger.error("[%s] OAuth callback failed: %s", self.platform, exc)
            return CallbackFailed(error=exc)
        finally:
            ctx.session.delete(SESSION_STATE_KEY)
            ctx.session.delete(SESSION_VERIFIER_KEY)
        return CallbackSuccess(result=result)

    async def _run_callback(self, ctx: RequestContext) -> OAuthResult:
        query = ctx.query
        error = query.get("error")
        if error:
            raise ProviderDeniedError(
                query.get("error_description") or error,
                error_code=error,
                platform=self.platform,
            )

        stored_state = ctx.session.get(SESSION_STATE_KEY)
        if stored_state:
            if not hmac.compare_digest(
                str(stored_state).encode(), (query.get("state") or "").encode()
            ):
                raise CSRFError(
                    "Invalid state parameter - possible CSRF attack", platform=self.platform
                )
        elif self._config.require_state:
            raise CSRFError("No OAuth state stored for this session", platform=self.platform)

        code = query.get("code")
        if not code:
            raise OAuthError("Missing authorization code", platform=self.platform)

        tokens = await self.exchange_code_for_tokens(
            code=code,
            redirect_uri=self.get_redirect_uri(ctx),
            code_verifier=ctx.session.get(SESSION_VERIFIER_KEY),
        )

        user_info = None
        if self._config.user_info_url:
            user_info = await self.fetch_user_info(tokens.access_token)

        return OAuthResult(platform=self.platform, tokens=tokens, user_info=user_info)

    async def handle_callback(self, ctx: RequestContext) -> Any:
        """
        Complete the flow and dispatch to a continuation.

        Success goes to ``on_success(ctx, result)`` when configured, else the
        ``OAuthResult`` is returned.  Failures go to ``on_error(ctx, error)``
        when configured, else an error ``Redirect`` is returned.  A
        continuation that returns ``None`` falls back to the same defaults.
        """
        outcome = await self.complete_callback(ctx)

        if isinstance(outcome, CallbackSuccess):
            if self._config.on_success is None:
                return outcome.result
            try:
                response = await _maybe_await(self._config.on_success(ctx, outcome.result))
            except Exception as exc:
                logger.error("[%s] Success handler failed: %s", self.platform, exc)
                return await self._dispatch_error(ctx, exc)
            return outcome.result if response is None else response

        return await self._dispatch_error(ctx, outcome.error)

    async def _dispatch_error(self, ctx: RequestContext, error: Exception) -> Any:
        if self._config.on_error is not None:
            try:
                response = await _maybe_await(self._config.on_error(ctx, error))
            except Exception as exc:
                logger.error("[%s] Error handler failed: %s", self.platform, exc)
            else:
                if response is not None:
                    return response
        return self.error_redirect(error)

    # ── Token endpoint ──────────────────────────────────────────────────

    async def exchange_code_for_tokens(
        self,
        *,
        code: str,
        redirect_uri: str,
        code_verifier: Optional[str] = None,
    ) -> NormalizedTokenResponse:
        """Exchange an authorization code for tokens."""
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": self._config.client_id,
        }
        if code_verifier:
            data["code_verifier"] = code_verifier
        # PKCE clients do not send the secret in the body.
        if not self._config.use_pkce:
            data["client_secret"] = self._config.client_secret

        return self.normalize_token_response(await self._post_token(data))

    async def refresh_token(self, refresh_token: Optional[str]) -> NormalizedTokenResponse:
        """Trade a refresh token for a new access token."""
        if not refresh_token:
            raise MissingRefreshTokenError("No refresh token provided", platform=self.platform)

        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._config.client_id,
        }
        if not self._config.use_pkce:
            data["client_secret"] = self._config.client_secret

        tokens = self.normalize_token_response(await self._post_token(data))
        logger.info("[%s] Access token refreshed", self.platform)
        return tokens

    async def _post_token(self, data: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self._config.use_basic_auth:
            credentials = f"{self._config.client_id}:{self._config.client_secret}"
            headers["Authorization"] = "Basic " + base64.b64encode(credentials.encode()).decode()

        async with self._client() as client:
            resp = await self._send(client.post(self._config.token_url, data=data, headers=headers))

        try:
            payload = resp.json()
        except ValueError as exc:
            raise TokenResponseError(
                "Token endpoint returned a non-JSON body", platform=self.platform
            ) from exc

        if not isinstance(payload, dict):
            raise TokenResponseError("Token endpoint returned an unexpected body", platform=self.platform)
        if "error" in payload:
            raise TokenResponseError(
                f"{self.platform} token error: {payload.get('error_description') or payload['error']}",
                platform=self.platform,
            )
        if not payload.get("access_token"):
            raise TokenResponseError("Token response has no access_token", platform=self.platform)
        return payload

    # ── User info ───────────────────────────────────────────────────────

    async def fetch_user_info(self, access_token: str) -> Optional[Any]:
        """GET the user-info endpoint and map it through ``transform_user_info``."""
        if not self._config.user_info_url:
            return None

        async with self._client() as client:
            resp = await self._send(
                client.get(
                    self._config.user_info_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            )
        data = resp.json()

        if self._config.transform_user_info:
            return self._config.transform_user_info(data)
        return data

    # ── HTTP plumbing ───────────────────────────────────────────────────

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient() as client:
            yield client

    async def _send(self, request: Any) -> httpx.Response:
        try:
            resp = await request
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise OAuthTransportError(
                f"{self.platform} returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                platform=self.platform,
            ) from exc
        except httpx.HTTPError as exc:
            raise OAuthTransportError(
                f"{self.platform} request failed: {exc}", platform=self.platform
            ) from exc
        return resp

    # ── Utilities ───────────────────────────────────────────────────────

    @staticmethod
    def normalize_token_response(data: Dict[str, Any]) -> NormalizedTokenResponse:
        return NormalizedTokenResponse.from_provider(data)

    is_token_expired = staticmethod(is_token_expired)

    @staticmethod
    def encrypt_token(token: str) -> str:
        return encryption.encrypt_token(token)

    @staticmethod
    def decrypt_token(token: str) -> str:
        return encryption.decrypt_token(token)
