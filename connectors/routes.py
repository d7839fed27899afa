"""
OAuth API routes — connect, popup auth URL, callback, provider list.

Route prefix: /api/oauth
Error page:   /oauth/error  (``error_router``)

Session state (CSRF state, PKCE verifier) lives in Starlette's signed
cookie session; ``SessionMiddleware`` must be installed on the app.
"""

from __future__ import annotations

import html
import inspect
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from config.settings import config
from connectors.base import OAuthConnector
from connectors.models import OAuthResult, Redirect
from connectors.registry import ConnectorRegistry
from connectors.session import MappingSessionStore, RequestContext
from connectors.token_refresh import seal_tokens

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])
error_router = APIRouter(tags=["oauth"])

SESSION_USER_KEY = "user_id"


# ── Helpers ────────────────────────────────────────────────────────────


def request_context(request: Request) -> RequestContext:
    """Adapt a Starlette request to the connector's ``RequestContext``."""
    return RequestContext(
        session=MappingSessionStore(request.session),
        query=request.query_params,
        headers=request.headers,
        secure=request.url.scheme == "https",
    )


def _get_connector(platform: str) -> OAuthConnector:
    connector = ConnectorRegistry().get(platform)
    if connector is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"OAuth not configured for {platform}",
        )
    return connector


def _to_response(redirect: Redirect) -> RedirectResponse:
    return RedirectResponse(redirect.url, status_code=redirect.status_code)


async def _deliver_result(request: Request, result: OAuthResult) -> None:
    """
    Hand the sealed token record to ``app.state.oauth_result_handler``.

    The handler is called as ``handler(request, record)``.  When the
    session carries the signed-in user's id under ``SESSION_USER_KEY`` it
    is copied into ``record["user_id"]``.
    """
    handler = getattr(request.app.state, "oauth_result_handler", None)
    record = seal_tokens(result)
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is not None:
        record["user_id"] = user_id
    if handler is None:
        logger.warning(
            "[%s] No oauth_result_handler installed — connection not persisted",
            result.platform,
        )
        return
    outcome = handler(request, record)
    if inspect.isawaitable(outcome):
        await outcome


# ── Routes ─────────────────────────────────────────────────────────────


@router.get("/providers")
async def list_providers() -> List[Dict[str, Any]]:
    """List all known platforms and whether each is configured."""
    return ConnectorRegistry().list_providers()


@router.get("/{platform}/connect")
async def connect(platform: str, request: Request) -> RedirectResponse:
    """Redirect the browser to the provider's consent screen."""
    connector = _get_connector(platform)
    return _to_response(connector.initiate_auth(request_context(request)))


@router.get("/{platform}/url")
async def get_auth_url(platform: str, request: Request) -> Dict[str, str]:
    """
    Return the authorization URL for popup flows.

    State (and PKCE verifier) are stored in the session exactly as for
    ``/connect``.
    """
    connector = _get_connector(platform)
    auth_url = connector.prepare_authorization(request_context(request))
    return {"auth_url": auth_url, "platform": platform}


@router.get("/{platform}/callback", response_model=None)
async def oauth_callback(platform: str, request: Request) -> Any:
    """Provider redirects here after consent (or denial)."""
    connector = _get_connector(platform)
    outcome = await connector.handle_callback(request_context(request))

    if isinstance(outcome, Redirect):
        return _to_response(outcome)
    if not isinstance(outcome, OAuthResult):
        # on_success / on_error produced a response of their own
        return outcome

    try:
        # an on_success continuation that returned None has already handled the result
        if connector.config.on_success is None:
            await _deliver_result(request, outcome)
    except Exception as exc:
        logger.error("OAuth success handler failed for %s: %s", platform, exc)
        return RedirectResponse(
            f"{config.frontend_url}/dashboard/accounts?error=oauth_failed",
            status_code=status.HTTP_302_FOUND,
        )

    logger.info("OAuth connected: platform=%s", platform)
    return RedirectResponse(
        f"{config.frontend_url}/dashboard/accounts?connected={platform}",
        status_code=status.HTTP_302_FOUND,
    )


@error_router.get("/oauth/error")
async def oauth_error(
    platform: str = Query(""),
    error: str = Query("Unknown error"),
) -> HTMLResponse:
    """Generic landing page for failed OAuth flows."""
    return HTMLResponse(
        content=_error_html(platform=platform, message=error),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


# ── Error HTML template ────────────────────────────────────────────────


def _error_html(platform: str, message: str, frontend_url: Optional[str] = None) -> str:
    """
    Small HTML page shown after a failed redirect.
    Sends a postMessage to the opener (popup flows) and links back.
    """
    frontend_url = frontend_url or config.frontend_url
    payload = json.dumps(
        {"type": "oauth-callback", "platform": platform, "success": False, "message": message}
    ).replace("<", "\\u003c")

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{html.escape(platform or "OAuth")} connection failed</title>
    <style>
        body {{
            font-family: 'Inter', system-ui, sans-serif;
            background: #0b0d11; color: #e4e7ee;
            display: flex; align-items: center; justify-content: center;
            height: 100vh; margin: 0;
        }}
        .card {{
            text-align: center; padding: 40px;
            background: #12151b; border: 1px solid #1f2330;
            border-radius: 12px; max-width: 400px;
        }}
        h2 {{ color: #ef4444; margin: 16px 0 8px; }}
        p {{ color: #a0a6b8; font-size: 0.85rem; }}
        a {{ color: #00d992; font-size: 0.8rem; }}
    </style>
</head>
<body>
    <div class="card">
        <h2>Connection failed</h2>
        <p>{html.escape(message)}</p>
        <a href="{html.escape(frontend_url)}/dashboard/accounts">Back to accounts</a>
    </div>
    <script>
        if (window.opener) {{
            window.opener.postMessage({payload}, '*');
        }}
    </script>
</body>
</html>"""
