"""
Shared fixtures — a fake OAuth provider behind ``httpx.MockTransport``.
"""

from __future__ import annotations

import secrets
from typing import Any, Dict, List
from urllib.parse import parse_qs

import httpx
import pytest

from config.settings import config
from connectors.base import OAuthConnector
from connectors.session import MappingSessionStore, RequestContext

TEST_CONFIG: Dict[str, Any] = {
    "platform": "test",
    "auth_url": "https://auth.example.com/authorize",
    "token_url": "https://auth.example.com/token",
    "user_info_url": "https://api.example.com/user",
    "scopes": ["read", "write"],
    "client_id": "test-client-id",
    "client_secret": "test-client-secret",
    "redirect_uri": "http://localhost:3000/callback",
}


class FakeProvider:
    """Records every request and answers token / user-info calls."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.token_status = 200
        self.token_response: Dict[str, Any] = {
            "access_token": "access-123",
            "refresh_token": "refresh-456",
            "expires_in": 3600,
            "scope": "read write",
        }
        self.user_info: Dict[str, Any] = {"id": 42, "login": "octo"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/token":
            return httpx.Response(self.token_status, json=self.token_response)
        if request.url.path == "/user":
            return httpx.Response(200, json=self.user_info)
        return httpx.Response(404)

    def form(self, index: int = 0) -> Dict[str, str]:
        body = self.requests[index].content.decode()
        return {key: values[0] for key, values in parse_qs(body).items()}


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def http_client(provider: FakeProvider) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(provider))


@pytest.fixture
def make_connector(http_client: httpx.AsyncClient):
    def _make(**overrides: Any) -> OAuthConnector:
        fields = {**TEST_CONFIG, **overrides}
        return OAuthConnector(fields, http_client=http_client)

    return _make


@pytest.fixture
def make_context():
    def _make(query: Dict[str, str] | None = None, **session: Any) -> RequestContext:
        return RequestContext(
            session=MappingSessionStore(dict(session)),
            query=query or {},
            headers={"host": "localhost:3000"},
        )

    return _make


@pytest.fixture
def encryption_key(monkeypatch: pytest.MonkeyPatch) -> str:
    key = secrets.token_hex(32)
    monkeypatch.setattr(config, "token_encryption_key", key)
    return key


@pytest.fixture
def no_encryption_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "token_encryption_key", "")
