"""
Tests for refresh-before-expiry and sealed storage records.
"""

from datetime import datetime, timedelta, timezone

import pytest

from connectors.models import NormalizedTokenResponse, OAuthResult
from connectors.token_refresh import needs_refresh, refresh_if_needed, seal_tokens, unseal_tokens


def _tokens(expires_in_seconds, refresh_token="old-refresh"):
    expires_at = (
        datetime.now(timezone.utc) + timedelta(seconds=expires_in_seconds)
        if expires_in_seconds is not None
        else None
    )
    return NormalizedTokenResponse(
        access_token="old-access", refresh_token=refresh_token, expires_at=expires_at
    )


class TestNeedsRefresh:
    def test_inside_buffer(self):
        soon = datetime.now(timezone.utc) + timedelta(seconds=60)
        assert needs_refresh(soon, buffer_seconds=300) is True

    def test_outside_buffer(self):
        later = datetime.now(timezone.utc) + timedelta(hours=2)
        assert needs_refresh(later, buffer_seconds=300) is False

    def test_unknown_expiry(self):
        assert needs_refresh(None) is False

    def test_iso_string(self):
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
        assert needs_refresh(past, buffer_seconds=0) is True


class TestRefreshIfNeeded:
    @pytest.mark.asyncio
    async def test_not_due_makes_no_call(self, make_connector, provider):
        tokens = _tokens(7200)
        assert await refresh_if_needed(make_connector(), tokens) is tokens
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_no_refresh_token(self, make_connector, provider):
        tokens = _tokens(10, refresh_token=None)
        assert await refresh_if_needed(make_connector(), tokens) is tokens
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_refreshes_and_keeps_unrotated_refresh_token(self, make_connector, provider):
        provider.token_response = {"access_token": "new-access", "expires_in": 3600}

        refreshed = await refresh_if_needed(make_connector(), _tokens(10))

        assert refreshed.access_token == "new-access"
        assert refreshed.refresh_token == "old-refresh"
        assert provider.form()["refresh_token"] == "old-refresh"

    @pytest.mark.asyncio
    async def test_rotated_refresh_token_wins(self, make_connector, provider):
        refreshed = await refresh_if_needed(make_connector(), _tokens(-60))
        assert refreshed.refresh_token == "refresh-456"


class TestSealTokens:
    def _result(self):
        tokens = NormalizedTokenResponse.from_provider(
            {"access_token": "a-tok", "refresh_token": "r-tok", "expires_in": 60, "scope": "read"}
        )
        return OAuthResult(platform="github", tokens=tokens, user_info={"id": 1})

    def test_sealed_record_is_encrypted(self, encryption_key):
        record = seal_tokens(self._result())

        assert record["platform"] == "github"
        assert record["access_token"] != "a-tok"
        assert ":" in record["refresh_token"]
        assert record["user_info"] == {"id": 1}

        tokens = unseal_tokens(record)
        assert tokens.access_token == "a-tok"
        assert tokens.refresh_token == "r-tok"
        assert tokens.scope == "read"
        assert tokens.expires_at is not None

    def test_plaintext_without_key(self, no_encryption_key):
        record = seal_tokens(self._result())
        assert record["access_token"] == "a-tok"
