"""
Tests for platform presets and the connector registry.
"""

import pytest

from config.settings import Settings
from connectors.exceptions import OAuthConfigError, UnknownPresetError
from connectors.presets import PRESETS, from_preset, get_preset
from connectors.registry import ConnectorRegistry


class TestPresets:
    @pytest.mark.parametrize("platform", ["twitter", "instagram", "linkedin", "youtube", "github"])
    def test_preset_has_endpoints(self, platform):
        assert PRESETS[platform]["auth_url"]
        assert PRESETS[platform]["token_url"]

    def test_from_preset(self):
        conn = from_preset("twitter", client_id="my-client-id", client_secret="my-client-secret")
        assert conn.platform == "twitter"
        assert conn.config.use_pkce is True
        assert conn.config.use_basic_auth is True
        assert conn.config.client_id == "my-client-id"

    def test_overrides_replace_preset_values(self):
        conn = from_preset(
            "github", client_id="id", client_secret="secret", scopes=["repo"], redirect_uri="http://cb"
        )
        assert conn.config.scopes == ("repo",)
        assert conn.config.redirect_uri == "http://cb"

    def test_unknown_preset(self):
        with pytest.raises(UnknownPresetError, match="No preset found for platform: unknown"):
            from_preset("unknown", client_id="id", client_secret="secret")

    def test_credentials_required(self):
        with pytest.raises(OAuthConfigError, match="client_id"):
            from_preset("github")

    def test_get_preset_returns_copy(self):
        preset = get_preset("github")
        preset["auth_url"] = "changed"
        assert PRESETS["github"]["auth_url"] != "changed"

    def test_twitter_transform(self):
        transform = PRESETS["twitter"]["transform_user_info"]
        data = {"data": {"id": "1", "username": "jack", "name": "Jack", "profile_image_url": "u"}}
        assert transform(data) == {
            "id": "1",
            "username": "jack",
            "name": "Jack",
            "profile_image_url": "u",
        }

    def test_youtube_transform_handles_no_channels(self):
        transform = PRESETS["youtube"]["transform_user_info"]
        assert transform({"items": []}) == {"id": None, "title": None, "thumbnail_url": None}

    def test_youtube_auth_url_keeps_extra_params(self):
        conn = from_preset("youtube", client_id="id", client_secret="secret")
        url = conn.build_auth_url(state="s", redirect_uri="http://x/cb")
        assert "access_type=offline" in url
        assert "prompt=consent" in url


class TestConnectorRegistry:
    def setup_method(self):
        ConnectorRegistry.reset()

    def teardown_method(self):
        ConnectorRegistry.reset()

    def test_singleton(self):
        assert ConnectorRegistry() is ConnectorRegistry()

    def test_discover_only_configured(self):
        settings = Settings(
            github_client_id="gh-id",
            github_client_secret="gh-secret",
            google_client_id="g-id",
            google_client_secret="g-secret",
            api_url="https://api.example.com",
        )
        registry = ConnectorRegistry()
        registry.discover(settings)

        assert sorted(registry.list_configured()) == ["github", "youtube"]
        youtube = registry.get("youtube")
        assert youtube.config.client_id == "g-id"
        assert youtube.config.redirect_uri == "https://api.example.com/api/oauth/youtube/callback"
        assert registry.get("twitter") is None

    def test_discover_skips_missing_secret(self):
        settings = Settings(linkedin_client_id="li-id")
        registry = ConnectorRegistry()
        registry.discover(settings)
        assert registry.get("linkedin") is None

    def test_list_providers(self):
        registry = ConnectorRegistry()
        registry.register(from_preset("github", client_id="id", client_secret="secret"))
        providers = {p["platform"]: p for p in registry.list_providers()}

        assert set(providers) == set(PRESETS)
        assert providers["github"]["configured"] is True
        assert providers["github"]["display_name"] == "GitHub"
        assert providers["twitter"]["configured"] is False
