"""
Platform presets — partial OAuth configs for well-known providers.

Each preset is plain data plus an optional pure ``transform_user_info``
mapping the provider's user-info payload onto a flat profile dict.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from connectors.base import OAuthConnector
from connectors.exceptions import UnknownPresetError


def _twitter_user(data: Dict[str, Any]) -> Dict[str, Any]:
    user = data.get("data") or {}
    return {
        "id": user.get("id"),
        "username": user.get("username"),
        "name": user.get("name"),
        "profile_image_url": user.get("profile_image_url"),
    }


def _instagram_user(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": data.get("id"), "username": data.get("username")}


def _linkedin_user(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": data.get("sub"),
        "name": data.get("name"),
        "email": data.get("email"),
        "picture": data.get("picture"),
    }


def _youtube_user(data: Dict[str, Any]) -> Dict[str, Any]:
    items = data.get("items") or [{}]
    snippet = items[0].get("snippet") or {}
    return {
        "id": items[0].get("id"),
        "title": snippet.get("title"),
        "thumbnail_url": ((snippet.get("thumbnails") or {}).get("default") or {}).get("url"),
    }


def _github_user(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": data.get("id"),
        "username": data.get("login"),
        "name": data.get("name"),
        "avatar_url": data.get("avatar_url"),
        "email": data.get("email"),
    }


# ── All known presets — add new ones here ────────────────────────────────

PRESETS: Dict[str, Dict[str, Any]] = {
    "twitter": {
        "display_name": "Twitter",
        "auth_url": "https://twitter.com/i/oauth2/authorize",
        "token_url": "https://api.twitter.com/2/oauth2/token",
        "user_info_url": "https://api.twitter.com/2/users/me",
        "scopes": ("tweet.read", "tweet.write", "users.read", "offline.access"),
        "use_pkce": True,
        "use_basic_auth": True,
        "transform_user_info": _twitter_user,
    },
    "instagram": {
        "display_name": "Instagram",
        "auth_url": "https://api.instagram.com/oauth/authorize",
        "token_url": "https://api.instagram.com/oauth/access_token",
        "user_info_url": "https://graph.instagram.com/me",
        "scopes": ("user_profile", "user_media"),
        "extra_params": {"response_type": "code"},
        "transform_user_info": _instagram_user,
    },
    "linkedin": {
        "display_name": "LinkedIn",
        "auth_url": "https://www.linkedin.com/oauth/v2/authorization",
        "token_url": "https://www.linkedin.com/oauth/v2/accessToken",
        "user_info_url": "https://api.linkedin.com/v2/userinfo",
        "scopes": ("openid", "profile", "email", "w_member_social"),
        "transform_user_info": _linkedin_user,
    },
    "youtube": {
        "display_name": "YouTube",
        "auth_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "user_info_url": "https://www.googleapis.com/youtube/v3/channels?part=snippet&mine=true",
        "scopes": (
            "https://www.googleapis.com/auth/youtube.readonly",
            "https://www.googleapis.com/auth/youtube.upload",
            "https://www.googleapis.com/auth/youtube.force-ssl",
        ),
        "extra_params": {"access_type": "offline", "prompt": "consent"},
        "transform_user_info": _youtube_user,
    },
    "github": {
        "display_name": "GitHub",
        "auth_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
        "user_info_url": "https://api.github.com/user",
        "scopes": ("read:user", "user:email"),
        "transform_user_info": _github_user,
    },
}


def list_presets() -> List[str]:
    return list(PRESETS)


def get_preset(platform: str) -> Dict[str, Any]:
    """Return a copy of the preset for ``platform``."""
    preset = PRESETS.get(platform)
    if preset is None:
        raise UnknownPresetError(f"No preset found for platform: {platform}", platform=platform)
    return dict(preset)


def from_preset(
    platform: str,
    *,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    **overrides: Any,
) -> OAuthConnector:
    """
    Build a connector from a preset.

    ``client_id`` and ``client_secret`` are required; anything else in
    ``overrides`` (``redirect_uri``, ``http_client``, ``on_success`` …)
    replaces the preset value.
    """
    fields = get_preset(platform)
    fields["platform"] = platform
    http_client = overrides.pop("http_client", None)
    fields.update(overrides)
    return OAuthConnector(
        fields,
        client_id=client_id,
        client_secret=client_secret,
        http_client=http_client,
    )
