"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from typing import Optional, Tuple


class Settings(BaseSettings):
    # ── Security Secrets ──────────────────────────────────────────────────
    session_secret: str = "change-me-session-secret"   # signs the OAuth session cookie
    token_encryption_key: str = ""                       # 64 hex chars (AES-256); empty = plaintext

    # ── URLs ─────────────────────────────────────────────────────────────
    api_url: str = "http://localhost:8000"       # base URL for OAuth callbacks
    frontend_url: str = "http://localhost:3001"  # where users land after connecting

    token_refresh_buffer_seconds: int = 300      # refresh 5 min before expiry

    # ── OAuth Connectors ─────────────────────────────────────────────────
    twitter_client_id: str = ""
    twitter_client_secret: str = ""
    twitter_redirect_uri: Optional[str] = None

    instagram_client_id: str = ""
    instagram_client_secret: str = ""
    instagram_redirect_uri: Optional[str] = None
    facebook_app_id: str = ""           # fallback for instagram
    facebook_app_secret: str = ""

    linkedin_client_id: str = ""
    linkedin_client_secret: str = ""
    linkedin_redirect_uri: Optional[str] = None

    youtube_client_id: str = ""
    youtube_client_secret: str = ""
    youtube_redirect_uri: Optional[str] = None
    google_client_id: str = ""          # fallback for youtube
    google_client_secret: str = ""

    github_client_id: str = ""
    github_client_secret: str = ""
    github_redirect_uri: Optional[str] = None

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def platform_credentials(self, platform: str) -> Tuple[str, str, str]:
        """
        Return (client_id, client_secret, redirect_uri) for a platform.

        YouTube falls back to the Google app credentials and Instagram to
        the Facebook app credentials.
        """
        fallbacks = {
            "youtube": (self.google_client_id, self.google_client_secret),
            "instagram": (self.facebook_app_id, self.facebook_app_secret),
        }
        fallback_id, fallback_secret = fallbacks.get(platform, ("", ""))
        client_id = getattr(self, f"{platform}_client_id", "") or fallback_id
        client_secret = getattr(self, f"{platform}_client_secret", "") or fallback_secret
        redirect_uri = (
            getattr(self, f"{platform}_redirect_uri", None)
            or f"{self.api_url}/api/oauth/{platform}/callback"
        )
        return client_id, client_secret, redirect_uri


config = Settings()
