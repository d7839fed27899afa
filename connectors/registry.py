"""
ConnectorRegistry — discovers and provides access to all connectors.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from config.settings import Settings, config
from connectors.base import OAuthConnector
from connectors.exceptions import OAuthConfigError
from connectors.presets import PRESETS, from_preset

logger = logging.getLogger(__name__)


class ConnectorRegistry:
    """Singleton registry for all OAuth connectors."""

    _instance: Optional["ConnectorRegistry"] = None

    def __new__(cls) -> "ConnectorRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._connectors = {}
            cls._instance._discovered = False
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (tests)."""
        cls._instance = None

    def discover(self, settings: Optional[Settings] = None) -> None:
        """Register a connector for every preset that has credentials."""
        if self._discovered:
            return
        settings = settings or config
        for platform in PRESETS:
            client_id, client_secret, redirect_uri = settings.platform_credentials(platform)
            if not client_id:
                logger.warning(
                    "Connector %s skipped — not configured (missing client_id)", platform
                )
                continue
            try:
                connector = from_preset(
                    platform,
                    client_id=client_id,
                    client_secret=client_secret,
                    redirect_uri=redirect_uri,
                )
            except OAuthConfigError as exc:
                logger.warning("Connector %s skipped — %s", platform, exc)
                continue
            self.register(connector)
        self._discovered = True

    def register(self, connector: OAuthConnector) -> None:
        self._connectors[connector.platform] = connector
        logger.info(
            "Connector registered: %s (%s)", connector.display_name, connector.platform
        )

    def get(self, platform: str) -> Optional[OAuthConnector]:
        """Get a connector by platform name."""
        return self._connectors.get(platform)

    def list_providers(self) -> List[Dict[str, object]]:
        """Return info about every known platform."""
        providers = []
        for platform, preset in PRESETS.items():
            providers.append(
                {
                    "platform": platform,
                    "display_name": preset.get("display_name", platform.capitalize()),
                    "configured": platform in self._connectors,
                }
            )
        for platform, conn in self._connectors.items():
            if platform not in PRESETS:
                providers.append(
                    {"platform": platform, "display_name": conn.display_name, "configured": True}
                )
        return providers

    def list_configured(self) -> List[str]:
        """Return names of configured connectors."""
        return list(self._connectors.keys())
