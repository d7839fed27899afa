"""
Social account OAuth service — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from api.middleware import register_middleware
from config.settings import config
from connectors.encryption import is_encryption_enabled
from connectors.registry import ConnectorRegistry
from connectors.routes import error_router, router as oauth_router

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Social Account Connector",
        version="1.0.0",
        description="OAuth2 linking of social platforms to user accounts.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Holds the OAuth state / PKCE verifier between connect and callback
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        same_site="lax",
        https_only=config.api_url.startswith("https://"),
    )

    register_middleware(app)

    # Routes
    app.include_router(oauth_router, prefix="/api/oauth")
    app.include_router(error_router)

    @app.on_event("startup")
    async def on_startup():
        logger.info("Discovering OAuth connectors…")
        registry = ConnectorRegistry()
        registry.discover()
        logger.info("Configured connectors: %s", registry.list_configured() or "none")

        if not is_encryption_enabled():
            logger.warning("Token encryption disabled — set TOKEN_ENCRYPTION_KEY")

        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
