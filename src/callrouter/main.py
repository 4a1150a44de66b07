"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from callrouter import __version__
from callrouter.config import get_settings
from callrouter.shared.logging import get_logger, setup_logging
from callrouter.telephony.config import get_telephony_config
from callrouter.telephony.factory import get_messaging_provider
from callrouter.telephony.webhooks.router import router as telephony_webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging()
    settings = get_settings()
    telephony_cfg = get_telephony_config()

    logger.info(
        "Application starting",
        extra={
            "env": settings.app_env,
            "provider_type": telephony_cfg.provider_type.value,
            "assets_dir": str(telephony_cfg.assets_dir),
            "routing_asset_path": telephony_cfg.routing_asset_path,
            "whisper_configured": bool(telephony_cfg.whisper_prompt_url),
            "validate_signatures": telephony_cfg.validate_signatures,
        },
    )

    yield

    logger.info("Shutting down application")

    if get_messaging_provider.cache_info().currsize:
        provider = get_messaging_provider()
        close = getattr(provider, "close", None)
        if callable(close):
            close()
        get_messaging_provider.cache_clear()
        logger.info("Messaging provider closed")

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Call Router API",
        description="Inbound call forwarding with voicemail text notifications",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.include_router(telephony_webhooks_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
