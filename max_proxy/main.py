"""
FastAPI application entrypoint for the Claude Max proxy.
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from max_proxy.api.routes import answer_preflight
from max_proxy.api.routes import router as api_router
from max_proxy.core.config import get_settings
from max_proxy.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level, secrets=settings.secret_values())

    app = FastAPI(
        title="Claude Max Proxy",
        version="0.1.0",
        description=(
            "Forwards Anthropic Messages API calls using subscription OAuth "
            "tokens instead of API keys."
        ),
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.middleware("http")(answer_preflight)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:  # pragma: no cover - process entry point
    """Serve the app with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "max_proxy.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


__all__ = ["app", "create_app", "run"]
