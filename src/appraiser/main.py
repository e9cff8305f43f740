"""FastAPI application hosting the Anthropic relay."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from appraiser.logging_config import setup_logging

setup_logging()

import httpx  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from appraiser import __version__  # noqa: E402
from appraiser.api.routes import relay  # noqa: E402
from appraiser.config import Settings  # noqa: E402

_logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the relay app; ``settings`` defaults to the environment."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.http_client = httpx.AsyncClient(
            timeout=settings.relay_timeout_seconds
        )
        if not settings.anthropic_api_key:
            _logger.info("event=relay_no_server_key action=require_client_key")
        yield
        await app.state.http_client.aclose()

    app = FastAPI(
        title="Appraiser relay",
        description="Forwards Anthropic messages calls for browser clients",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Permissive by default; OPTIONS preflight answered before routing
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        allow_credentials=False,
    )
    app.include_router(relay.router)
    return app


app = create_app()
