"""FastAPI dependencies resolved from app.state."""

from __future__ import annotations

import httpx
from fastapi import Request

from appraiser.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client, created in the app lifespan."""
    return request.app.state.http_client
