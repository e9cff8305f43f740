"""Anthropic relay: forwards one messages call on behalf of a client.

Browser clients cannot call the Anthropic API directly, so they post a
flat body here and receive the vendor's JSON unchanged. Every failure
is answered with a JSON ``{"error", "details"}`` envelope.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, cast

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from appraiser.api.dependencies import get_http_client, get_settings
from appraiser.config import Settings
from appraiser.constants import (
    ANTHROPIC_API_VERSION,
    ERROR_TRUNCATION_CHARS,
    LLM_MAX_OUTPUT_TOKENS,
    RELAY_DEFAULT_MODEL,
    RELAY_DEFAULT_TEMPERATURE,
    RELAY_DEFAULT_TOP_P,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["relay"])


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def build_upstream_body(body: dict[str, Any]) -> dict[str, Any]:
    """Map the flat relay body onto the messages API, applying defaults."""
    upstream: dict[str, Any] = {
        "model": body.get("model") or RELAY_DEFAULT_MODEL,
        "messages": [{"role": "user", "content": body["user"]}],
        "max_tokens": body.get("max_tokens") or LLM_MAX_OUTPUT_TOKENS,
        "temperature": (
            body["temperature"]
            if body.get("temperature") is not None
            else RELAY_DEFAULT_TEMPERATURE
        ),
        "top_p": (
            body["top_p"]
            if body.get("top_p") is not None
            else RELAY_DEFAULT_TOP_P
        ),
    }
    if body.get("system"):
        upstream["system"] = body["system"]
    return upstream


@router.options("/anthropic")
async def relay_preflight() -> Response:
    """Answer bare preflight requests (CORS headers come from middleware)."""
    return Response(status_code=200)


@router.api_route("/anthropic", methods=["GET", "PUT", "PATCH", "DELETE"])
async def relay_method_not_allowed() -> JSONResponse:
    return _error(405, "Method not allowed")


@router.post("/anthropic")
async def relay_anthropic(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    """Forward a messages call to Anthropic and pass its JSON through."""
    limit = settings.relay_max_body_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        return _error(413, "Request body too large", f"Limit is {limit} bytes")

    # Chunked bodies carry no Content-Length; stop reading past the limit.
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            return _error(
                413, "Request body too large", f"Limit is {limit} bytes"
            )
        chunks.append(chunk)
    raw = b"".join(chunks)

    try:
        parsed = json.loads(raw or b"{}")
    except ValueError:
        return _error(400, "Request body must be valid JSON")
    if not isinstance(parsed, dict):
        return _error(400, "Request body must be a JSON object")
    body = cast(dict[str, Any], parsed)

    if not body.get("user"):
        return _error(400, "Missing required field: user")

    api_key = body.get("apiKey") or settings.anthropic_api_key
    if not api_key:
        return _error(
            400,
            "Anthropic API key is required. Provide apiKey in the request"
            " or set ANTHROPIC_API_KEY on the server.",
        )

    upstream = build_upstream_body(body)
    url = f"{settings.anthropic_base_url.rstrip('/')}/v1/messages"
    start = time.monotonic()
    try:
        async with asyncio.timeout(settings.relay_timeout_seconds):
            response = await client.post(
                url,
                json=upstream,
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": api_key,
                    "anthropic-version": ANTHROPIC_API_VERSION,
                },
                timeout=settings.relay_timeout_seconds,
            )
    except (TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("event=relay_timeout model=%s", upstream["model"])
        return _error(504, "Upstream request timed out", str(exc) or None)
    except Exception as exc:
        logger.exception("event=relay_failed model=%s", upstream["model"])
        return _error(500, "Internal server error", str(exc) or "Unknown error")

    elapsed = (time.monotonic() - start) * 1000
    if not response.is_success:
        try:
            details: Any = response.json()
        except ValueError:
            details = response.text
        logger.warning(
            "event=relay_upstream_error status=%d body=%s",
            response.status_code,
            response.text[:ERROR_TRUNCATION_CHARS],
        )
        return _error(
            response.status_code,
            f"Anthropic API error: {response.status_code}",
            details,
        )

    logger.info(
        "event=relay_forwarded model=%s status=%d duration_ms=%.0f",
        upstream["model"],
        response.status_code,
        elapsed,
    )
    return Response(
        content=response.content,
        status_code=200,
        media_type="application/json",
    )
