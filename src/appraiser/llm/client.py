"""Vendor-agnostic generation client.

Composes the vendor adapter, the backoff retrier, JSON recovery and a
caller-supplied validator into two calls: ``generate_text`` and
``generate_structured``. Only the HTTP exchange is retried; parsing
and validation failures are deterministic and surface immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from typing import Any, TypeAlias, TypeVar

import httpx

from appraiser.config import Settings
from appraiser.constants import (
    ERROR_TRUNCATION_CHARS,
    RUN_ID_HEX_LENGTH,
    Vendor,
)
from appraiser.llm.adapters import VendorAdapter, get_adapter
from appraiser.llm.schemas import (
    GenerationRequest,
    SamplingSettings,
    VendorRequest,
)
from appraiser.logger import RunLogger
from appraiser.resilience.errors import (
    AppraisalError,
    ParseError,
    TransportError,
    ValidationError,
    VendorResponseError,
)
from appraiser.resilience.retry import SleepFn, retry_with_backoff

logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator: TypeAlias = Callable[[Any], T]

_FENCED_JSON_RE = re.compile(r"```json([\s\S]*?)```", re.IGNORECASE)


def extract_json_text(text: str) -> str:
    """Prefer the body of a ```json fenced block, else the trimmed text."""
    match = _FENCED_JSON_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_json_text(text: str) -> Any:
    """Decode model output as JSON, raising ParseError on failure."""
    candidate = extract_json_text(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Response is not valid JSON ({exc.msg} at line {exc.lineno}"
            f" column {exc.colno}); {len(candidate)} chars received"
        ) from exc


class GenerationClient:
    """One configured vendor behind generate_text/generate_structured.

    Usage::

        async with GenerationClient(settings) as client:
            digest = await client.generate_structured(request, validate_digest)
    """

    def __init__(
        self,
        settings: Settings,
        *,
        vendor: Vendor | str | None = None,
        sampling: SamplingSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn | None = None,
        run_logger: RunLogger | None = None,
        run_id: str | None = None,
    ) -> None:
        self._settings = settings
        self._adapter: VendorAdapter = get_adapter(
            vendor or settings.llm_vendor, settings, sampling
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.llm_timeout_seconds
        )
        self._sleep = sleep
        self._run_logger = run_logger
        self.run_id = run_id or uuid.uuid4().hex[:RUN_ID_HEX_LENGTH]

    @property
    def vendor(self) -> Vendor:
        return self._adapter.vendor

    @property
    def model(self) -> str:
        return self._adapter.model

    async def __aenter__(self) -> GenerationClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def generate_text(self, request: GenerationRequest) -> str:
        """Free-form text completion."""
        return await self._generate(replace(request, json_mode=False))

    async def generate_structured(
        self, request: GenerationRequest, validator: Validator[T]
    ) -> T:
        """JSON-mode completion, decoded and passed through ``validator``."""
        text = await self._generate(replace(request, json_mode=True))
        payload = parse_json_text(text)
        try:
            return validator(payload)
        except AppraisalError:
            raise
        except Exception as exc:
            raise ValidationError(f"Validator failed: {exc}") from exc

    async def _generate(self, request: GenerationRequest) -> str:
        # Built outside the retrier: configuration problems fail fast.
        vendor_request = self._adapter.build_request(request)
        token = request.cancel_token

        sleep = self._sleep or asyncio.sleep

        async def _attempt() -> str:
            if token is None:
                return await self._send(vendor_request)
            token.raise_if_cancelled()
            return await token.guard(self._send(vendor_request))

        async def _backoff(delay: float) -> None:
            if token is None:
                await sleep(delay)
            else:
                await token.guard(sleep(delay))

        started = time.perf_counter()
        text = await retry_with_backoff(
            _attempt,
            max_attempts=self._settings.retry_max_attempts,
            base_delay=self._settings.retry_base_delay_seconds,
            sleep=_backoff,
        )
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "event=generation_completed vendor=%s model=%s json_mode=%s"
            " duration_ms=%.0f response_chars=%d",
            self.vendor,
            self.model,
            request.json_mode,
            duration_ms,
            len(text),
        )
        if self._run_logger is not None:
            self._run_logger.log_generation(
                run_id=self.run_id,
                vendor=str(self.vendor),
                model=self.model,
                json_mode=request.json_mode,
                duration_ms=duration_ms,
                response_chars=len(text),
            )
        return text

    async def _send(self, vendor_request: VendorRequest) -> str:
        try:
            response = await self._http.post(
                vendor_request.endpoint,
                headers=vendor_request.headers,
                json=vendor_request.body,
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{self.vendor} request failed: {exc!r}"
            ) from exc

        if not response.is_success:
            body = response.text
            logger.warning(
                "event=vendor_http_error vendor=%s status=%d body=%s",
                self.vendor,
                response.status_code,
                body[:ERROR_TRUNCATION_CHARS],
            )
            raise TransportError(
                f"API request failed: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise VendorResponseError(
                f"{self.vendor} returned a non-JSON response body"
            ) from exc
        return self._adapter.extract_text(payload)
