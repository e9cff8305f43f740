"""Per-vendor wire mapping behind one adapter protocol.

Each adapter turns a GenerationRequest into the vendor's HTTP request
and pulls the generated text back out of the vendor's JSON response.
Adapters share no state; ``get_adapter`` selects one by Vendor.
"""

from __future__ import annotations

import re
from typing import Any, Protocol, TypeAlias, cast

from appraiser.config import Settings
from appraiser.constants import (
    ANTHROPIC_API_VERSION,
    OPENAI_REASONING_MODEL_PATTERN,
    Vendor,
)
from appraiser.llm.schemas import (
    GenerationRequest,
    SamplingSettings,
    VendorRequest,
)
from appraiser.resilience.errors import (
    ConfigurationError,
    VendorResponseError,
)

_JSON_HEADERS = {"Content-Type": "application/json"}

_REASONING_MODEL_RE = re.compile(
    OPENAI_REASONING_MODEL_PATTERN, re.IGNORECASE
)


class VendorAdapter(Protocol):
    """Capability every vendor mapping provides."""

    vendor: Vendor
    model: str

    def build_request(self, request: GenerationRequest) -> VendorRequest: ...

    def extract_text(self, payload: Any) -> str: ...


def _dig(payload: Any, path: tuple[str | int, ...], vendor: Vendor) -> str:
    """Follow ``path`` through nested dicts/lists and return a string."""
    node: Any = payload
    for key in path:
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError) as exc:
            raise VendorResponseError(
                f"{vendor} response missing {_format_path(path)}"
            ) from exc
    if not isinstance(node, str):
        raise VendorResponseError(
            f"{vendor} response has no text at {_format_path(path)}"
        )
    return node


def _format_path(path: tuple[str | int, ...]) -> str:
    out = ""
    for key in path:
        out += f"[{key}]" if isinstance(key, int) else f".{key}"
    return out.lstrip(".")


def _require_key(settings: Settings, vendor: Vendor) -> str:
    key = settings.api_key_for(vendor)
    if not key:
        raise ConfigurationError(
            f"No API key configured for {vendor} "
            f"(set {vendor.upper()}_API_KEY)"
        )
    return key


class GeminiAdapter:
    """generateContent: contents/parts + generationConfig."""

    vendor = Vendor.GEMINI

    def __init__(
        self, settings: Settings, sampling: SamplingSettings
    ) -> None:
        self.model = settings.gemini_model
        self._api_key = _require_key(settings, self.vendor)
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._max_tokens = settings.llm_max_output_tokens
        self._sampling = sampling

    def build_request(self, request: GenerationRequest) -> VendorRequest:
        body: dict[str, Any] = {
            "contents": [
                {"role": "user", "parts": [{"text": request.user_prompt}]}
            ],
            "generationConfig": {
                "temperature": self._sampling.temperature,
                "topP": self._sampling.top_p,
                "maxOutputTokens": self._max_tokens,
                "responseMimeType": (
                    "application/json" if request.json_mode else "text/plain"
                ),
            },
        }
        if request.system_prompt:
            body["systemInstruction"] = {
                "parts": [{"text": request.system_prompt}]
            }
        return VendorRequest(
            endpoint=(
                f"{self._base_url}/v1beta/models/"
                f"{self.model}:generateContent"
            ),
            headers={**_JSON_HEADERS, "x-goog-api-key": self._api_key},
            body=body,
        )

    def extract_text(self, payload: Any) -> str:
        return _dig(
            payload,
            ("candidates", 0, "content", "parts", 0, "text"),
            self.vendor,
        )


def is_reasoning_model(model: str) -> bool:
    """OpenAI reasoning models reject sampling params and max_tokens."""
    return _REASONING_MODEL_RE.search(model) is not None


class OpenAIAdapter:
    """chat/completions: flat messages + response_format."""

    vendor = Vendor.OPENAI

    def __init__(
        self, settings: Settings, sampling: SamplingSettings
    ) -> None:
        self.model = settings.openai_model
        self._api_key = _require_key(settings, self.vendor)
        self._base_url = settings.openai_base_url.rstrip("/")
        self._max_tokens = settings.llm_max_output_tokens
        self._reasoning_max_tokens = settings.openai_reasoning_max_tokens
        self._sampling = sampling

    def build_request(self, request: GenerationRequest) -> VendorRequest:
        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append(
                {"role": "system", "content": request.system_prompt}
            )
        messages.append({"role": "user", "content": request.user_prompt})

        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if is_reasoning_model(self.model):
            body["max_completion_tokens"] = self._reasoning_max_tokens
        else:
            body["temperature"] = self._sampling.temperature
            body["top_p"] = self._sampling.top_p
            body["max_tokens"] = self._max_tokens
        if request.json_mode:
            body["response_format"] = {"type": "json_object"}

        return VendorRequest(
            endpoint=f"{self._base_url}/v1/chat/completions",
            headers={
                **_JSON_HEADERS,
                "Authorization": f"Bearer {self._api_key}",
            },
            body=body,
        )

    def extract_text(self, payload: Any) -> str:
        return _dig(
            payload, ("choices", 0, "message", "content"), self.vendor
        )


class AnthropicAdapter:
    """messages: top-level system + single user turn.

    With ``anthropic_relay_url`` set, the request is sent to the relay
    in its flat ``{model, system, user, ...}`` form and the relay adds
    the credential; otherwise it goes straight to the vendor.
    """

    vendor = Vendor.ANTHROPIC

    def __init__(
        self, settings: Settings, sampling: SamplingSettings
    ) -> None:
        self.model = settings.anthropic_model
        self._relay_url = settings.anthropic_relay_url
        self._api_key = settings.anthropic_api_key
        if not self._relay_url:
            self._api_key = _require_key(settings, self.vendor)
        self._base_url = settings.anthropic_base_url.rstrip("/")
        self._max_tokens = settings.llm_max_output_tokens
        self._sampling = sampling

    @property
    def uses_relay(self) -> bool:
        return bool(self._relay_url)

    def build_request(self, request: GenerationRequest) -> VendorRequest:
        if self.uses_relay:
            return self._build_relay_request(request)

        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": request.user_prompt}],
            "temperature": self._sampling.temperature,
            "top_p": self._sampling.top_p,
        }
        if request.system_prompt:
            body["system"] = request.system_prompt
        return VendorRequest(
            endpoint=f"{self._base_url}/v1/messages",
            headers={
                **_JSON_HEADERS,
                "x-api-key": self._api_key,
                "anthropic-version": ANTHROPIC_API_VERSION,
            },
            body=body,
        )

    def _build_relay_request(
        self, request: GenerationRequest
    ) -> VendorRequest:
        body: dict[str, Any] = {
            "model": self.model,
            "user": request.user_prompt,
            "max_tokens": self._max_tokens,
            "temperature": self._sampling.temperature,
            "top_p": self._sampling.top_p,
        }
        if request.system_prompt:
            body["system"] = request.system_prompt
        if self._api_key:
            body["apiKey"] = self._api_key
        return VendorRequest(
            endpoint=self._relay_url, headers=dict(_JSON_HEADERS), body=body
        )

    def extract_text(self, payload: Any) -> str:
        return _dig(payload, ("content", 0, "text"), self.vendor)


_AdapterClass: TypeAlias = type[GeminiAdapter | OpenAIAdapter | AnthropicAdapter]

_ADAPTERS: dict[Vendor, _AdapterClass] = {
    Vendor.GEMINI: GeminiAdapter,
    Vendor.OPENAI: OpenAIAdapter,
    Vendor.ANTHROPIC: AnthropicAdapter,
}


def get_adapter(
    vendor: Vendor | str,
    settings: Settings,
    sampling: SamplingSettings | None = None,
) -> VendorAdapter:
    """Select and configure the adapter for ``vendor``.

    Raises ConfigurationError for an unknown vendor or a missing
    credential, before any network activity.
    """
    try:
        key = Vendor(vendor)
    except ValueError as exc:
        raise ConfigurationError(f"Unsupported vendor: {vendor}") from exc
    adapter_cls = _ADAPTERS[key]
    adapter = adapter_cls(settings, sampling or SamplingSettings())
    return cast(VendorAdapter, adapter)
