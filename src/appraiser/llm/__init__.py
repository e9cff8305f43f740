"""Vendor-agnostic LLM generation: adapters, client, JSON recovery."""

from appraiser.llm.adapters import (
    AnthropicAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    VendorAdapter,
    get_adapter,
)
from appraiser.llm.client import (
    GenerationClient,
    extract_json_text,
    parse_json_text,
)
from appraiser.llm.schemas import (
    GenerationRequest,
    SamplingSettings,
    VendorRequest,
)

__all__ = [
    "AnthropicAdapter",
    "GeminiAdapter",
    "GenerationClient",
    "GenerationRequest",
    "OpenAIAdapter",
    "SamplingSettings",
    "VendorAdapter",
    "VendorRequest",
    "extract_json_text",
    "get_adapter",
    "parse_json_text",
]
