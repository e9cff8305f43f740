"""AGREE II prompt pack: YAML prompts loaded into frozen dataclasses."""

from appraiser.prompt_pack.loader import (
    DIGEST_PLACEHOLDER,
    DOCUMENT_PLACEHOLDER,
    DOMAIN_RESULTS_PLACEHOLDER,
    EVIDENCE_PLACEHOLDER,
    default_prompt_pack,
    load_prompt_pack,
)
from appraiser.prompt_pack.schemas import DomainConfig, PromptPack

__all__ = [
    "DIGEST_PLACEHOLDER",
    "DOCUMENT_PLACEHOLDER",
    "DOMAIN_RESULTS_PLACEHOLDER",
    "EVIDENCE_PLACEHOLDER",
    "DomainConfig",
    "PromptPack",
    "default_prompt_pack",
    "load_prompt_pack",
]
