"""Frozen dataclasses for the prompt pack."""

from __future__ import annotations

from dataclasses import dataclass, field

from appraiser.llm.schemas import SamplingSettings


@dataclass(frozen=True)
class DomainConfig:
    """Static description of one AGREE II domain."""

    id: int
    name: str
    item_numbers: tuple[int, ...]
    search_keywords: str
    prompt_template: str
    digest_fields: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PromptPack:
    """All prompts and model settings for one appraisal run."""

    name: str
    system_prompt: str
    digest_prompt: str
    overall_prompt: str
    domains: tuple[DomainConfig, ...]
    sampling: SamplingSettings = field(default_factory=SamplingSettings)

    def domain(self, domain_id: int) -> DomainConfig:
        for config in self.domains:
            if config.id == domain_id:
                return config
        raise KeyError(domain_id)
