"""Load and validate the prompt pack YAML."""

from __future__ import annotations

from functools import cache
from pathlib import Path
from typing import Any

import yaml

from appraiser.constants import DOMAIN_IDS, ITEM_NUMBER_MAX, ITEM_NUMBER_MIN
from appraiser.llm.schemas import SamplingSettings
from appraiser.prompt_pack.schemas import DomainConfig, PromptPack
from appraiser.resilience.errors import ConfigurationError

# Placeholders substituted into the prompt templates
DOCUMENT_PLACEHOLDER = "{{DOCUMENT}}"
DIGEST_PLACEHOLDER = "{{DIGEST}}"
EVIDENCE_PLACEHOLDER = "{{EVIDENCE}}"
DOMAIN_RESULTS_PLACEHOLDER = "{{DOMAIN_RESULTS}}"

DEFAULT_PACK_PATH = Path(__file__).resolve().parent / "agree_ii.yaml"


def load_prompt_pack(path: Path | None = None) -> PromptPack:
    """Parse a prompt pack file.

    Raises ``ConfigurationError`` when the file is missing or the pack
    does not describe the six AGREE II domains covering items 1-23
    exactly once, or a template lacks its placeholder.
    """
    pack_path = path or DEFAULT_PACK_PATH
    if not pack_path.exists():
        msg = f"Prompt pack not found: {pack_path}"
        raise ConfigurationError(msg)

    raw: dict[str, Any] = yaml.safe_load(pack_path.read_text(encoding="utf-8"))
    prompts: dict[str, Any] = raw.get("prompts", {})
    settings: dict[str, Any] = raw.get("recommended_model_settings", {})

    system_prompt = str(prompts.get("system_prompt", "")).strip()
    digest_prompt = str(prompts.get("digest_prompt", ""))
    overall_prompt = str(prompts.get("overall_prompt", ""))
    _require_placeholder("digest_prompt", digest_prompt, DOCUMENT_PLACEHOLDER)
    _require_placeholder(
        "overall_prompt", overall_prompt, DOMAIN_RESULTS_PLACEHOLDER
    )

    domains = tuple(
        _parse_domain(entry) for entry in prompts.get("domain_prompts", [])
    )
    _validate_domains(domains)

    return PromptPack(
        name=str(raw.get("metadata", {}).get("name", pack_path.stem)),
        system_prompt=system_prompt,
        digest_prompt=digest_prompt,
        overall_prompt=overall_prompt,
        domains=domains,
        sampling=SamplingSettings(
            temperature=float(settings.get("temperature", 0.1)),
            top_p=float(settings.get("top_p", 1.0)),
        ),
    )


@cache
def default_prompt_pack() -> PromptPack:
    """The packaged AGREE II prompt pack (parsed once)."""
    return load_prompt_pack()


def _parse_domain(entry: dict[str, Any]) -> DomainConfig:
    name = str(entry.get("name", ""))
    template = str(entry.get("prompt", ""))
    for placeholder in (DIGEST_PLACEHOLDER, EVIDENCE_PLACEHOLDER):
        _require_placeholder(f"domain '{name}' prompt", template, placeholder)
    return DomainConfig(
        id=int(entry["domain"]),
        name=name,
        item_numbers=tuple(int(i) for i in entry.get("items", [])),
        search_keywords=str(entry.get("keywords", "")),
        prompt_template=template,
        digest_fields=tuple(str(f) for f in entry.get("digest_fields", [])),
    )


def _validate_domains(domains: tuple[DomainConfig, ...]) -> None:
    ids = tuple(sorted(d.id for d in domains))
    if ids != DOMAIN_IDS:
        msg = (
            f"Prompt pack must define domains {list(DOMAIN_IDS)}, "
            f"got {list(ids)}"
        )
        raise ConfigurationError(msg)

    items = sorted(i for d in domains for i in d.item_numbers)
    expected = list(range(ITEM_NUMBER_MIN, ITEM_NUMBER_MAX + 1))
    if items != expected:
        msg = (
            "Prompt pack domains must cover items "
            f"{ITEM_NUMBER_MIN}-{ITEM_NUMBER_MAX} exactly once"
        )
        raise ConfigurationError(msg)


def _require_placeholder(label: str, template: str, placeholder: str) -> None:
    if placeholder not in template:
        msg = f"Prompt pack {label} is missing {placeholder}"
        raise ConfigurationError(msg)
