"""Validate and repair decoded model output.

Each validator takes whatever ``json.loads`` produced and returns a
strict value, or raises ValidationError naming the field and the
violated constraint. Repairs are limited to: over-long justifications
(truncated), non-string justifications (emptied) and null citation
sections (emptied).
"""

from __future__ import annotations

from typing import Any, cast

from appraiser.appraisal.schemas import (
    Citation,
    DomainItem,
    OverallAssessment,
)
from appraiser.constants import (
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    ELLIPSIS,
    ITEM_NUMBER_MAX,
    ITEM_NUMBER_MIN,
    ITEM_SCORE_MAX,
    ITEM_SCORE_MIN,
    JUSTIFICATION_MAX_CHARS,
    Recommendation,
)
from appraiser.resilience.errors import ValidationError

# Keys that identify a bare (unwrapped) item object
_ITEM_SIGNATURE = ("item", "score_1to7")


def truncate_justification(text: str) -> str:
    """Cap at JUSTIFICATION_MAX_CHARS, ending in an ellipsis if cut."""
    if len(text) <= JUSTIFICATION_MAX_CHARS:
        return text
    return text[: JUSTIFICATION_MAX_CHARS - len(ELLIPSIS)] + ELLIPSIS


def _require_int(
    value: Any, *, field: str, low: int, high: int, where: str = ""
) -> int:
    """Accept ints and integral floats within [low, high]; never bools."""
    constraint = f"integer between {low} and {high}"
    message = f"{where}'{field}' must be an {constraint}, got {value!r}"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(message, field=field, constraint=constraint)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(message, field=field, constraint=constraint)
    number = int(value)
    if not low <= number <= high:
        raise ValidationError(message, field=field, constraint=constraint)
    return number


def _unwrap_items(raw: Any) -> list[Any]:
    """Recover the item list from the shapes models actually return.

    - a list of items
    - one bare item object (wrapped into a one-element list)
    - an object with exactly one list-valued property (e.g. ``{"results": [...]}``)
    """
    if isinstance(raw, list):
        items = cast(list[Any], raw)
    elif isinstance(raw, dict):
        data = cast(dict[str, Any], raw)
        if all(key in data for key in _ITEM_SIGNATURE):
            items = [data]
        else:
            arrays = [v for v in data.values() if isinstance(v, list)]
            if not arrays:
                raise ValidationError(
                    "Domain result is not a list of items and contains "
                    "no list of items",
                    field="items",
                    constraint="array",
                )
            if len(arrays) > 1:
                keys = [k for k, v in data.items() if isinstance(v, list)]
                raise ValidationError(
                    "Domain result wraps more than one list "
                    f"(keys: {', '.join(keys)})",
                    field="items",
                    constraint="exactly one array",
                )
            items = cast(list[Any], arrays[0])
    else:
        raise ValidationError(
            "Domain result must be a list or object, "
            f"got {type(raw).__name__}",
            field="items",
            constraint="array",
        )

    if not items:
        raise ValidationError(
            "Domain result contains no items",
            field="items",
            constraint="at least one item",
        )
    return items


def _validate_citation(raw: Any, where: str) -> Citation:
    if not isinstance(raw, dict):
        raise ValidationError(
            f"{where}citation must be an object",
            field="evidence_citations",
            constraint="object",
        )
    citation = cast(dict[str, Any], raw)
    page = citation.get("page")
    section = citation.get("section")
    if section is None and "section" in citation:
        section = ""

    if "page" in citation and (
        isinstance(page, bool) or not isinstance(page, (int, float))
    ):
        raise ValidationError(
            f"{where}'page' must be a number",
            field="page",
            constraint="number",
        )
    if section is not None and not isinstance(section, str):
        raise ValidationError(
            f"{where}'section' must be a string",
            field="section",
            constraint="string",
        )
    return Citation(page=page, section=section)


def _validate_item(raw: Any, idx: int) -> DomainItem:
    where = f"Item {idx}: "
    if not isinstance(raw, dict):
        raise ValidationError(
            f"{where}must be an object", field="item", constraint="object"
        )
    item = cast(dict[str, Any], raw)

    item_number = _require_int(
        item.get("item"),
        field="item",
        low=ITEM_NUMBER_MIN,
        high=ITEM_NUMBER_MAX,
        where=where,
    )
    score = _require_int(
        item.get("score_1to7"),
        field="score_1to7",
        low=ITEM_SCORE_MIN,
        high=ITEM_SCORE_MAX,
        where=where,
    )
    confidence = _require_int(
        item.get("confidence_0to100"),
        field="confidence_0to100",
        low=CONFIDENCE_MIN,
        high=CONFIDENCE_MAX,
        where=where,
    )

    justification = item.get("justification")
    if not isinstance(justification, str):
        justification = ""

    raw_citations = item.get("evidence_citations")
    if not isinstance(raw_citations, list):
        raise ValidationError(
            f"{where}'evidence_citations' must be an array",
            field="evidence_citations",
            constraint="array",
        )
    citations = [
        _validate_citation(c, f"Item {idx}, Citation {c_idx}: ")
        for c_idx, c in enumerate(cast(list[Any], raw_citations))
    ]

    return DomainItem(
        item_number=item_number,
        score=score,
        confidence=confidence,
        citations=citations,
        justification=truncate_justification(justification),
    )


def validate_domain_items(raw: Any) -> list[DomainItem]:
    """Validate one domain's scored items."""
    items = _unwrap_items(raw)
    return [_validate_item(item, idx) for idx, item in enumerate(items)]


def validate_digest(raw: Any) -> dict[str, Any]:
    """The digest is free-form, but must be a JSON object."""
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Digest must be an object, got {type(raw).__name__}",
            field="digest",
            constraint="object",
        )
    return cast(dict[str, Any], raw)


_RECOMMENDATIONS = tuple(r.value for r in Recommendation)


def validate_overall_assessment(raw: Any) -> OverallAssessment:
    """Validate the final quality rating and recommendation."""
    if not isinstance(raw, dict):
        raise ValidationError(
            "Overall assessment must be an object",
            field="overall",
            constraint="object",
        )
    data = cast(dict[str, Any], raw)

    quality = _require_int(
        data.get("overall_quality_1to7"),
        field="overall_quality_1to7",
        low=ITEM_SCORE_MIN,
        high=ITEM_SCORE_MAX,
    )
    recommendation = data.get("recommend_use")
    if recommendation not in _RECOMMENDATIONS:
        raise ValidationError(
            "'recommend_use' must be one of "
            f"{', '.join(repr(r) for r in _RECOMMENDATIONS)}, "
            f"got {recommendation!r}",
            field="recommend_use",
            constraint="enum",
        )
    justification = data.get("justification")
    if not isinstance(justification, str):
        justification = ""

    return OverallAssessment(
        quality_score=quality,
        recommendation=Recommendation(recommendation),
        justification=justification,
    )
