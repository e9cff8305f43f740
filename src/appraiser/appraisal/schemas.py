"""Pydantic models for validated appraisal output and session state.

Field names are Pythonic; aliases carry the JSON keys the model is
prompted to emit (``score_1to7``, ``evidence_citations``, ...), so
``model_dump(by_alias=True)`` reproduces the wire shape.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from appraiser.constants import AssessmentStep, Recommendation


class Citation(BaseModel):
    """Where in the guideline an item's evidence was found."""

    model_config = ConfigDict(populate_by_name=True)

    page: int | float | None = None
    section: str | None = None


class DomainItem(BaseModel):
    """One scored AGREE II item."""

    model_config = ConfigDict(populate_by_name=True)

    item_number: int = Field(alias="item", ge=1, le=23)
    score: int = Field(alias="score_1to7", ge=1, le=7)
    confidence: int = Field(alias="confidence_0to100", ge=0, le=100)
    citations: list[Citation] = Field(
        default_factory=lambda: list[Citation](),
        alias="evidence_citations",
    )
    justification: str = Field(default="", max_length=300)


class DomainResult(BaseModel):
    """Validated items for one domain plus the derived 0-100 score."""

    name: str
    items: list[DomainItem]
    calculated_score: int = Field(ge=0, le=100)


class OverallAssessment(BaseModel):
    """Final quality rating and recommendation."""

    model_config = ConfigDict(populate_by_name=True)

    quality_score: int = Field(alias="overall_quality_1to7", ge=1, le=7)
    recommendation: Recommendation = Field(alias="recommend_use")
    justification: str = ""


class AssessmentSession(BaseModel):
    """In-memory state of one appraisal, owned by the orchestrator.

    Each stage writes only its own slice: ``digest``, one key of
    ``domains``, or ``overall``.
    """

    step: AssessmentStep = AssessmentStep.AWAITING_DOCUMENT
    digest: dict[str, Any] | None = None
    domains: dict[int, DomainResult] = Field(
        default_factory=lambda: dict[int, DomainResult]()
    )
    overall: OverallAssessment | None = None
    error: str | None = None
