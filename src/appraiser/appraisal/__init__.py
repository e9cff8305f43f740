"""AGREE II appraisal: validated result models, scoring and workflow."""

from appraiser.appraisal.events import ProgressCallback, StageEvent
from appraiser.appraisal.orchestrator import AppraisalOrchestrator, StageResult
from appraiser.appraisal.schemas import (
    AssessmentSession,
    Citation,
    DomainItem,
    DomainResult,
    OverallAssessment,
)
from appraiser.appraisal.scoring import calculate_domain_score

__all__ = [
    "AppraisalOrchestrator",
    "AssessmentSession",
    "Citation",
    "DomainItem",
    "DomainResult",
    "OverallAssessment",
    "ProgressCallback",
    "StageEvent",
    "StageResult",
    "calculate_domain_score",
]
