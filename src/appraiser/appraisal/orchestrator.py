"""AGREE II appraisal workflow.

The orchestrator owns one AssessmentSession and drives it through four
explicit stages::

    load_document -> run_digest -> run_domains -> run_overall

Each stage runs only from its own pending step, is cancellable through
a per-stage CancellationToken, and returns a StageResult. Failures
never advance the step; they set ``session.error`` so the same stage
can simply be run again.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from appraiser.appraisal.events import ProgressCallback, StageEvent
from appraiser.appraisal.schemas import (
    AssessmentSession,
    DomainResult,
    OverallAssessment,
)
from appraiser.appraisal.scoring import calculate_domain_score
from appraiser.appraisal.validators import (
    validate_digest,
    validate_domain_items,
    validate_overall_assessment,
)
from appraiser.config import Settings
from appraiser.constants import (
    DOMAIN_IDS,
    AssessmentStep,
    StageName,
    StageOutcome,
    StageProgress,
)
from appraiser.ingestion.schemas import PageText, SearchIndex
from appraiser.llm.client import GenerationClient
from appraiser.llm.schemas import GenerationRequest
from appraiser.logger import RunLogger
from appraiser.prompt_pack import (
    DIGEST_PLACEHOLDER,
    DOCUMENT_PLACEHOLDER,
    DOMAIN_RESULTS_PLACEHOLDER,
    EVIDENCE_PLACEHOLDER,
    DomainConfig,
    PromptPack,
    default_prompt_pack,
)
from appraiser.resilience.cancellation import CancellationToken
from appraiser.resilience.concurrency import run_bounded
from appraiser.resilience.errors import (
    ConfigurationError,
    describe_error,
    is_cancellation,
)

logger = logging.getLogger(__name__)

TOutput = TypeVar("TOutput")


@dataclass
class StageResult(Generic[TOutput]):
    """Outcome of a single stage execution."""

    name: str
    output: TOutput | None
    duration_ms: float
    outcome: StageOutcome
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == StageOutcome.COMPLETED


def format_document(pages: Sequence[PageText], max_chars: int) -> str:
    """Join pages with page markers and cap the total length."""
    text = "\n\n".join(
        f"[Page {page.page_number}]\n{page.text}" for page in pages
    )
    return text[:max_chars]


class AppraisalOrchestrator:
    """Run the digest, domain and overall stages against one document."""

    def __init__(
        self,
        client: GenerationClient,
        settings: Settings,
        prompt_pack: PromptPack | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._pack = prompt_pack or default_prompt_pack()
        self._on_progress = on_progress
        self._run_logger = run_logger
        self._pages: list[PageText] = []
        self._index: SearchIndex | None = None
        self._token: CancellationToken | None = None
        self.session = AssessmentSession()

    @property
    def running(self) -> bool:
        return self._token is not None

    @property
    def pages(self) -> list[PageText]:
        return list(self._pages)

    # ── Public stages ─────────────────────────────────────

    def load_document(
        self, pages: Sequence[PageText], index: SearchIndex
    ) -> None:
        """Attach extracted pages and their search index.

        Starts a fresh session; any earlier results are discarded.
        """
        if self.running:
            msg = "Cannot load a document while a stage is running"
            raise ConfigurationError(msg)
        if not any(page.text.strip() for page in pages):
            msg = "Document contains no extractable text"
            raise ConfigurationError(msg)
        self._pages = list(pages)
        self._index = index
        self.session = AssessmentSession(step=AssessmentStep.DIGEST_PENDING)
        logger.info(
            "event=document_loaded pages=%d chars=%d",
            len(self._pages),
            sum(len(p.text) for p in self._pages),
        )

    async def run_digest(self) -> StageResult[dict[str, Any]]:
        return await self._run_stage(
            StageName.DIGEST,
            expected=AssessmentStep.DIGEST_PENDING,
            advance_to=AssessmentStep.DOMAINS_PENDING,
            work=self._digest,
        )

    async def run_domains(self) -> StageResult[dict[int, DomainResult]]:
        if self.session.digest is None:
            msg = "Digest must be generated before evaluating domains"
            raise ConfigurationError(msg)
        return await self._run_stage(
            StageName.DOMAINS,
            expected=AssessmentStep.DOMAINS_PENDING,
            advance_to=AssessmentStep.OVERALL_PENDING,
            work=self._domains,
        )

    async def run_overall(self) -> StageResult[OverallAssessment]:
        missing = [d for d in DOMAIN_IDS if d not in self.session.domains]
        if missing:
            msg = (
                "All domains must be evaluated before the overall "
                f"assessment (missing: {', '.join(map(str, missing))})"
            )
            raise ConfigurationError(msg)
        return await self._run_stage(
            StageName.OVERALL,
            expected=AssessmentStep.OVERALL_PENDING,
            advance_to=AssessmentStep.COMPLETE,
            work=self._overall,
        )

    def cancel(self, reason: str | None = None) -> bool:
        """Cancel the running stage. Returns False if nothing is running."""
        token = self._token
        if token is None or token.cancelled:
            return False
        token.cancel(reason)
        logger.info("event=stage_cancel_requested")
        return True

    # ── Stage runner ──────────────────────────────────────

    async def _run_stage(
        self,
        name: StageName,
        *,
        expected: AssessmentStep,
        advance_to: AssessmentStep,
        work: Callable[[CancellationToken], Awaitable[TOutput]],
    ) -> StageResult[TOutput]:
        if self.running:
            msg = "Another stage is already running"
            raise ConfigurationError(msg)
        if self.session.step != expected:
            msg = (
                f"Stage '{name}' requires step '{expected}', "
                f"session is at '{self.session.step}'"
            )
            raise ConfigurationError(msg)

        token = CancellationToken()
        self._token = token
        self.session.error = None
        self._report(StageEvent(name=name, status=StageProgress.RUNNING))
        logger.info("event=stage_started stage=%s", name)

        start = time.monotonic()
        try:
            output = await work(token)
        except Exception as exc:
            elapsed = (time.monotonic() - start) * 1000
            message = describe_error(exc)
            outcome = (
                StageOutcome.CANCELLED
                if is_cancellation(exc)
                else StageOutcome.FAILED
            )
            self.session.error = message
            logger.warning(
                "event=stage_failed stage=%s outcome=%s error=%s",
                name,
                outcome,
                message,
            )
            self._record(name, outcome, elapsed, message)
            self._report(
                StageEvent(
                    name=name,
                    status=StageProgress.ERROR,
                    message=message,
                    duration_ms=elapsed,
                )
            )
            return StageResult(
                name=name,
                output=None,
                duration_ms=elapsed,
                outcome=outcome,
                error=message,
            )
        finally:
            self._token = None

        elapsed = (time.monotonic() - start) * 1000
        self.session.step = advance_to
        logger.info(
            "event=stage_completed stage=%s duration_ms=%.0f", name, elapsed
        )
        self._record(name, StageOutcome.COMPLETED, elapsed)
        self._report(
            StageEvent(
                name=name, status=StageProgress.DONE, duration_ms=elapsed
            )
        )
        return StageResult(
            name=name,
            output=output,
            duration_ms=elapsed,
            outcome=StageOutcome.COMPLETED,
        )

    # ── Stage bodies ──────────────────────────────────────

    async def _digest(self, token: CancellationToken) -> dict[str, Any]:
        document = format_document(
            self._pages, self._settings.digest_max_chars
        )
        prompt = self._pack.digest_prompt.replace(
            DOCUMENT_PLACEHOLDER, document
        )
        digest = await self._client.generate_structured(
            self._request(prompt, token), validate_digest
        )
        self.session.digest = digest
        return digest

    async def _domains(
        self, token: CancellationToken
    ) -> dict[int, DomainResult]:
        self.session.domains = {}
        domains = list(self._pack.domains)
        total = len(domains)

        async def _score(domain: DomainConfig) -> DomainResult:
            token.raise_if_cancelled()
            self._report(
                StageEvent(
                    name=StageName.DOMAINS,
                    status=StageProgress.RUNNING,
                    message=(
                        f"Evaluating Domain {domain.id}: {domain.name}..."
                    ),
                )
            )
            prompt = self._domain_prompt(domain)
            items = await self._client.generate_structured(
                self._request(prompt, token), validate_domain_items
            )
            result = DomainResult(
                name=domain.name,
                items=items,
                calculated_score=calculate_domain_score(items),
            )
            token.raise_if_cancelled()
            self.session.domains[domain.id] = result
            completed = len(self.session.domains)
            logger.info(
                "event=domain_scored domain=%d score=%d items=%d",
                domain.id,
                result.calculated_score,
                len(items),
            )
            self._report(
                StageEvent(
                    name=StageName.DOMAINS,
                    status=StageProgress.RUNNING,
                    message=f"Evaluated {completed}/{total} domains",
                    completed=completed,
                    total=total,
                    percent=round(completed / total * 100, 1),
                )
            )
            return result

        results = await run_bounded(
            domains, self._settings.domain_concurrency, _score
        )
        return {d.id: r for d, r in zip(domains, results, strict=True)}

    async def _overall(self, token: CancellationToken) -> OverallAssessment:
        summary = {
            str(domain_id): self.session.domains[domain_id].model_dump(
                mode="json", by_alias=True
            )
            for domain_id in DOMAIN_IDS
        }
        prompt = self._pack.overall_prompt.replace(
            DOMAIN_RESULTS_PLACEHOLDER, json.dumps(summary, indent=2)
        )
        assessment = await self._client.generate_structured(
            self._request(prompt, token), validate_overall_assessment
        )
        self.session.overall = assessment
        return assessment

    # ── Helpers ───────────────────────────────────────────

    def _request(
        self, prompt: str, token: CancellationToken
    ) -> GenerationRequest:
        return GenerationRequest(
            user_prompt=prompt,
            system_prompt=self._pack.system_prompt or None,
            json_mode=True,
            cancel_token=token,
        )

    def _domain_prompt(self, domain: DomainConfig) -> str:
        digest = self.session.digest or {}
        if domain.digest_fields:
            digest_slice = {f: digest.get(f) for f in domain.digest_fields}
        else:
            digest_slice = digest
        return domain.prompt_template.replace(
            DIGEST_PLACEHOLDER, json.dumps(digest_slice, indent=2)
        ).replace(
            EVIDENCE_PLACEHOLDER,
            json.dumps(self._evidence(domain), indent=2),
        )

    def _evidence(self, domain: DomainConfig) -> list[dict[str, Any]]:
        """Top search hits for the domain keywords, trimmed to snippets."""
        if self._index is None:
            return []
        hits = self._index.search(
            domain.search_keywords,
            fuzzy=self._settings.search_fuzzy,
            prefix=True,
        )
        limit = self._settings.evidence_snippet_chars
        return [
            {"snippet": hit.text[:limit], "pages": [hit.page_number]}
            for hit in hits[: self._settings.evidence_top_k]
        ]

    def _report(self, event: StageEvent) -> None:
        if self._on_progress:
            self._on_progress(event)

    def _record(
        self,
        name: StageName,
        outcome: StageOutcome,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        if self._run_logger is None:
            return
        run_id = self._client.run_id
        self._run_logger.log_stage(
            run_id, str(name), str(outcome), round(duration_ms, 2), error
        )
        if error is not None:
            self._run_logger.log_error(run_id, str(name), error)
