"""CLI entry point for ``appraiser assess``."""

from __future__ import annotations

from appraiser.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

from appraiser import __version__  # noqa: E402
from appraiser.appraisal.events import (  # noqa: E402
    ProgressCallback,
    StageEvent,
)
from appraiser.appraisal.orchestrator import (  # noqa: E402
    AppraisalOrchestrator,
    StageResult,
)
from appraiser.appraisal.schemas import AssessmentSession  # noqa: E402
from appraiser.config import Settings  # noqa: E402
from appraiser.constants import StageProgress, Vendor  # noqa: E402
from appraiser.export.json_export import export_session_json  # noqa: E402
from appraiser.ingestion import (  # noqa: E402
    KeywordIndex,
    PageText,
    PdfPageExtractor,
)
from appraiser.llm.client import GenerationClient  # noqa: E402
from appraiser.logger import RunLogger  # noqa: E402
from appraiser.prompt_pack import PromptPack, default_prompt_pack  # noqa: E402
from appraiser.resilience.errors import AppraisalError  # noqa: E402


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"appraiser {__version__}")
        return

    if args.command == "assess":
        _run_assess(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="appraiser",
        description=(
            "LLM-assisted AGREE II appraisal of clinical practice "
            "guidelines."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    assess = sub.add_parser(
        "assess",
        help="Appraise a guideline document",
    )
    assess.add_argument(
        "document",
        type=str,
        help="Path to a guideline PDF or text file",
    )
    assess.add_argument(
        "--vendor",
        choices=[v.value for v in Vendor],
        default=None,
        help="LLM vendor (default: LLM_VENDOR setting)",
    )
    assess.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output JSON path (default: <document>.agree-ii.json)",
    )
    assess.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def _run_assess(args: argparse.Namespace) -> None:
    """Run every stage against one document and write the JSON artifact."""
    document = Path(args.document).resolve()
    if not document.exists():
        print(f"Error: {document} does not exist", file=sys.stderr)
        sys.exit(1)

    settings = Settings()
    vendor = Vendor(args.vendor) if args.vendor else settings.llm_vendor
    output = (
        Path(args.output)
        if args.output
        else document.with_suffix(".agree-ii.json")
    )

    def on_progress(event: StageEvent) -> None:
        if args.verbose and event.status == StageProgress.RUNNING:
            print(f"  {event.message or event.label}...")

    print(f"Appraising: {document} ({vendor})")

    try:
        pages = PdfPageExtractor().extract(document)
        session, stages, model = asyncio.run(
            _assess(pages, settings, vendor, on_progress)
        )
    except AppraisalError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        for stage in stages:
            status = "ok" if stage.ok else stage.outcome.upper()
            print(f"  [{status}] {stage.name} ({stage.duration_ms:.0f}ms)")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        export_session_json(
            session,
            {
                "source": document.name,
                "pages": len(pages),
                "vendor": str(vendor),
                "model": model,
            },
        ),
        encoding="utf-8",
    )
    print(f"Output: {output}")

    if session.error:
        print(f"Error: {session.error}", file=sys.stderr)
        sys.exit(1)

    if session.overall is not None:
        print(
            f"\nDone! Overall quality {session.overall.quality_score}/7, "
            f"recommend use: {session.overall.recommendation}"
        )


async def _assess(
    pages: list[PageText],
    settings: Settings,
    vendor: Vendor,
    on_progress: ProgressCallback,
    prompt_pack: PromptPack | None = None,
) -> tuple[AssessmentSession, list[StageResult[Any]], str]:
    pack = prompt_pack or default_prompt_pack()
    run_logger = RunLogger(settings.log_dir, settings.log_level)
    async with GenerationClient(
        settings,
        vendor=vendor,
        sampling=pack.sampling,
        run_logger=run_logger,
    ) as client:
        orchestrator = AppraisalOrchestrator(
            client,
            settings,
            pack,
            on_progress=on_progress,
            run_logger=run_logger,
        )
        orchestrator.load_document(pages, KeywordIndex(pages))

        stages: list[StageResult[Any]] = []
        for run in (
            orchestrator.run_digest,
            orchestrator.run_domains,
            orchestrator.run_overall,
        ):
            result: StageResult[Any] = await run()
            stages.append(result)
            if not result.ok:
                break
        return orchestrator.session, stages, client.model
