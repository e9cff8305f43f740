"""Tests for the ``appraiser`` command line."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
import yaml

from appraiser import __version__
from appraiser.appraisal.schemas import AssessmentSession
from appraiser.cli import _assess, main
from appraiser.config import Settings
from appraiser.constants import AssessmentStep, Vendor
from appraiser.ingestion import PageText
from appraiser.llm.client import GenerationClient
from appraiser.prompt_pack import load_prompt_pack
from appraiser.prompt_pack.loader import DEFAULT_PACK_PATH
from tests.conftest import RecordingSleep


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    main(["--version"])
    assert capsys.readouterr().out.strip() == f"appraiser {__version__}"


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    main([])
    assert "assess" in capsys.readouterr().out


def test_missing_document_exits_1(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["assess", str(tmp_path / "nope.pdf")])
    assert exc_info.value.code == 1
    assert "does not exist" in capsys.readouterr().err


def test_unknown_vendor_rejected_by_parser(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["assess", str(tmp_path / "g.txt"), "--vendor", "mistral"])
    assert exc_info.value.code == 2


def test_missing_api_key_exits_1(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    doc = tmp_path / "guideline.txt"
    doc.write_text("Objectives of the guideline.")

    with pytest.raises(SystemExit) as exc_info:
        main(["assess", str(doc), "--vendor", "openai"])
    assert exc_info.value.code == 1
    assert "No API key configured for openai" in capsys.readouterr().err


def _fake_assess(session: AssessmentSession) -> Any:
    async def _assess(*args: Any) -> Any:
        return session, [], "gemini-2.5-flash"

    return _assess


def test_writes_artifact(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    doc = tmp_path / "guideline.txt"
    doc.write_text("Objectives of the guideline.")
    out = tmp_path / "out" / "result.json"
    session = AssessmentSession(
        step=AssessmentStep.DOMAINS_PENDING, digest={"title": "T"}
    )

    with patch("appraiser.cli._assess", _fake_assess(session)):
        main(["assess", str(doc), "--output", str(out)])

    payload = json.loads(out.read_text())
    assert payload["digest"] == {"title": "T"}
    assert payload["metadata"]["source"] == "guideline.txt"
    assert payload["metadata"]["pages"] == 1
    assert payload["metadata"]["model"] == "gemini-2.5-flash"
    assert f"Output: {out}" in capsys.readouterr().out


def test_stage_failure_writes_partial_artifact_and_exits_1(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    doc = tmp_path / "guideline.txt"
    doc.write_text("Objectives of the guideline.")
    session = AssessmentSession(
        step=AssessmentStep.DIGEST_PENDING,
        error="Request to the model failed: API request failed: 500 - x",
    )

    with (
        patch("appraiser.cli._assess", _fake_assess(session)),
        pytest.raises(SystemExit) as exc_info,
    ):
        main(["assess", str(doc)])

    assert exc_info.value.code == 1
    assert (tmp_path / "guideline.agree-ii.json").exists()
    assert "Request to the model failed" in capsys.readouterr().err


async def test_assess_sends_prompt_pack_sampling(
    tmp_path: Path, pages: list[PageText]
) -> None:
    raw = yaml.safe_load(DEFAULT_PACK_PATH.read_text(encoding="utf-8"))
    raw["recommended_model_settings"] = {"temperature": 0.7, "top_p": 0.9}
    pack_path = tmp_path / "pack.yaml"
    pack_path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    pack = load_prompt_pack(pack_path)

    bodies: list[dict[str, Any]] = []
    http_clients: list[httpx.AsyncClient] = []

    def unavailable(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(503, text="unavailable")

    def mocked_client(*args: Any, **kwargs: Any) -> GenerationClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(unavailable))
        http_clients.append(http)
        return GenerationClient(
            *args, http_client=http, sleep=RecordingSleep(), **kwargs
        )

    settings = Settings(log_dir=tmp_path / "logs")
    with patch("appraiser.cli.GenerationClient", mocked_client):
        _, stages, _ = await _assess(
            pages, settings, Vendor.GEMINI, lambda event: None, pack
        )

    assert not stages[0].ok
    assert len(bodies) == settings.retry_max_attempts
    for body in bodies:
        assert body["generationConfig"]["temperature"] == 0.7
        assert body["generationConfig"]["topP"] == 0.9
    for http in http_clients:
        await http.aclose()
