"""JSON export of the downloadable appraisal artifact."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from appraiser.appraisal.schemas import AssessmentSession, DomainResult


def export_session_json(
    session: AssessmentSession,
    metadata: Mapping[str, Any] | None = None,
) -> str:
    """Serialize a session with the model's wire keys.

    Domains are keyed by their id as a string; stages that have not
    run export as ``null``.
    """
    payload: dict[str, Any] = {
        "metadata": dict(metadata or {}),
        "generated_at": datetime.now(UTC).isoformat(),
        "step": str(session.step),
        "digest": session.digest,
        "domains": {
            str(domain_id): _domain_to_dict(result)
            for domain_id, result in sorted(session.domains.items())
        },
        "overall": (
            session.overall.model_dump(mode="json", by_alias=True)
            if session.overall is not None
            else None
        ),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _domain_to_dict(result: DomainResult) -> dict[str, Any]:
    return {
        "name": result.name,
        "calculated_score": result.calculated_score,
        "items": [
            item.model_dump(mode="json", by_alias=True)
            for item in result.items
        ],
    }
