# report.py
# The reporting surface: per-job outcomes for a triggering event, as JSON.
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

from .model import Event, JobOutcome


def overall_status(outcomes: Mapping[str, JobOutcome]) -> str:
    if not outcomes:
        return "skipped"
    return "success" if all(o.ok for o in outcomes.values()) else "failure"


def build_report(pipeline_name: str, event: Event, outcomes: Mapping[str, JobOutcome]) -> Dict[str, Any]:
    return {
        "pipeline": pipeline_name,
        "event": {
            "kind": event.kind,
            "branch": event.branch_name,
            "sha": event.sha,
        },
        "status": overall_status(outcomes),
        "jobs": {name: o.to_dict() for name, o in outcomes.items()},
    }


def write_report(path: str | Path, pipeline_name: str, event: Event, outcomes: Mapping[str, JobOutcome]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(build_report(pipeline_name, event, outcomes), indent=2) + "\n", encoding="utf-8")
    return out
