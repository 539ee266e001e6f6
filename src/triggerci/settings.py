from __future__ import annotations

import os
from typing import Dict, Mapping, Optional

SECRET_PREFIX = "TRIGGERCI_SECRET_"

WORKERS = int(os.environ["TRIGGERCI_WORKERS"]) if os.environ.get("TRIGGERCI_WORKERS") else None
WORK_DIR = os.environ.get("TRIGGERCI_WORK_DIR") or None  # None -> system temp dir
KEEP_WORKSPACE = os.environ.get("TRIGGERCI_KEEP_WORKSPACE", "").lower() in ("1", "true", "yes")
OUTPUT_TAIL = int(os.environ.get("TRIGGERCI_OUTPUT_TAIL", "4000"))
DEFAULT_WORKFLOW = "triggerci_workflow.py"


def secrets_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """TRIGGERCI_SECRET_GITHUB_TOKEN=x -> {"GITHUB_TOKEN": "x"}"""
    environ = os.environ if environ is None else environ
    return {
        k[len(SECRET_PREFIX):]: v
        for k, v in environ.items()
        if k.startswith(SECRET_PREFIX) and len(k) > len(SECRET_PREFIX)
    }
