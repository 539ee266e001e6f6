# environment.py
from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Mapping, Optional

from .model import Event, Job

log = logging.getLogger(__name__)


def _safe(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", name) or "job"


class JobEnvironment:
    """
    Isolated execution environment for one job.

    Owns a fresh, empty workspace directory and the environment variables the
    job's commands see. Nothing is shared with other jobs; the directory is
    removed on exit unless `keep` is set.

    Usage:
        with JobEnvironment(job, event=event) as env:
            subprocess.run(cmd, cwd=env.workspace, env=env.variables)
    """

    def __init__(
        self,
        job: Job,
        *,
        event: Optional[Event] = None,
        repo_root: str | Path = ".",
        work_dir: str | Path | None = None,
        keep: bool = False,
    ):
        self.job = job
        self.event = event
        self.repo_root = Path(repo_root).resolve()
        self.work_dir = Path(work_dir) if work_dir is not None else None
        self.keep = keep
        self.root: Path | None = None
        self.variables: Dict[str, str] = {}

    @property
    def workspace(self) -> Path:
        if self.root is None:
            raise RuntimeError("JobEnvironment is not active")
        return self.root / "workspace"

    def __enter__(self) -> "JobEnvironment":
        if self.work_dir is not None:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        self.root = Path(
            tempfile.mkdtemp(prefix=f"triggerci-{_safe(self.job.name)}-", dir=self.work_dir)
        ).resolve()
        try:
            self.workspace.mkdir()
            self.variables = self._build_variables()
        except BaseException:
            shutil.rmtree(self.root, ignore_errors=True)
            self.root = None
            raise
        log.debug("[%s] workspace %s", self.job.name, self.workspace)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.root is None:
            return
        if self.keep:
            log.info("[%s] keeping workspace %s", self.job.name, self.root)
        else:
            shutil.rmtree(self.root, ignore_errors=True)
        self.root = None

    def _build_variables(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(self.job.env or {})
        env.update(self.context_variables())
        return env

    def context_variables(self) -> Dict[str, str]:
        """Variables describing the run, exported to every command."""
        out = {
            "CI": "true",
            "TRIGGERCI": "true",
            "TRIGGERCI_JOB": self.job.name,
            "TRIGGERCI_WORKSPACE": str(self.workspace),
            "GITHUB_JOB": self.job.name,
            "GITHUB_WORKSPACE": str(self.workspace),
        }
        if self.event is not None:
            out["GITHUB_EVENT_NAME"] = self.event.kind
            out["GITHUB_REF"] = self.event.ref
            out["GITHUB_REF_NAME"] = self.event.branch_name
            if self.event.sha:
                out["GITHUB_SHA"] = self.event.sha
        return out

    def step_variables(self, extra: Mapping[str, str]) -> Dict[str, str]:
        env = dict(self.variables)
        env.update(extra)
        return env
