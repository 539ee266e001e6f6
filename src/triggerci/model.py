# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PUSH = "push"
PULL_REQUEST = "pull_request"
EVENT_KINDS = (PUSH, PULL_REQUEST)

SUCCESS = "success"
FAILURE = "failure"
SKIPPED = "skipped"


def normalize_branch(branch: str) -> str:
    """Strip a leading refs/heads/ so filters always compare short names."""
    if branch.startswith("refs/heads/"):
        return branch[len("refs/heads/"):]
    return branch


@dataclass(frozen=True)
class Step:
    """
    A single unit of work inside a job.

    Either a shell command (`run`) or an action invocation (`uses` + `with_`).
    """
    name: str | None = None
    run: str | None = None
    uses: str | None = None
    with_: Dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if (self.run is None) == (self.uses is None):
            raise ValueError(
                f"step {self.name!r} must define exactly one of 'run' or 'uses'"
            )
        if self.with_ and self.run is not None:
            raise ValueError(f"step {self.name!r}: 'with' is only valid on action steps")

    @property
    def is_action(self) -> bool:
        return self.uses is not None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return f"Run {self.uses or self.run}"


@dataclass
class Job:
    """A CI job: an execution environment descriptor plus ordered steps."""
    name: str
    steps: List[Step]
    runs_on: str = "ubuntu-latest"
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Trigger:
    """An event filter: kind plus branch (and optional path) globs."""
    kind: str
    branches: tuple[str, ...] = ()
    paths: Optional[tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if self.kind not in EVENT_KINDS:
            raise ValueError(f"Unsupported event kind {self.kind!r}; expected one of {EVENT_KINDS}")


@dataclass(frozen=True)
class Event:
    """
    A triggering event.

    For `push` the branch is the pushed branch; for `pull_request` it is the
    branch the pull request targets.
    `changed_files=None` means the changed file set is unknown.
    """
    kind: str
    branch: str
    changed_files: Optional[tuple[str, ...]] = None
    sha: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in EVENT_KINDS:
            raise ValueError(f"Unsupported event kind {self.kind!r}; expected one of {EVENT_KINDS}")
        if not self.branch or not normalize_branch(self.branch):
            raise ValueError("Event must carry a branch name")

    @property
    def branch_name(self) -> str:
        return normalize_branch(self.branch)

    @property
    def ref(self) -> str:
        return f"refs/heads/{self.branch_name}"


@dataclass
class Pipeline:
    """A set of independent jobs sharing the same trigger filters."""
    name: str
    triggers: List[Trigger]
    jobs: List[Job]

    def job(self, name: str) -> Job:
        for j in self.jobs:
            if j.name == name:
                return j
        raise KeyError(name)

    def match(self, event: Event) -> List[Job]:
        from .trigger import match_jobs

        return match_jobs(self, event)


@dataclass
class StepResult:
    name: str
    status: str
    exit_code: int | None = None
    duration: float = 0.0
    output: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "exit_code": self.exit_code,
            "duration": round(self.duration, 3),
        }


@dataclass
class JobOutcome:
    """Outcome of running one job: success, or failure at a named step."""
    job: str
    status: str
    steps: List[StepResult] = field(default_factory=list)
    failed_step: str | None = None
    exit_code: int | None = None
    error: str | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "status": self.status,
            "failed_step": self.failed_step,
            "exit_code": self.exit_code,
            "error": self.error,
            "duration": round(self.duration, 3),
            "steps": [s.to_dict() for s in self.steps],
        }
