# src/triggerci/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .model import PULL_REQUEST, PUSH, Job, Pipeline, Step, Trigger


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, cwd: str | None = None, env: Optional[Dict[str, str]] = None) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd, env=dict(env or {}))


def uses(
    action: str,
    with_: Optional[Dict[str, object]] = None,
    *,
    name: str | None = None,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
) -> Step:
    """
    Create an action step.

        uses("actions/setup-go@v2", {"go-version": "1.11.0"})
    """
    return Step(
        name=name,
        uses=action,
        with_={k: stringify(v) for k, v in (with_ or {}).items()},
        cwd=cwd,
        env=dict(env or {}),
    )


def stringify(value: object) -> str:
    # action inputs are strings; booleans use their YAML spelling
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


# ---------------------------------------------------------------------
# Job / trigger helpers
# ---------------------------------------------------------------------

def job(
    name: str,
    *steps: Step,  # allow: job("x", sh(...), uses(...))
    steps_list: Optional[List[Step]] = None,
    runs_on: str = "ubuntu-latest",
    env: Optional[Dict[str, str]] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> Job:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(steps_list)
    steps_final.extend(steps)

    if not steps_final:
        raise ValueError(f"job({name!r}) must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    return Job(
        name=name,
        steps=steps_final,
        runs_on=runs_on,
        env={k: str(v) for k, v in (env or {}).items()},
    )


def _trigger(kind: str, branches: Iterable[str], paths: Optional[Iterable[str]]) -> Trigger:
    return Trigger(
        kind=kind,
        branches=tuple(branches),
        paths=tuple(paths) if paths is not None else None,
    )


def on_push(*branches: str, paths: Optional[Iterable[str]] = None) -> Trigger:
    """Trigger on pushes to `branches` (any branch if none given)."""
    return _trigger(PUSH, branches, paths)


def on_pull_request(*branches: str, paths: Optional[Iterable[str]] = None) -> Trigger:
    """Trigger on pull requests targeting `branches` (any branch if none given)."""
    return _trigger(PULL_REQUEST, branches, paths)


# ---------------------------------------------------------------------
# Pipeline helper (single-file story)
# ---------------------------------------------------------------------

def pipeline(name: str, *triggers: Trigger, jobs: Iterable[Job]) -> Pipeline:
    """
    Pipeline definition helper.

    Users can write, in triggerci_workflow.py:

        from triggerci import pipeline, on_push, job, sh

        def workflow():
            return pipeline(
                "ci",
                on_push("main"),
                jobs=[job("test", sh("Run tests", "make test"))],
            )
    """
    from .loader import validate_pipeline

    p = Pipeline(name=name, triggers=list(triggers), jobs=list(jobs))
    validate_pipeline(p, check_actions=False)
    return p
