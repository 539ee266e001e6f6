# runner.py
from __future__ import annotations

import logging
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from . import settings
from .actions import ActionCommand, ActionContext, ActionError, ActionRegistry, get_registry
from .environment import JobEnvironment
from .expressions import ExpressionError, evaluate, evaluate_mapping
from .model import FAILURE, SKIPPED, SUCCESS, Event, Job, JobOutcome, Pipeline, Step, StepResult
from .trigger import match_jobs
from .ui.console import get_console

log = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass(eq=False)
class StepFailure(Exception):
    """
    The one runtime error kind: a step did not succeed.

    exit_code is None when the step failed before a process could be
    started (unknown action, bad inputs, missing cwd, ...).
    """
    job: str
    step: str
    cmd: str | None
    exit_code: int | None
    output: str = ""
    reason: str | None = None

    def __str__(self) -> str:
        if self.exit_code is None:
            return f"[{self.job}] step '{self.step}' failed: {self.reason or 'could not start'}"
        return f"[{self.job}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _tail(text: str, size: int) -> str:
    return text[-size:] if size > 0 else ""


def _mask(text: str, secrets: Mapping[str, str]) -> str:
    for value in secrets.values():
        if value:
            text = text.replace(value, "***")
    return text


def _contexts(job: Job, step: Step, env: JobEnvironment, secrets: Mapping[str, str]) -> Dict[str, Dict[str, str]]:
    event = env.event
    github = {"job": job.name, "workspace": str(env.workspace)}
    if event is not None:
        github.update(
            event_name=event.kind,
            ref=event.ref,
            ref_name=event.branch_name,
            sha=event.sha or "",
        )
    return {
        "secrets": dict(secrets),
        "env": {**(job.env or {}), **step.env},
        "github": github,
    }


def _commands_for(
    job: Job,
    step: Step,
    env: JobEnvironment,
    contexts: Mapping[str, Mapping[str, str]],
    actions: ActionRegistry,
) -> List[ActionCommand]:
    if step.uses is not None:
        inputs = evaluate_mapping(step.with_, contexts)
        ctx = ActionContext(
            job=job.name,
            workspace=env.workspace,
            repo_root=env.repo_root,
            sha=env.event.sha if env.event is not None else None,
        )
        return actions.compile(step.uses, inputs, ctx)
    return [ActionCommand(evaluate(step.run or "", contexts))]


def _run_step(
    job: Job,
    step: Step,
    env: JobEnvironment,
    *,
    secrets: Mapping[str, str],
    actions: ActionRegistry,
    tail: int,
) -> str:
    """Run one step to completion. Returns captured output; raises StepFailure."""
    name = step.display_name

    cwd = (env.workspace / (step.cwd or ".")).resolve()
    if not cwd.is_dir():
        raise StepFailure(job.name, name, None, None, reason=f"working directory not found: {cwd}")

    contexts = _contexts(job, step, env, secrets)
    try:
        step_env = evaluate_mapping(step.env, contexts)
        commands = _commands_for(job, step, env, contexts, actions)
    except (ActionError, ExpressionError) as e:
        raise StepFailure(job.name, name, None, None, reason=str(e)) from e

    output = ""
    for cmd in commands:
        log.debug("[%s] %s: %s", job.name, name, _mask(cmd.run, secrets))
        try:
            proc = subprocess.run(
                cmd.run,
                shell=True,
                cwd=str(cwd),
                env=env.step_variables({**step_env, **cmd.env}),
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise StepFailure(job.name, name, _mask(cmd.run, secrets), None, reason=str(e)) from e

        output += proc.stdout or ""
        if proc.returncode != 0:
            raise StepFailure(
                job=job.name,
                step=name,
                cmd=_mask(cmd.run, secrets),
                exit_code=proc.returncode,
                output=_mask(_tail(output, tail), secrets),
            )

    return _mask(_tail(output, tail), secrets)


def run_job(
    job: Job,
    *,
    event: Optional[Event] = None,
    repo_root: str | Path = ".",
    secrets: Optional[Mapping[str, str]] = None,
    actions: Optional[ActionRegistry] = None,
    work_dir: str | Path | None = None,
    keep_workspace: bool = False,
) -> JobOutcome:
    """
    Run a job's steps in order inside a fresh environment.

    The first failing step ends the job with status "failure"; the steps after
    it are recorded as skipped and never executed.
    """
    console = get_console()
    secrets = dict(secrets or {})
    registry = get_registry(actions)
    tail = settings.OUTPUT_TAIL
    started = time.monotonic()
    results: List[StepResult] = []

    console.print_job_start(job.name, job.runs_on)
    try:
        with JobEnvironment(job, event=event, repo_root=repo_root, work_dir=work_dir, keep=keep_workspace) as env:
            for idx, step in enumerate(job.steps):
                name = step.display_name
                console.print_step(job.name, name)
                t0 = time.monotonic()
                try:
                    output = _run_step(job, step, env, secrets=secrets, actions=registry, tail=tail)
                except Exception as e:
                    if isinstance(e, StepFailure):
                        f = e
                    else:
                        # a broken step definition or adapter still fails only this step
                        log.debug("[%s] step %s raised", job.name, name, exc_info=True)
                        f = StepFailure(job.name, name, None, None, reason=f"{type(e).__name__}: {e}")
                    results.append(StepResult(name, FAILURE, f.exit_code, time.monotonic() - t0, f.output))
                    results.extend(StepResult(s.display_name, SKIPPED) for s in job.steps[idx + 1:])
                    console.print_failure(job.name, name, str(f), exit_code=f.exit_code, output=f.output)
                    outcome = JobOutcome(
                        job=job.name,
                        status=FAILURE,
                        steps=results,
                        failed_step=name,
                        exit_code=f.exit_code,
                        error=str(f),
                        duration=time.monotonic() - started,
                    )
                    console.print_job_finished(outcome)
                    return outcome

                results.append(StepResult(name, SUCCESS, 0, time.monotonic() - t0, output))
                if console.debug:
                    console.print_step_output(job.name, output)
    except OSError as e:
        # the environment itself could not be set up or torn down
        log.debug("[%s] environment error", job.name, exc_info=True)
        results.extend(StepResult(s.display_name, SKIPPED) for s in job.steps[len(results):])
        outcome = JobOutcome(
            job=job.name,
            status=FAILURE,
            steps=results,
            error=f"environment error: {e}",
            duration=time.monotonic() - started,
        )
        console.print_job_finished(outcome)
        return outcome

    outcome = JobOutcome(job=job.name, status=SUCCESS, steps=results, duration=time.monotonic() - started)
    console.print_job_finished(outcome)
    return outcome


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_pipeline(
    pipeline: Pipeline,
    event: Event,
    *,
    repo_root: str | Path = ".",
    secrets: Optional[Mapping[str, str]] = None,
    actions: Optional[ActionRegistry] = None,
    max_workers: int | None = None,
    work_dir: str | Path | None = None,
    keep_workspace: bool = False,
) -> Dict[str, JobOutcome]:
    """
    Run every job of `pipeline` that `event` triggers.

    Jobs are independent: they run concurrently, each in its own environment,
    and one job's failure never stops another. Returns outcomes keyed by job
    name in declaration order; an empty dict when nothing matched.
    """
    jobs = match_jobs(pipeline, event)
    if not jobs:
        return {}

    if max_workers is None:
        max_workers = len(jobs)

    results: Dict[str, JobOutcome] = {}
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {
            pool.submit(
                run_job,
                j,
                event=event,
                repo_root=repo_root,
                secrets=secrets,
                actions=actions,
                work_dir=work_dir,
                keep_workspace=keep_workspace,
            ): j
            for j in jobs
        }

        for fut in as_completed(futures):
            j = futures[fut]
            try:
                results[j.name] = fut.result()
            except Exception as e:
                log.exception("job %s crashed", j.name)
                results[j.name] = JobOutcome(
                    job=j.name,
                    status=FAILURE,
                    steps=[StepResult(s.display_name, SKIPPED) for s in j.steps],
                    error=f"{type(e).__name__}: {e}",
                )

    return {j.name: results[j.name] for j in jobs}
