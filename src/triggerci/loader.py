# loader.py
from __future__ import annotations

import logging
import runpy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .actions import ActionRegistry, get_registry
from .dsl import stringify
from .model import EVENT_KINDS, Job, Pipeline, Step, Trigger

log = logging.getLogger(__name__)


class WorkflowError(ValueError):
    """An invalid pipeline definition."""


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def validate_pipeline(
    pipeline: Pipeline,
    *,
    actions: Optional[ActionRegistry] = None,
    check_actions: bool = True,
) -> Pipeline:
    if not pipeline.triggers:
        raise WorkflowError(f"Pipeline {pipeline.name!r} has no triggers")
    if not pipeline.jobs:
        raise WorkflowError(f"Pipeline {pipeline.name!r} has no jobs")

    names = [j.name for j in pipeline.jobs]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise WorkflowError(f"Duplicate job names found: {dupes}")

    registry = get_registry(actions)
    for j in pipeline.jobs:
        if not j.steps:
            raise WorkflowError(f"Job {j.name!r} has no steps")
        if not check_actions:
            continue
        for s in j.steps:
            if s.uses is not None and s.uses not in registry:
                raise WorkflowError(
                    f"Job {j.name!r} step {s.display_name!r} uses unknown action {s.uses!r}. "
                    f"Known actions: {registry.names()}"
                )
    return pipeline


# ----------------------------------------------------------------------
# YAML workflows (GitHub Actions layout)
# ----------------------------------------------------------------------

def _str_map(value: Any, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise WorkflowError(f"{where} must be a mapping, got {type(value).__name__}")
    return {str(k): stringify(v) for k, v in value.items()}


def _str_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise WorkflowError(f"{where} must be a list of strings")
    return [str(v) for v in value]


def _triggers_from(on: Any) -> List[Trigger]:
    # on: push | on: [push, pull_request] | on: {push: {branches: [...]}}
    if isinstance(on, str):
        on = {on: None}
    elif isinstance(on, list):
        on = {str(k): None for k in on}
    if not isinstance(on, Mapping) or not on:
        raise WorkflowError("'on' must name at least one event")

    triggers: List[Trigger] = []
    for kind, spec in on.items():
        if kind not in EVENT_KINDS:
            raise WorkflowError(f"Unsupported event {kind!r}; supported: {list(EVENT_KINDS)}")
        spec = spec or {}
        if not isinstance(spec, Mapping):
            raise WorkflowError(f"'on.{kind}' must be a mapping")
        paths = spec.get("paths")
        triggers.append(
            Trigger(
                kind=kind,
                branches=tuple(_str_list(spec.get("branches"), f"on.{kind}.branches")),
                paths=tuple(_str_list(paths, f"on.{kind}.paths")) if paths is not None else None,
            )
        )
    return triggers


def _opt_str(data: Mapping, key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise WorkflowError(f"{where}.{key} must be a string, got {type(value).__name__}")
    return value


def _step_from(data: Any, where: str) -> Step:
    if not isinstance(data, Mapping):
        raise WorkflowError(f"{where} must be a mapping")
    fields = dict(
        name=_opt_str(data, "name", where),
        run=_opt_str(data, "run", where),
        uses=_opt_str(data, "uses", where),
        with_=_str_map(data.get("with"), f"{where}.with"),
        cwd=_opt_str(data, "working-directory", where),
        env=_str_map(data.get("env"), f"{where}.env"),
    )
    try:
        return Step(**fields)
    except ValueError as e:
        raise WorkflowError(f"{where}: {e}") from e


def pipeline_from_dict(data: Any, *, name: str = "workflow") -> Pipeline:
    """Build a Pipeline from a parsed GitHub-Actions-style workflow document."""
    if not isinstance(data, Mapping):
        raise WorkflowError("Workflow document must be a mapping")

    # YAML 1.1 reads a bare `on:` key as boolean True
    on = data.get("on", data.get(True))
    if on is None:
        raise WorkflowError("Workflow has no 'on' section")

    jobs_data = data.get("jobs")
    if not isinstance(jobs_data, Mapping) or not jobs_data:
        raise WorkflowError("Workflow has no 'jobs' section")

    workflow_env = _str_map(data.get("env"), "env")
    jobs: List[Job] = []
    for job_name, jd in jobs_data.items():
        if not isinstance(jd, Mapping):
            raise WorkflowError(f"jobs.{job_name} must be a mapping")
        steps_data = jd.get("steps")
        if not isinstance(steps_data, list) or not steps_data:
            raise WorkflowError(f"jobs.{job_name}.steps must be a non-empty list")
        jobs.append(
            Job(
                name=str(job_name),
                steps=[_step_from(s, f"jobs.{job_name}.steps[{i}]") for i, s in enumerate(steps_data)],
                runs_on=str(jd.get("runs-on") or "ubuntu-latest"),
                env={**workflow_env, **_str_map(jd.get("env"), f"jobs.{job_name}.env")},
            )
        )

    return Pipeline(name=str(data.get("name") or name), triggers=_triggers_from(on), jobs=jobs)


def _load_yaml(path: Path) -> Pipeline:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise WorkflowError(f"Invalid YAML in {path.name}: {e}") from e
    return pipeline_from_dict(data, name=path.stem)


# ----------------------------------------------------------------------
# Python workflows
# ----------------------------------------------------------------------

def _load_python(path: Path) -> Pipeline:
    module_name = f"triggerci_workflow_{path.stem}"
    globals_dict = runpy.run_path(str(path), run_name=module_name)

    result = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        result = globals_dict["workflow"]()
    elif "PIPELINE" in globals_dict:
        result = globals_dict["PIPELINE"]

    if not isinstance(result, Pipeline):
        raise WorkflowError(
            "Workflow must return/define a Pipeline. "
            "Define workflow() -> Pipeline or PIPELINE = pipeline(...)."
        )
    return result


def load_workflow(path: str | Path, *, actions: Optional[ActionRegistry] = None) -> Pipeline:
    """
    Load a pipeline from a workflow file.

    `.py` files must define workflow() -> Pipeline or PIPELINE;
    `.yml`/`.yaml` files use the GitHub Actions workflow layout.
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")

    if wf_path.suffix == ".py":
        try:
            p = _load_python(wf_path)
        except WorkflowError:
            raise
        except ValueError as e:
            # job()/Step()/Trigger() reject bad declarations with ValueError
            raise WorkflowError(f"{wf_path.name}: {e}") from e
    elif wf_path.suffix in (".yml", ".yaml"):
        p = _load_yaml(wf_path)
    else:
        raise WorkflowError(f"Workflow must be a .py, .yml or .yaml file, got: {wf_path.name}")

    log.debug("loaded pipeline %s with jobs %s from %s", p.name, [j.name for j in p.jobs], wf_path)
    return validate_pipeline(p, actions=actions)
