# trigger.py
from __future__ import annotations

import logging
from fnmatch import fnmatchcase
from typing import Iterable, List

from .model import Event, Job, Pipeline, Trigger, normalize_branch

log = logging.getLogger(__name__)


def _matches_any(value: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase(value, p) for p in patterns)


def trigger_matches(trigger: Trigger, event: Event) -> bool:
    """
    True if `trigger` fires for `event`.

      - kinds must be equal
      - empty branch filter means any branch
      - a paths filter only applies when the event knows its changed files
    """
    if trigger.kind != event.kind:
        return False

    branches = [normalize_branch(b) for b in trigger.branches]
    if branches and not _matches_any(event.branch_name, branches):
        return False

    if trigger.paths and event.changed_files is not None:
        if not any(_matches_any(f, trigger.paths) for f in event.changed_files):
            return False

    return True


def match_jobs(pipeline: Pipeline, event: Event) -> List[Job]:
    """
    Select the jobs scheduled for `event`.

    Every job in a pipeline shares the pipeline's triggers, so either all jobs
    are selected (in declaration order) or none are. No match is not an error.
    """
    for trigger in pipeline.triggers:
        if trigger_matches(trigger, event):
            log.debug("event %s:%s matched trigger %s", event.kind, event.branch_name, trigger)
            return list(pipeline.jobs)

    log.debug("event %s:%s matched no trigger of %s", event.kind, event.branch_name, pipeline.name)
    return []
