from .dsl import job, sh, uses, on_push, on_pull_request, pipeline
from .loader import load_workflow, WorkflowError
from .model import Event, Job, JobOutcome, Pipeline, Step, StepResult, Trigger
from .runner import run_job, run_pipeline, StepFailure
from .trigger import match_jobs

__all__ = [
    "job", "sh", "uses", "on_push", "on_pull_request", "pipeline",
    "load_workflow", "WorkflowError",
    "Event", "Job", "JobOutcome", "Pipeline", "Step", "StepResult", "Trigger",
    "run_job", "run_pipeline", "StepFailure", "match_jobs",
]
