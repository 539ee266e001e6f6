"""Console output formatting utilities for triggerci."""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from ..model import Event, JobOutcome


class Console:
    """Centralized console output formatting.

    Jobs run concurrently, so every write goes through one lock and every
    job-scoped line is prefixed with the job name.
    """

    def __init__(self, debug: bool = False, stream=None):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            stream: Output stream (defaults to stdout at write time)
        """
        self.debug = debug
        self._stream = stream
        self._lock = threading.Lock()

    def _out(self, *lines: str, err: bool = False) -> None:
        stream = sys.stderr if err else (self._stream or sys.stdout)
        with self._lock:
            for line in lines:
                print(line, file=stream)

    def print_run_started(self, workflow: str, event: "Event", job_count: int) -> None:
        """Print run start information."""
        self._out(
            "",
            "RUN STARTED",
            f"Workflow: {workflow}",
            f"Event: {event.kind} ({event.branch_name})",
            f"Jobs: {job_count}",
            "",
        )

    def print_plan_job(self, name: str, reason: str) -> None:
        self._out(f"  ✓ {name} ({reason})")

    def print_plan_job_skipped(self, name: str, reason: str) -> None:
        self._out(f"  ⏭ {name} (skipped: {reason})")

    def print_job_start(self, name: str, runs_on: str) -> None:
        self._out(f"[{name}] JOB STARTED (runs-on: {runs_on})")

    def print_step(self, job: str, name: str) -> None:
        self._out(f"[{job}] ▶ {name}")

    def print_step_output(self, job: str, output: str) -> None:
        """Print captured step output (debug mode, or after a failure)."""
        if not output:
            return
        self._out(*(f"[{job}]   | {line}" for line in output.rstrip("\n").splitlines()))

    def print_failure(
        self,
        job: str,
        step: str,
        reason: str,
        exit_code: Optional[int] = None,
        output: str = "",
    ) -> None:
        """
        Print a step failure.

        Output of the failing command is always shown; the full error text
        only in debug mode.
        """
        lines = [f"[{job}] STEP FAILED: {step}"]
        if exit_code is not None:
            lines.append(f"[{job}] Exit code: {exit_code}")
        if self.debug:
            lines.append(f"[{job}] Error details: {reason}")
        else:
            lines.append(f"[{job}] Error: {reason.splitlines()[0] if reason else 'Unknown error'}")
        self._out(*lines)
        self.print_step_output(job, output)

    def print_job_finished(self, outcome: "JobOutcome") -> None:
        if outcome.ok:
            self._out(f"[{outcome.job}] STATUS: success ({outcome.duration:.1f}s)")
        else:
            self._out(f"[{outcome.job}] STATUS: failure at {outcome.failed_step or '<setup>'}")

    def print_results(self, results: Mapping[str, "JobOutcome"]) -> None:
        """Print final results summary."""
        lines = ["", "=" * 40, "RESULTS", "=" * 40]
        if not results:
            lines.append("  (no jobs matched)")
        for name, outcome in results.items():
            if outcome.ok:
                lines.append(f"  {name}: SUCCESS")
            else:
                where = f" (step: {outcome.failed_step}" if outcome.failed_step else " (setup"
                code = f", exit {outcome.exit_code})" if outcome.exit_code is not None else ")"
                lines.append(f"  {name}: FAILURE{where}{code}")
        self._out(*lines)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {d}" for d in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._out(*lines, err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            with self._lock:
                traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        else:
            self._out(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._out(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._out(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
