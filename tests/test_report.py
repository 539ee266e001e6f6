import json

from triggerci import Event, JobOutcome, StepResult
from triggerci.report import build_report, overall_status, write_report


def _outcomes():
    return {
        "tests": JobOutcome(
            job="tests",
            status="failure",
            steps=[StepResult("Checkout", "success", 0), StepResult("Clippy", "failure", 1), StepResult("Build", "skipped")],
            failed_step="Clippy",
            exit_code=1,
            error="[tests] step 'Clippy' failed (exit=1): cargo clippy --all-features",
        ),
        "integration_tests": JobOutcome(job="integration_tests", status="success"),
    }


def test_overall_status():
    assert overall_status({}) == "skipped"
    assert overall_status(_outcomes()) == "failure"
    assert overall_status({"a": JobOutcome(job="a", status="success")}) == "success"


def test_report_lists_each_job_independently():
    report = build_report("ci", Event("pull_request", "refs/heads/main", sha="abc"), _outcomes())

    assert report["event"] == {"kind": "pull_request", "branch": "main", "sha": "abc"}
    assert report["jobs"]["tests"]["failed_step"] == "Clippy"
    assert report["jobs"]["tests"]["exit_code"] == 1
    assert [s["status"] for s in report["jobs"]["tests"]["steps"]] == ["success", "failure", "skipped"]
    assert report["jobs"]["integration_tests"]["status"] == "success"


def test_write_report(tmp_path):
    out = write_report(tmp_path / "out" / "report.json", "ci", Event("push", "main"), _outcomes())
    data = json.loads(out.read_text())
    assert data["pipeline"] == "ci"
    assert data["status"] == "failure"
