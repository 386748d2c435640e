"""Tests for the Rich terminal display."""

from __future__ import annotations

import io

from rich.console import Console

import src.smoke_orchestrator.display as display_mod
from src.shared.config import HarnessConfig
from src.smoke_orchestrator.display import (
    _console,
    print_error_panel,
    print_final_summary,
    print_json,
    print_note,
    print_report_table,
    print_run_header,
    print_step_result,
)
from src.smoke_orchestrator.runner import ScenarioReport, StepResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _capture_output(fn, *args, **kwargs) -> str:
    """Capture stdout and stderr console output of one display call."""
    buf = io.StringIO()
    original, original_err = display_mod._console, display_mod._err_console
    display_mod._console = Console(file=buf, width=120)
    display_mod._err_console = Console(file=buf, width=120)
    try:
        fn(*args, **kwargs)
    finally:
        display_mod._console = original
        display_mod._err_console = original_err
    return buf.getvalue()


def _report(passed: bool) -> ScenarioReport:
    steps = [StepResult("validate", "Validate provider configuration", True, 12.0)]
    if not passed:
        steps.append(
            StepResult("catalog", "Catalog search", False, 5.0, detail="meta[0].id missing")
        )
    return ScenarioReport(steps=steps, state="passed" if passed else "failed")


class TestDisplay:
    def test_console_is_console_instance(self) -> None:
        assert isinstance(_console, Console)

    def test_run_header(self) -> None:
        output = _capture_output(print_run_header, HarnessConfig(ai_provider="gemini"))
        assert "gemini" in output
        assert "127.0.0.1" in output

    def test_step_result_pass(self) -> None:
        output = _capture_output(print_step_result, _report(True).steps[0])
        assert "PASS" in output
        assert "validate" in output

    def test_step_result_fail(self) -> None:
        output = _capture_output(print_step_result, _report(False).steps[1])
        assert "FAIL" in output

    def test_report_table_keeps_brackets(self) -> None:
        output = _capture_output(print_report_table, _report(False))
        assert "meta[0].id missing" in output
        assert "catalog" in output

    def test_final_summary_ok(self) -> None:
        output = _capture_output(print_final_summary, _report(True))
        assert "Smoke all (mocked) OK" in output

    def test_final_summary_failure(self) -> None:
        output = _capture_output(print_final_summary, _report(False))
        assert "catalog" in output
        assert "Smoke all (mocked) OK" not in output

    def test_final_summary_without_failed_step(self) -> None:
        output = _capture_output(print_final_summary, ScenarioReport(state="idle"))
        assert "idle" in output

    def test_error_panel_title(self) -> None:
        output = _capture_output(print_error_panel, "boom", title="ReadinessTimeoutError")
        assert "ReadinessTimeoutError" in output
        assert "boom" in output

    def test_note_is_plain(self) -> None:
        output = _capture_output(print_note, "GET http://x/[bold]y")
        assert "[bold]" in output

    def test_json(self) -> None:
        output = _capture_output(print_json, "Request:", {"GeminiApiKey": "***"})
        assert "Request:" in output
        assert '"GeminiApiKey": "***"' in output
