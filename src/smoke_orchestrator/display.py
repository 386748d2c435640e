"""Rich-based terminal display for smoke runs.

Uses module-level :class:`~rich.console.Console` singletons: ``_console`` for
progress on stdout and ``_err_console`` for failures on stderr.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.constants import VERSION

_console = Console()
_err_console = Console(stderr=True)


def print_run_header(config: Any) -> None:
    """Print a panel naming the provider profile and the two endpoints."""
    header = Text()
    header.append("Addon smoke harness", style="bold white")
    header.append(f" v{VERSION}\n", style="dim")
    header.append("Provider: ", style="bold")
    header.append(f"{config.ai_provider}\n", style="cyan")
    header.append("Fixtures: ", style="bold")
    header.append(f"{config.mock_base}\n", style="green")
    header.append("Service: ", style="bold")
    header.append(f"{config.addon_base}", style="green")

    _console.print(
        Panel(header, title="[bold]Mocked smoke run[/bold]", border_style="blue", expand=False)
    )


def print_step_result(result: Any) -> None:
    """One line per finished step."""
    if result.passed:
        _console.print(
            f"[green]PASS[/green] {escape(result.name)} [dim]{escape(result.description)}[/dim] "
            f"({result.duration_ms:.0f} ms)"
        )
    else:
        _console.print(
            f"[red]FAIL[/red] {escape(result.name)} [dim]{escape(result.description)}[/dim] "
            f"({result.duration_ms:.0f} ms)"
        )


def print_report_table(report: Any) -> None:
    table = Table(title="Scenario steps", show_header=True, header_style="bold magenta")
    table.add_column("Step", style="cyan", min_width=12)
    table.add_column("Status", justify="center", min_width=8)
    table.add_column("Duration", justify="right", min_width=10)
    table.add_column("Detail")

    for result in report.steps:
        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        table.add_row(result.name, status, f"{result.duration_ms:.0f} ms", Text(result.detail))

    _console.print(table)


def print_error_panel(message: str, title: str = "Smoke run failed") -> None:
    _err_console.print(
        Panel(Text(message, style="red"), title=f"[bold red]{title}[/bold red]", border_style="red")
    )


def print_final_summary(report: Any) -> None:
    if report.passed:
        _console.print("[bold green]Smoke all (mocked) OK[/bold green]")
        return
    failure = report.failure
    if failure is not None:
        print_error_panel(f"{failure.name}: {failure.detail}")
    else:
        print_error_panel(f"Scenario ended in state {report.state!r}")


def print_note(message: str) -> None:
    _console.print(message, markup=False, highlight=False)


def print_json(label: str, data: Any) -> None:
    _console.print(label, markup=False)
    _console.print_json(data=data)
