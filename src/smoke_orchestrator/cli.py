"""Typer command line for the smoke harness.

Commands:

* ``run`` -- boot fixtures + service, run the full mocked scenario.
* ``fixtures`` -- serve the fixture server in the foreground.
* ``validate`` / ``catalog`` / ``similar`` -- single smokes against an
  already running service, configured through the environment.

Exit code 0 means every check passed; 1 means a check failed, a probe
timed out, the run was interrupted or an unexpected error occurred.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from typing import Any, Awaitable, Callable, Optional

import httpx
import typer
from pydantic import ValidationError

from src.shared.config import HarnessConfig, StandaloneSmokeConfig
from src.shared.constants import ORCHESTRATOR_SERVICE_NAME, VERSION
from src.shared.logging import setup_logging
from src.smoke_orchestrator import display
from src.smoke_orchestrator.exceptions import ConfigurationError, HarnessError
from src.smoke_orchestrator.orchestrator import run_smoke
from src.smoke_orchestrator.runner import ScenarioReport, StepResult
from src.smoke_orchestrator.standalone import (
    VALIDATE_TIMEOUT_S,
    build_validate_body,
    catalog_url_from_manifest,
    mask_secrets,
    run_catalog_smoke,
    run_similar_smoke,
    run_validate_smoke,
    similar_url,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="addon-smoke",
    help="Fixture server and smoke orchestrator for the AI-search addon.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"addon-smoke {VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Fixture server and smoke orchestrator for the AI-search addon."""


def _load_harness_config(provider: Optional[str]) -> HarnessConfig:
    try:
        if provider:
            return HarnessConfig(ai_provider=provider)
        return HarnessConfig()
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def _run_or_exit(work: Callable[[], Awaitable[Any]]) -> Any:
    """Run *work* on a fresh event loop, mapping failures to exit code 1."""
    try:
        return asyncio.run(work())
    except HarnessError as exc:
        display.print_error_panel(str(exc), title=type(exc).__name__)
        raise typer.Exit(code=1)
    except (asyncio.CancelledError, KeyboardInterrupt):
        display.print_error_panel("Interrupted; child processes terminated", title="Interrupted")
        raise typer.Exit(code=1)
    except Exception:
        traceback.print_exc()
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@app.command()
def run(
    provider: Optional[str] = typer.Option(
        None,
        "--provider",
        help="AI provider profile (openai-compat or gemini); overrides AI_PROVIDER.",
    ),
) -> None:
    """Boot the fixture server and the service, then run every scenario step."""
    try:
        config = _load_harness_config(provider)
    except ConfigurationError as exc:
        display.print_error_panel(str(exc), title="ConfigurationError")
        raise typer.Exit(code=1)

    setup_logging(ORCHESTRATOR_SERVICE_NAME, config.log_level)
    display.print_run_header(config)
    results: list[StepResult] = []

    def _on_step(result: StepResult) -> None:
        results.append(result)
        display.print_step_result(result)

    try:
        report = _run_or_exit(lambda: run_smoke(config, on_step=_on_step))
    finally:
        if results:
            display.print_report_table(ScenarioReport(steps=results))
    display.print_final_summary(report)
    if not report.passed:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# fixtures
# ---------------------------------------------------------------------------


@app.command()
def fixtures(
    port: Optional[int] = typer.Option(
        None, "--port", help="Port to listen on (defaults to MOCK_PORT or 8787)."
    ),
) -> None:
    """Serve the fixture server in the foreground."""
    from src.fixture_server.main import serve

    serve(port)


# ---------------------------------------------------------------------------
# standalone smokes
# ---------------------------------------------------------------------------


@app.command()
def validate() -> None:
    """Validate provider credentials against a running service (BASE_URL)."""
    config = StandaloneSmokeConfig()
    try:
        body = build_validate_body(config)
    except ConfigurationError as exc:
        display.print_error_panel(str(exc), title="ConfigurationError")
        raise typer.Exit(code=1)

    display.print_note(f"POST {config.service_base}/aisearch/validate")
    display.print_json("Request:", mask_secrets(body))

    async def _work() -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=VALIDATE_TIMEOUT_S) as client:
            return await run_validate_smoke(client, config, body)

    data = _run_or_exit(_work)
    display.print_json("Response:", data)
    display.print_note("Smoke validate OK")


@app.command()
def catalog() -> None:
    """Search a configured catalog (MANIFEST_URL, QUERY, TYPE, CATALOG_ID)."""
    config = StandaloneSmokeConfig()
    if not config.manifest_url:
        display.print_note(
            "MANIFEST_URL not set; skipping (provide a configured manifest.json URL)."
        )
        display.print_note(
            "Example: MANIFEST_URL=http://localhost:7000/aisearch/<configId>/manifest.json"
        )
        return
    try:
        url = catalog_url_from_manifest(config)
    except ConfigurationError as exc:
        display.print_error_panel(str(exc), title="ConfigurationError")
        raise typer.Exit(code=1)

    display.print_note(f"GET {url}")

    async def _work() -> list[Any]:
        async with httpx.AsyncClient(timeout=VALIDATE_TIMEOUT_S) as client:
            return await run_catalog_smoke(client, url)

    metas = _run_or_exit(_work)
    display.print_note(f"metas: {len(metas)}")
    display.print_note("Smoke catalog OK")


@app.command()
def similar() -> None:
    """Fetch AI recommendations for an item (CONFIG_ID, IMDB_ID, SOURCE_TYPE)."""
    config = StandaloneSmokeConfig()
    if not config.config_id:
        display.print_note("CONFIG_ID not set; skipping (provide the encrypted config id).")
        display.print_note(
            "Example: CONFIG_ID=<encryptedId> BASE_URL=http://localhost:7000 addon-smoke similar"
        )
        return

    url = similar_url(config)
    display.print_note(f"GET {url}")

    async def _work() -> list[Any]:
        async with httpx.AsyncClient(timeout=VALIDATE_TIMEOUT_S) as client:
            return await run_similar_smoke(client, url)

    videos = _run_or_exit(_work)
    display.print_note(f"videos: {len(videos)}")
    display.print_note("Smoke similar OK")


def main() -> None:
    app()
