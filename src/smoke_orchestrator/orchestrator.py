"""End-to-end mocked smoke run.

Boots the fixture server and the service-under-test under a
:class:`ProcessSupervisor`, waits for both to answer, then drives the
default scenario.  Children are terminated on every exit path: normal
completion, a raised error, or SIGINT / SIGTERM.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable

import httpx

from src.shared.config import HarnessConfig
from src.smoke_orchestrator.exceptions import ConfigurationError
from src.smoke_orchestrator.readiness import wait_until_ready
from src.smoke_orchestrator.runner import ScenarioReport, ScenarioRunner, StepResult
from src.smoke_orchestrator.scenarios import DEFAULT_SCENARIO, ScenarioContext, ScenarioStep
from src.smoke_orchestrator.shutdown import GracefulShutdown
from src.smoke_orchestrator.supervisor import ChildSpec, ProcessSupervisor

logger = logging.getLogger(__name__)

SCENARIO_HTTP_TIMEOUT = httpx.Timeout(30.0, connect=10.0)

# Directory holding the `src` namespace; the fixture server child imports from it.
IMPORT_ROOT = Path(__file__).resolve().parents[2]


def fixture_server_spec(config: HarnessConfig) -> ChildSpec:
    return ChildSpec(
        name="mock",
        command=sys.executable,
        args=["-m", "src.fixture_server"],
        env={"MOCK_PORT": str(config.mock_port), "LOG_LEVEL": config.log_level},
        cwd=IMPORT_ROOT,
    )


def service_spec(config: HarnessConfig) -> ChildSpec:
    argv = config.service_argv()
    if not argv:
        raise ConfigurationError("SERVICE_COMMAND must not be empty")
    return ChildSpec(
        name="server",
        command=argv[0],
        args=argv[1:],
        env=config.service_env(),
        cwd=Path(config.service_cwd),
    )


def fixture_probe_url(config: HarnessConfig) -> str:
    return f"{config.tmdb_base}/configuration?api_key=probe"


def service_probe_url(config: HarnessConfig) -> str:
    return f"{config.addon_base}/aisearch/configure"


async def run_smoke(
    config: HarnessConfig,
    steps: list[ScenarioStep] | None = None,
    on_step: Callable[[StepResult], None] | None = None,
    supervisor: ProcessSupervisor | None = None,
) -> ScenarioReport:
    """Run the full mocked smoke and return the scenario report.

    Raises:
        HarnessError: On probe timeout, assertion failure or a non-JSON
            answer from the service.
        asyncio.CancelledError: When interrupted by a signal.
    """
    supervisor = supervisor or ProcessSupervisor(grace_s=config.shutdown_grace_s)
    shutdown = GracefulShutdown(supervisor)
    shutdown.install(task=asyncio.current_task())

    try:
        logger.info("Starting mock API server...")
        await supervisor.start(fixture_server_spec(config))
        logger.info("Starting addon server...")
        await supervisor.start(service_spec(config))

        await wait_until_ready(
            fixture_probe_url(config), config.ready_timeout_s, config.poll_interval_s
        )
        await wait_until_ready(
            service_probe_url(config), config.ready_timeout_s, config.poll_interval_s
        )

        ctx = ScenarioContext(
            addon_base=config.addon_base,
            mock_base=config.mock_base,
            ai_provider=config.ai_provider,
        )
        async with httpx.AsyncClient(timeout=SCENARIO_HTTP_TIMEOUT) as client:
            scenario = DEFAULT_SCENARIO if steps is None else steps
            runner = ScenarioRunner(scenario, client, on_step=on_step)
            await runner.run(ctx)
        return runner.report
    finally:
        shutdown.uninstall()
        if shutdown.should_stop:
            logger.warning("Run interrupted by signal %s", shutdown.signal_received)
        await supervisor.shutdown()
