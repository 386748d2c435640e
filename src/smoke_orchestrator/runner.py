"""Sequential, fail-fast scenario runner.

Steps run strictly one after another: each step's request completes before
the next begins, and the first failure aborts the remaining steps and
propagates to the caller.  Per-step outcomes are collected in a
:class:`ScenarioReport` for display.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx

from src.smoke_orchestrator.scenarios import ScenarioContext, ScenarioStep
from src.smoke_orchestrator.state_machine import create_scenario_machine

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    name: str
    description: str
    passed: bool
    duration_ms: float = 0.0
    detail: str = ""


@dataclass
class ScenarioReport:
    steps: list[StepResult] = field(default_factory=list)
    state: str = "idle"

    @property
    def passed(self) -> bool:
        return self.state == "passed"

    @property
    def failure(self) -> StepResult | None:
        for result in self.steps:
            if not result.passed:
                return result
        return None


class ScenarioRunner:
    """Executes an ordered list of :class:`ScenarioStep` objects.

    The runner is the model of a ``transitions`` state machine; its
    ``state`` attribute moves ``idle -> running -> passed | failed``.
    """

    def __init__(
        self,
        steps: list[ScenarioStep],
        client: httpx.AsyncClient,
        on_step: Callable[[StepResult], None] | None = None,
    ) -> None:
        self.steps = list(steps)
        self.client = client
        self.on_step = on_step
        self.results: list[StepResult] = []
        self.state: str = "idle"
        self.machine = create_scenario_machine(self)

    # Guards -----------------------------------------------------------------

    def has_steps(self, *args: Any, **kwargs: Any) -> bool:
        return bool(self.steps)

    def all_steps_passed(self, *args: Any, **kwargs: Any) -> bool:
        return len(self.results) == len(self.steps) and all(r.passed for r in self.results)

    # Execution --------------------------------------------------------------

    @property
    def report(self) -> ScenarioReport:
        return ScenarioReport(steps=list(self.results), state=self.state)

    def _record(self, result: StepResult) -> None:
        self.results.append(result)
        if self.on_step is not None:
            self.on_step(result)

    async def run(self, ctx: ScenarioContext) -> ScenarioContext:
        """Run every step in order, threading *ctx* through them.

        Returns:
            The context produced by the last step.

        Raises:
            RuntimeError: If the runner was already used or has no steps.
            Exception: Whatever the first failing step raised.
        """
        if not await self.start():  # type: ignore[attr-defined]
            raise RuntimeError(f"Scenario runner cannot start from state {self.state!r}")

        for step in self.steps:
            logger.info("Running step %s: %s", step.name, step.description)
            started = time.monotonic()
            try:
                ctx = await step.run(self.client, ctx)
            except BaseException as exc:
                elapsed = (time.monotonic() - started) * 1000
                self._record(
                    StepResult(
                        name=step.name,
                        description=step.description,
                        passed=False,
                        duration_ms=round(elapsed, 1),
                        detail=str(exc) or type(exc).__name__,
                    )
                )
                logger.error("Step %s failed: %s", step.name, exc)
                await self.fail()  # type: ignore[attr-defined]
                raise
            elapsed = (time.monotonic() - started) * 1000
            self._record(
                StepResult(
                    name=step.name,
                    description=step.description,
                    passed=True,
                    duration_ms=round(elapsed, 1),
                )
            )

        await self.succeed()  # type: ignore[attr-defined]
        logger.info("Scenario finished in state %s", self.state)
        return ctx
