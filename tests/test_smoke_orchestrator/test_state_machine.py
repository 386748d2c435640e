"""Tests for the scenario run state machine."""

from __future__ import annotations

import pytest

from src.smoke_orchestrator.state_machine import (
    STATES,
    TRANSITIONS,
    create_scenario_machine,
)


TERMINAL_STATES = {"passed", "failed"}


class ScenarioModel:
    """Stub model implementing the guard conditions."""

    def __init__(self, has_steps: bool = True, all_passed: bool = True) -> None:
        self.state: str = "idle"
        self._has_steps = has_steps
        self._all_passed = all_passed

    def has_steps(self, *args, **kwargs) -> bool:
        return self._has_steps

    def all_steps_passed(self, *args, **kwargs) -> bool:
        return self._all_passed


class TestDefinition:
    def test_state_names(self) -> None:
        assert [s.name for s in STATES] == ["idle", "running", "passed", "failed"]

    def test_triggers(self) -> None:
        assert {t["trigger"] for t in TRANSITIONS} == {"start", "succeed", "fail"}

    def test_no_transition_leaves_terminal_state(self) -> None:
        for transition in TRANSITIONS:
            sources = transition["source"]
            sources = sources if isinstance(sources, list) else [sources]
            assert not TERMINAL_STATES.intersection(sources)


class TestTransitions:
    @pytest.mark.asyncio
    async def test_happy_path(self) -> None:
        model = ScenarioModel()
        create_scenario_machine(model)
        assert model.state == "idle"
        assert await model.start() is True
        assert model.state == "running"
        assert await model.succeed() is True
        assert model.state == "passed"

    @pytest.mark.asyncio
    async def test_start_blocked_without_steps(self) -> None:
        model = ScenarioModel(has_steps=False)
        create_scenario_machine(model)
        assert await model.start() is False
        assert model.state == "idle"

    @pytest.mark.asyncio
    async def test_succeed_blocked_until_all_steps_pass(self) -> None:
        model = ScenarioModel(all_passed=False)
        create_scenario_machine(model)
        await model.start()
        assert await model.succeed() is False
        assert model.state == "running"

    @pytest.mark.asyncio
    async def test_fail_from_running(self) -> None:
        model = ScenarioModel()
        create_scenario_machine(model)
        await model.start()
        await model.fail()
        assert model.state == "failed"

    @pytest.mark.asyncio
    async def test_fail_from_idle(self) -> None:
        model = ScenarioModel()
        create_scenario_machine(model)
        await model.fail()
        assert model.state == "failed"

    @pytest.mark.asyncio
    async def test_terminal_state_ignores_further_triggers(self) -> None:
        model = ScenarioModel()
        create_scenario_machine(model)
        await model.start()
        await model.succeed()
        assert await model.start() is False
        await model.fail()
        assert model.state == "passed"

    @pytest.mark.asyncio
    async def test_custom_initial_state(self) -> None:
        model = ScenarioModel()
        create_scenario_machine(model, initial_state="running")
        assert model.state == "running"
