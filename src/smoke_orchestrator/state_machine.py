"""Scenario run state machine using the ``transitions`` library.

A run starts ``idle``, moves to ``running`` when the first step begins and
ends in exactly one of ``passed`` or ``failed``.  There is no way back out
of a terminal state: a new run needs a new runner.
"""

from __future__ import annotations

import logging
from typing import Any

from transitions.extensions.asyncio import AsyncMachine, AsyncState

logger = logging.getLogger(__name__)

STATES: list[AsyncState] = [
    AsyncState("idle"),
    AsyncState("running"),
    AsyncState("passed"),
    AsyncState("failed"),
]

TRANSITIONS: list[dict[str, Any]] = [
    {
        "trigger": "start",
        "source": "idle",
        "dest": "running",
        "conditions": ["has_steps"],
    },
    {
        "trigger": "succeed",
        "source": "running",
        "dest": "passed",
        "conditions": ["all_steps_passed"],
    },
    {
        "trigger": "fail",
        "source": ["idle", "running"],
        "dest": "failed",
    },
]


def create_scenario_machine(model: Any, initial_state: str = "idle") -> AsyncMachine:
    """Create and return an ``AsyncMachine`` bound to *model*.

    The model must implement the guards referenced in ``TRANSITIONS``
    (``has_steps`` and ``all_steps_passed``).
    """
    return AsyncMachine(
        model=model,
        states=STATES,
        transitions=TRANSITIONS,
        initial=initial_state,
        auto_transitions=False,
        send_event=True,
        queued=True,
        ignore_invalid_triggers=True,
    )
