"""Child process supervision for a smoke run.

The :class:`ProcessSupervisor` owns the fixture server and the
service-under-test for the duration of a run.  It is the only object allowed
to terminate them, and its :meth:`~ProcessSupervisor.shutdown` is safe to
call any number of times, concurrently or not (signal handler, error path
and normal completion all funnel into the same operation).

Usage::

    async with ProcessSupervisor() as supervisor:
        await supervisor.start(ChildSpec("mock", sys.executable, ["-m", "src.fixture_server"]))
        ...
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

from src.shared.constants import SHUTDOWN_GRACE_S
from src.smoke_orchestrator.exceptions import ProcessStartError

logger = logging.getLogger(__name__)

# Child output lines can be long (stack traces, JSON logs).
_STREAM_LIMIT = 1024 * 1024


@dataclass
class ChildSpec:
    """What to run for one child process."""

    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: Path | None = None

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


def merged_env(overlay: dict[str, str]) -> dict[str, str]:
    """Return ``os.environ`` with *overlay* applied on top."""
    return {**os.environ, **overlay}


class ChildProcess:
    """Handle on one running child and the tasks forwarding its output."""

    def __init__(
        self,
        spec: ChildSpec,
        process: asyncio.subprocess.Process,
        pumps: list[asyncio.Task[None]],
    ) -> None:
        self.spec = spec
        self.process = process
        self.pumps = pumps

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    def terminate(self) -> None:
        """Send SIGTERM unless the child already exited."""
        if not self.running:
            logger.debug("%s already exited with %s", self.name, self.returncode)
            return
        try:
            self.process.terminate()
            logger.info("Sent SIGTERM to %s (pid %d)", self.name, self.pid)
        except ProcessLookupError:
            logger.debug("%s vanished before SIGTERM", self.name)

    async def wait(self) -> int:
        return await self.process.wait()


async def _forward_lines(name: str, stream: asyncio.StreamReader | None, sink: str) -> None:
    """Re-emit every line of *stream* as ``[name] line`` on stdout or stderr."""
    if stream is None:
        return
    while True:
        raw = await stream.readline()
        if not raw:
            return
        text = raw.decode(errors="replace")
        if not text.endswith("\n"):
            text += "\n"
        target: IO[str] = sys.stdout if sink == "stdout" else sys.stderr
        target.write(f"[{name}] {text}")
        target.flush()


class ProcessSupervisor:
    """Spawns child processes and terminates them exactly once."""

    def __init__(self, grace_s: float = SHUTDOWN_GRACE_S) -> None:
        self.grace_s = grace_s
        self._children: list[ChildProcess] = []
        self._shutdown_task: asyncio.Future[None] | None = None

    async def start(self, spec: ChildSpec) -> ChildProcess:
        """Spawn *spec* with its environment overlay and forward its output.

        Raises:
            ProcessStartError: If the command cannot be executed or the
                supervisor is already shutting down.
        """
        if self._shutdown_task is not None:
            raise ProcessStartError(spec.name, spec.argv, "supervisor is shutting down")

        logger.info("Starting %s: %s", spec.name, " ".join(spec.argv))
        try:
            process = await asyncio.create_subprocess_exec(
                spec.command,
                *spec.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=merged_env(spec.env),
                cwd=str(spec.cwd) if spec.cwd is not None else None,
                limit=_STREAM_LIMIT,
            )
        except OSError as exc:
            raise ProcessStartError(spec.name, spec.argv, str(exc)) from exc

        pumps = [
            asyncio.create_task(_forward_lines(spec.name, process.stdout, "stdout")),
            asyncio.create_task(_forward_lines(spec.name, process.stderr, "stderr")),
        ]
        child = ChildProcess(spec, process, pumps)
        self._children.append(child)
        return child

    async def shutdown(self) -> None:
        """Terminate every child and wait the grace period.

        Every caller awaits the same underlying operation, so repeated or
        concurrent calls send at most one SIGTERM per child.
        """
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._terminate_all())
        await asyncio.shield(self._shutdown_task)

    async def _terminate_all(self) -> None:
        for child in reversed(self._children):
            child.terminate()
        await asyncio.sleep(self.grace_s)

        pumps = [task for child in self._children for task in child.pumps]
        for task in pumps:
            if not task.done():
                task.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)

        for child in self._children:
            if child.running:
                logger.warning(
                    "%s (pid %d) still running after %.2fs grace period",
                    child.name,
                    child.pid,
                    self.grace_s,
                )
        logger.info("Supervisor shut down %d child process(es)", len(self._children))

    async def __aenter__(self) -> ProcessSupervisor:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()
