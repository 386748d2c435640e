"""Tests for GracefulShutdown."""

from __future__ import annotations

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.smoke_orchestrator.shutdown import GracefulShutdown


class TestGracefulShutdown:
    """Test GracefulShutdown class."""

    def test_initial_should_stop_false(self) -> None:
        gs = GracefulShutdown()
        assert gs.should_stop is False
        assert gs.signal_received is None

    def test_signal_handler_sets_should_stop(self) -> None:
        gs = GracefulShutdown()
        gs._signal_handler(signal.SIGINT, None)
        assert gs.should_stop is True
        assert gs.signal_received == signal.SIGINT

    def test_reentrancy_guard(self) -> None:
        gs = GracefulShutdown()
        gs._handling = True
        gs._signal_handler(signal.SIGINT, None)
        # Handler returned early
        assert gs.should_stop is False

    def test_async_handler_sets_should_stop(self) -> None:
        gs = GracefulShutdown()
        gs._async_handler()
        assert gs.should_stop is True
        assert gs.signal_received == signal.SIGTERM

    def test_install_windows(self) -> None:
        gs = GracefulShutdown()
        with patch("sys.platform", "win32"):
            with patch("signal.signal") as mock_signal:
                gs.install()
                assert mock_signal.call_count >= 2

    def test_install_without_loop_falls_back(self) -> None:
        gs = GracefulShutdown()
        with patch("sys.platform", "linux"):
            with patch("signal.signal") as mock_signal:
                gs.install()
                assert mock_signal.call_count == 2
        assert gs._loop is None

    @pytest.mark.asyncio
    async def test_install_uses_loop_handlers(self) -> None:
        gs = GracefulShutdown()
        loop = asyncio.get_running_loop()
        with patch("sys.platform", "linux"):
            with patch.object(loop, "add_signal_handler") as add, patch.object(
                loop, "remove_signal_handler"
            ) as remove:
                gs.install()
                assert add.call_count == 2
                gs.uninstall()
                assert remove.call_count == 2
        assert gs._loop is None


class TestStopRun:
    @pytest.mark.asyncio
    async def test_signal_terminates_children_and_cancels_task(self) -> None:
        supervisor = MagicMock()
        supervisor.shutdown = AsyncMock()
        gs = GracefulShutdown(supervisor)

        async def _scenario() -> None:
            await asyncio.sleep(10)

        task = asyncio.create_task(_scenario())
        gs.install(task=task)
        try:
            gs._async_handler(signal.SIGINT)
            with pytest.raises(asyncio.CancelledError):
                await task
            await gs._pending
        finally:
            gs.uninstall()

        supervisor.shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_signal_does_not_reschedule_shutdown(self) -> None:
        supervisor = MagicMock()
        supervisor.shutdown = AsyncMock()
        gs = GracefulShutdown(supervisor)

        gs._async_handler(signal.SIGINT)
        gs._async_handler(signal.SIGTERM)
        await gs._pending

        supervisor.shutdown.assert_awaited_once()
        assert gs.signal_received == signal.SIGTERM

    def test_stop_run_without_loop_does_not_raise(self) -> None:
        supervisor = MagicMock()
        supervisor.shutdown = MagicMock(return_value=MagicMock())
        gs = GracefulShutdown(supervisor)
        with patch("asyncio.ensure_future", side_effect=RuntimeError("no loop")):
            gs._signal_handler(signal.SIGTERM, None)
        assert gs.should_stop is True
        assert gs._pending is None

    def test_finished_task_not_cancelled(self) -> None:
        gs = GracefulShutdown()
        task = MagicMock()
        task.done.return_value = True
        gs._task = task
        gs._stop_run()
        task.cancel.assert_not_called()
