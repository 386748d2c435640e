"""Tests for the HTTP readiness probe."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.smoke_orchestrator.exceptions import ReadinessTimeoutError
from src.smoke_orchestrator.readiness import wait_until_ready

PROBE_URL = "http://127.0.0.1:8787/3/configuration?api_key=probe"


def _mock_client(get: AsyncMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.get = get
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    return mock_client


class TestWaitUntilReady:
    @pytest.mark.asyncio
    async def test_returns_on_first_success(self) -> None:
        get = AsyncMock(return_value=httpx.Response(200))
        with patch(
            "src.smoke_orchestrator.readiness.httpx.AsyncClient",
            return_value=_mock_client(get),
        ):
            await wait_until_ready(PROBE_URL, timeout_s=5, interval_s=0.01)
        get.assert_awaited_once()
        assert get.await_args.kwargs["headers"] == {"Accept": "text/html"}

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self) -> None:
        get = AsyncMock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.ConnectError("refused"),
                httpx.Response(200),
            ]
        )
        with patch(
            "src.smoke_orchestrator.readiness.httpx.AsyncClient",
            return_value=_mock_client(get),
        ):
            await wait_until_ready(PROBE_URL, timeout_s=5, interval_s=0.01)
        assert get.await_count == 3

    @pytest.mark.asyncio
    async def test_non_2xx_is_retried(self) -> None:
        get = AsyncMock(side_effect=[httpx.Response(503), httpx.Response(204)])
        with patch(
            "src.smoke_orchestrator.readiness.httpx.AsyncClient",
            return_value=_mock_client(get),
        ):
            await wait_until_ready(PROBE_URL, timeout_s=5, interval_s=0.01)
        assert get.await_count == 2

    @pytest.mark.asyncio
    async def test_timeout_names_url(self) -> None:
        get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch(
            "src.smoke_orchestrator.readiness.httpx.AsyncClient",
            return_value=_mock_client(get),
        ):
            with pytest.raises(ReadinessTimeoutError, match="api_key=probe") as excinfo:
                await wait_until_ready(PROBE_URL, timeout_s=0.1, interval_s=0.01)
        assert excinfo.value.url == PROBE_URL
        assert isinstance(excinfo.value, TimeoutError)

    @pytest.mark.asyncio
    async def test_unreachable_port_times_out(self) -> None:
        # Nothing listens on port 9 on loopback.
        with pytest.raises(ReadinessTimeoutError):
            await wait_until_ready("http://127.0.0.1:9/", timeout_s=0.3, interval_s=0.05)
