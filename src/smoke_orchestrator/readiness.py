"""HTTP readiness probe for freshly started child processes."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from src.shared.constants import READINESS_POLL_INTERVAL_S
from src.smoke_orchestrator.exceptions import ReadinessTimeoutError

logger = logging.getLogger(__name__)


async def wait_until_ready(
    url: str,
    timeout_s: float,
    interval_s: float = READINESS_POLL_INTERVAL_S,
) -> None:
    """Poll *url* with GET until it answers with a 2xx status.

    Connection errors are expected while the target is still starting and
    are retried silently.

    Args:
        url: Endpoint to probe.
        timeout_s: Maximum seconds to wait.
        interval_s: Seconds between attempts.

    Raises:
        ReadinessTimeoutError: If no successful answer arrives in time.
    """
    deadline = time.monotonic() + timeout_s
    attempts = 0
    logger.info("Waiting for %s (timeout=%ss, interval=%ss)", url, timeout_s, interval_s)

    async with httpx.AsyncClient(timeout=10.0) as client:
        while time.monotonic() < deadline:
            attempts += 1
            try:
                resp = await client.get(url, headers={"Accept": "text/html"})
                if resp.is_success:
                    logger.info("%s ready after %d attempt(s)", url, attempts)
                    return
                logger.debug("%s answered %d", url, resp.status_code)
            except httpx.HTTPError as exc:
                logger.debug("%s not reachable yet: %s", url, exc)
            await asyncio.sleep(interval_s)

    raise ReadinessTimeoutError(url, timeout_s)
