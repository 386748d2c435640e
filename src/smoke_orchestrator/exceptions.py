"""Custom exceptions for the smoke orchestrator."""

from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base exception for all orchestration errors."""

    pass


class ConfigurationError(HarnessError):
    """Raised for configuration issues (unknown provider, bad env, etc.)."""

    pass


class ProcessStartError(HarnessError):
    """Raised when a child process cannot be spawned."""

    def __init__(self, name: str, command: list[str], reason: str = "") -> None:
        self.name = name
        self.command = command
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to start '{name}' ({' '.join(command)}){detail}")


class ReadinessTimeoutError(HarnessError, TimeoutError):
    """Raised when an endpoint does not answer successfully in time."""

    def __init__(self, url: str, timeout_s: float) -> None:
        self.url = url
        self.timeout_s = timeout_s
        super().__init__(f"Timed out waiting for server: {url} (after {timeout_s}s)")


class ScenarioAssertionError(HarnessError, AssertionError):
    """Raised when a scenario invariant does not hold."""

    def __init__(self, invariant: str, observed: Any) -> None:
        self.invariant = invariant
        self.observed = observed
        super().__init__(f"{invariant} (observed: {observed!r})")


class NonJsonResponseError(HarnessError):
    """Raised when the service-under-test answers with a non-JSON body."""

    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text
        super().__init__(f"Non-JSON response (status {status_code}): {text}")
