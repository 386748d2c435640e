"""Shared test fixtures for the smoke harness test suite."""
from __future__ import annotations

import pytest

# Variables read by the settings classes; a developer shell exporting any of
# them must not change test outcomes.
_SETTINGS_ENV = (
    "LOG_LEVEL",
    "MOCK_PORT",
    "ADDON_PORT",
    "AI_PROVIDER",
    "ENCRYPTION_KEY",
    "SERVICE_COMMAND",
    "SERVICE_CWD",
    "READY_TIMEOUT_S",
    "POLL_INTERVAL_S",
    "SHUTDOWN_GRACE_S",
    "BASE_URL",
    "AI_TEMPERATURE",
    "TMDB_API_KEY",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "OPENAI_COMPAT_API_KEY",
    "OPENAI_COMPAT_MODEL",
    "OPENAI_COMPAT_BASE_URL",
    "OPENAI_COMPAT_EXTRA_HEADERS",
    "MANIFEST_URL",
    "QUERY",
    "TYPE",
    "CATALOG_ID",
    "CONFIG_ID",
    "IMDB_ID",
    "SOURCE_TYPE",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch: pytest.MonkeyPatch):
    """Remove every settings variable from the environment for one test."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
