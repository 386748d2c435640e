"""Shared constants used by the fixture server and the orchestrator."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Port numbers
MOCK_PORT: int = 8787
ADDON_PORT: int = 7000
LOOPBACK_HOST: str = "127.0.0.1"

# Service names
FIXTURE_SERVER_SERVICE_NAME: str = "fixture-server"
ORCHESTRATOR_SERVICE_NAME: str = "smoke-orchestrator"

# AI provider profiles understood by the service-under-test
AI_PROVIDER_OPENAI_COMPAT: str = "openai-compat"
AI_PROVIDER_GEMINI: str = "gemini"
SUPPORTED_AI_PROVIDERS: list[str] = [AI_PROVIDER_OPENAI_COMPAT, AI_PROVIDER_GEMINI]

# Prompt marker the service uses when it asks for series recommendations
SERIES_PROMPT_MARKER: str = "series recommendation expert"

# Timing
READINESS_POLL_INTERVAL_S: float = 0.25
READINESS_TIMEOUT_S: float = 30.0
SHUTDOWN_GRACE_S: float = 0.25
