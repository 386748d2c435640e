"""Single-scenario smokes against an already running service.

Unlike the mocked run, nothing is spawned here: each smoke reads its inputs
from :class:`StandaloneSmokeConfig`, issues its request and applies the same
response invariants the full scenario uses.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from src.shared.config import StandaloneSmokeConfig
from src.shared.constants import AI_PROVIDER_GEMINI, AI_PROVIDER_OPENAI_COMPAT
from src.smoke_orchestrator.exceptions import ConfigurationError
from src.smoke_orchestrator.scenarios import (
    assert_catalog_listing,
    assert_meta_videos,
    assert_validation_ok,
    request_json,
)

logger = logging.getLogger(__name__)

VALIDATE_TIMEOUT_S = 30.0
_SECRET_FIELDS = ("GeminiApiKey", "OpenAICompatApiKey")


def parse_extra_headers(raw: str) -> str:
    """Check that *raw* is a JSON object string and return it unchanged.

    The service parses the headers itself; this only fails early on input
    that could never be valid.
    """
    if not raw:
        return ""
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"OPENAI_COMPAT_EXTRA_HEADERS is not valid JSON: {exc}"
        ) from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError("OPENAI_COMPAT_EXTRA_HEADERS must be a JSON object string")
    return raw


def build_validate_body(config: StandaloneSmokeConfig) -> dict[str, Any]:
    """Build the ``/aisearch/validate`` body from the environment.

    Raises:
        ConfigurationError: If a required key is missing or the provider is
            unsupported.
    """
    if not config.tmdb_api_key:
        raise ConfigurationError("TMDB_API_KEY is required")

    body: dict[str, Any] = {
        "AiProvider": config.ai_provider,
        "AiTemperature": config.temperature(),
        "TmdbApiKey": config.tmdb_api_key,
    }
    if config.ai_provider == AI_PROVIDER_GEMINI:
        if not config.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for AI_PROVIDER=gemini")
        body["GeminiApiKey"] = config.gemini_api_key
        body["GeminiModel"] = config.gemini_model
    elif config.ai_provider == AI_PROVIDER_OPENAI_COMPAT:
        if not config.openai_compat_api_key:
            raise ConfigurationError(
                "OPENAI_COMPAT_API_KEY is required for AI_PROVIDER=openai-compat"
            )
        if not config.openai_compat_model:
            raise ConfigurationError(
                "OPENAI_COMPAT_MODEL is required for AI_PROVIDER=openai-compat"
            )
        body["OpenAICompatApiKey"] = config.openai_compat_api_key
        body["OpenAICompatModel"] = config.openai_compat_model
        body["OpenAICompatBaseUrl"] = config.openai_compat_base_url
        body["OpenAICompatExtraHeaders"] = parse_extra_headers(
            config.openai_compat_extra_headers
        )
    else:
        raise ConfigurationError(f"Unsupported AI_PROVIDER: {config.ai_provider}")
    return body


def mask_secrets(body: dict[str, Any]) -> dict[str, Any]:
    """Copy of *body* with API keys replaced by ``***``."""
    masked = dict(body)
    for key in _SECRET_FIELDS:
        if masked.get(key):
            masked[key] = "***"
    return masked


def catalog_url_from_manifest(config: StandaloneSmokeConfig) -> str:
    """Derive the catalog search URL from a configured ``manifest.json`` URL."""
    marker = "/aisearch/"
    if marker not in config.manifest_url:
        raise ConfigurationError(
            f"MANIFEST_URL must look like .../aisearch/<configId>/manifest.json: "
            f"{config.manifest_url}"
        )
    config_id = config.manifest_url.split(marker, 1)[1].split("/manifest.json", 1)[0]
    encoded = quote(config.query, safe="-_.!~*'()")
    return (
        f"{config.service_base}/aisearch/{config_id}/catalog/"
        f"{config.media_type}/{config.catalog_id}/search={encoded}.json"
    )


def similar_url(config: StandaloneSmokeConfig) -> str:
    # The meta route answers as a series; the path carries the source type.
    return (
        f"{config.service_base}/aisearch/{config.config_id}/meta/"
        f"{config.source_type}/ai-recs:{config.imdb_id}.json"
    )


async def run_validate_smoke(
    client: httpx.AsyncClient, config: StandaloneSmokeConfig, body: dict[str, Any]
) -> dict[str, Any]:
    """POST *body* to the validation endpoint and check both providers passed."""
    url = f"{config.service_base}/aisearch/validate"
    logger.info("POST %s", url)
    resp, data = await request_json(client, "POST", url, body)
    assert_validation_ok(resp, data)
    return data


async def run_catalog_smoke(client: httpx.AsyncClient, url: str) -> list[Any]:
    logger.info("GET %s", url)
    resp, data = await request_json(client, "GET", url)
    return assert_catalog_listing(resp, data, require_name=True)


async def run_similar_smoke(client: httpx.AsyncClient, url: str) -> list[Any]:
    logger.info("GET %s", url)
    resp, data = await request_json(client, "GET", url)
    return assert_meta_videos(resp, data)
