"""Scenario steps driven against the service-under-test.

Each step is an async function ``(client, context) -> context``.  Values a
later step needs (the encrypted configuration id) travel in the returned
:class:`ScenarioContext`, never in shared module state, so every step can be
exercised on its own with a hand-built context.

The ``assert_*`` helpers hold the response-shape invariants and are shared
with the standalone smoke commands.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from src.shared.constants import AI_PROVIDER_OPENAI_COMPAT
from src.smoke_orchestrator.exceptions import NonJsonResponseError, ScenarioAssertionError

logger = logging.getLogger(__name__)

KNOWN_SEARCH_TERM = "matrix"
NO_RESULTS_SEARCH_TERM = "NORESULTS_TEST"
KNOWN_EXTERNAL_ID = "tt0133093"
CATALOG_ID = "aisearch.top"
MALFORMED_EXTRA_HEADERS = "{not-json}"
MOCK_CREDENTIAL = "mock"


@dataclass(frozen=True)
class ScenarioContext:
    """Values threaded from one step to the next."""

    addon_base: str
    mock_base: str
    ai_provider: str = AI_PROVIDER_OPENAI_COMPAT
    config_id: str | None = None

    def with_config_id(self, config_id: str) -> ScenarioContext:
        return dataclasses.replace(self, config_id=config_id)

    def require_config_id(self) -> str:
        if not self.config_id:
            raise ScenarioAssertionError(
                "encrypted config id must be obtained before this step", self.config_id
            )
        return self.config_id


StepFn = Callable[[httpx.AsyncClient, ScenarioContext], Awaitable[ScenarioContext]]


@dataclass(frozen=True)
class ScenarioStep:
    name: str
    description: str
    run: StepFn


# ---------------------------------------------------------------------------
# HTTP + assertion helpers
# ---------------------------------------------------------------------------


def expect(condition: bool, invariant: str, observed: Any) -> None:
    """Raise :class:`ScenarioAssertionError` unless *condition* holds."""
    if not condition:
        raise ScenarioAssertionError(invariant, observed)


def decode_json(resp: httpx.Response) -> Any:
    """Decode *resp* as JSON or raise :class:`NonJsonResponseError`."""
    try:
        return json.loads(resp.text)
    except ValueError as exc:
        raise NonJsonResponseError(resp.status_code, resp.text) from exc


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    payload: Any = None,
) -> tuple[httpx.Response, Any]:
    """Issue one request and return the response with its decoded JSON body."""
    if method == "POST":
        resp = await client.post(url, json=payload)
    else:
        resp = await client.request(method, url, headers={"Accept": "application/json"})
    logger.debug("%s %s -> %d", method, url, resp.status_code)
    return resp, decode_json(resp)


def expect_ok(resp: httpx.Response, label: str) -> None:
    expect(resp.is_success, f"{label} HTTP status must be 2xx", resp.status_code)


def expect_mapping(body: Any, label: str) -> dict[str, Any]:
    expect(isinstance(body, dict), f"{label} body must be a JSON object", body)
    return body


def assert_validation_rejected(resp: httpx.Response, body: Any) -> None:
    """Malformed extra headers: HTTP ok, ``ai`` falsy, ``errors.ai`` set."""
    expect_ok(resp, "validate")
    data = expect_mapping(body, "validate")
    expect(not data.get("ai"), "expected ai=false for invalid extra headers", data.get("ai"))
    errors = data.get("errors")
    ai_error = errors.get("ai") if isinstance(errors, dict) else None
    expect(bool(ai_error), "expected errors.ai for invalid extra headers", errors)


def assert_validation_ok(resp: httpx.Response, body: Any) -> None:
    """Metadata provider validated and at least one AI flag set."""
    expect_ok(resp, "validate")
    data = expect_mapping(body, "validate")
    expect(data.get("tmdb") is True, "tmdb validation should be true", data.get("tmdb"))
    ai_flags = {key: data.get(key) for key in ("ai", "openaiCompat", "gemini")}
    expect(any(ai_flags.values()), "ai validation should be true", ai_flags)


def assert_catalog_listing(
    resp: httpx.Response, body: Any, label: str = "catalog", require_name: bool = False
) -> list[Any]:
    """``metas`` is a non-empty list whose first entry carries an id."""
    expect_ok(resp, label)
    data = expect_mapping(body, label)
    metas = data.get("metas")
    expect(isinstance(metas, list), f"{label} metas must be array", metas)
    expect(len(metas) > 0, f"expected {label} metas length > 0", metas)
    first = metas[0]
    expect(isinstance(first, dict) and bool(first.get("id")), "meta[0].id missing", first)
    if require_name:
        expect(bool(first.get("name")), "meta[0].name missing", first)
    return metas


def assert_meta_videos(resp: httpx.Response, body: Any) -> list[Any]:
    """``meta.videos`` is a non-empty list."""
    expect_ok(resp, "meta")
    data = expect_mapping(body, "meta")
    meta = data.get("meta")
    expect(isinstance(meta, dict), "meta missing", meta)
    videos = meta.get("videos")
    expect(isinstance(videos, list), "meta.videos must be array", videos)
    expect(len(videos) > 0, "expected videos length > 0", videos)
    return videos


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def _provider_credentials(ctx: ScenarioContext) -> dict[str, Any]:
    if ctx.ai_provider == AI_PROVIDER_OPENAI_COMPAT:
        return {
            "OpenAICompatApiKey": MOCK_CREDENTIAL,
            "OpenAICompatModel": MOCK_CREDENTIAL,
            "OpenAICompatBaseUrl": ctx.mock_base,
        }
    return {"GeminiApiKey": MOCK_CREDENTIAL, "GeminiModel": MOCK_CREDENTIAL}


def validation_payload(ctx: ScenarioContext) -> dict[str, Any]:
    return {
        "AiProvider": ctx.ai_provider,
        "AiTemperature": 0,
        "TmdbApiKey": MOCK_CREDENTIAL,
        **_provider_credentials(ctx),
    }


def encrypt_payload(ctx: ScenarioContext) -> dict[str, Any]:
    config_data = {
        "AiProvider": ctx.ai_provider,
        "TmdbApiKey": MOCK_CREDENTIAL,
        "NumResults": 5,
        "EnableAiCache": False,
        "EnableHomepage": False,
        "EnableSimilar": True,
        "AiTemperature": 0,
        **_provider_credentials(ctx),
    }
    return {"configData": config_data, "traktAuthData": None}


def catalog_url(ctx: ScenarioContext, search: str, media_type: str = "movie") -> str:
    return (
        f"{ctx.addon_base}/aisearch/{ctx.require_config_id()}"
        f"/catalog/{media_type}/{CATALOG_ID}/search={search}.json"
    )


def meta_url(ctx: ScenarioContext, external_id: str, media_type: str = "movie") -> str:
    return (
        f"{ctx.addon_base}/aisearch/{ctx.require_config_id()}"
        f"/meta/{media_type}/ai-recs:{external_id}.json"
    )


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


async def validate_provider_config(
    client: httpx.AsyncClient, ctx: ScenarioContext
) -> ScenarioContext:
    url = f"{ctx.addon_base}/aisearch/validate"
    payload = validation_payload(ctx)

    # Extra headers only exist for the OpenAI-compatible profile.
    if ctx.ai_provider == AI_PROVIDER_OPENAI_COMPAT:
        logger.info("Validating with malformed extra headers (expecting rejection)")
        bad = {**payload, "OpenAICompatExtraHeaders": MALFORMED_EXTRA_HEADERS}
        resp, body = await request_json(client, "POST", url, bad)
        assert_validation_rejected(resp, body)

    resp, body = await request_json(client, "POST", url, payload)
    assert_validation_ok(resp, body)
    return ctx


async def create_encrypted_config(
    client: httpx.AsyncClient, ctx: ScenarioContext
) -> ScenarioContext:
    resp, body = await request_json(
        client, "POST", f"{ctx.addon_base}/aisearch/encrypt", encrypt_payload(ctx)
    )
    expect_ok(resp, "encrypt")
    data = expect_mapping(body, "encrypt")
    config_id = data.get("encryptedConfig")
    expect(isinstance(config_id, str) and bool(config_id), "encryptedConfig missing", config_id)
    return ctx.with_config_id(config_id)


async def search_known_title(
    client: httpx.AsyncClient, ctx: ScenarioContext
) -> ScenarioContext:
    resp, body = await request_json(client, "GET", catalog_url(ctx, KNOWN_SEARCH_TERM))
    metas = assert_catalog_listing(resp, body)
    logger.info("Catalog search returned %d metas (first id %s)", len(metas), metas[0].get("id"))
    return ctx


async def search_without_results(
    client: httpx.AsyncClient, ctx: ScenarioContext
) -> ScenarioContext:
    resp, body = await request_json(client, "GET", catalog_url(ctx, NO_RESULTS_SEARCH_TERM))
    expect_ok(resp, "noresults catalog")
    data = expect_mapping(body, "noresults catalog")
    metas = data.get("metas")
    expect(isinstance(metas, list), "noresults metas must be array", metas)
    expect(len(metas) > 0, "expected an error meta, not empty list", metas)
    logger.info("No-results search surfaced placeholder %r", metas[0])
    return ctx


async def similar_recommendations(
    client: httpx.AsyncClient, ctx: ScenarioContext
) -> ScenarioContext:
    resp, body = await request_json(client, "GET", meta_url(ctx, KNOWN_EXTERNAL_ID))
    videos = assert_meta_videos(resp, body)
    logger.info("Similar view returned %d videos", len(videos))
    return ctx


DEFAULT_SCENARIO: list[ScenarioStep] = [
    ScenarioStep(
        "validate",
        "Validate provider configuration (incl. malformed extra headers)",
        validate_provider_config,
    ),
    ScenarioStep("encrypt", "Create encrypted configuration id", create_encrypted_config),
    ScenarioStep("catalog", f"Catalog search for {KNOWN_SEARCH_TERM!r}", search_known_title),
    ScenarioStep("no_results", "Catalog search without matches", search_without_results),
    ScenarioStep("similar", f"Similar/meta view for {KNOWN_EXTERNAL_ID}", similar_recommendations),
]
