"""Fixture server FastAPI application.

A single catch-all route turns every inbound request into a
:class:`FixtureRequest`, asks the catalog for the canned answer and writes it
back as JSON.  The server binds to the loopback interface only.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.fixture_server.catalog import respond_to
from src.shared.config import FixtureServerConfig
from src.shared.constants import FIXTURE_SERVER_SERVICE_NAME, LOOPBACK_HOST, VERSION
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware, setup_logging
from src.shared.models.fixtures import FixtureRequest

config = FixtureServerConfig()
logger = setup_logging(FIXTURE_SERVER_SERVICE_NAME, config.log_level)

ROUTE_SUMMARY = [
    "OpenAI compat: POST /v1/chat/completions",
    "TMDB: GET /3/configuration, /3/search/movie, /3/search/tv, "
    "/3/movie/:id, /3/tv/:id, /3/find/:imdbId",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - record start time and announce routes."""
    app.state.start_time = time.time()
    logger.info(
        "Service started: name=%s version=%s", FIXTURE_SERVER_SERVICE_NAME, VERSION
    )
    for line in ROUTE_SUMMARY:
        logger.info("- %s", line)
    yield
    logger.info("Service stopped: name=%s", FIXTURE_SERVER_SERVICE_NAME)


app = FastAPI(
    title="Fixture Server",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TraceIDMiddleware)
register_exception_handlers(app)


def first_query_values(items: list[tuple[str, str]]) -> dict[str, str]:
    """Collapse repeated query parameters, keeping the first occurrence."""
    params: dict[str, str] = {}
    for key, value in items:
        params.setdefault(key, value)
    return params


@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def dispatch(path: str, request: Request) -> JSONResponse:
    """Route every request through the fixture catalog."""
    fixture_request = FixtureRequest(
        method=request.method,
        path=request.url.path,
        query_params=first_query_values(request.query_params.multi_items()),
        body=await request.body(),
    )
    fixture_response = respond_to(fixture_request)
    logger.debug(
        "%s %s -> %d",
        fixture_request.method,
        fixture_request.path,
        fixture_response.status_code,
    )
    # JSONResponse renders the body once and sets an exact Content-Length.
    return JSONResponse(
        status_code=fixture_response.status_code,
        content=fixture_response.body,
    )


def serve(port: int | None = None) -> None:
    """Run the fixture server in the foreground on the loopback interface."""
    resolved = port if port is not None else config.mock_port
    logger.info("Fixture server listening on http://%s:%d", LOOPBACK_HOST, resolved)
    uvicorn.run(app, host=LOOPBACK_HOST, port=resolved, log_level=config.log_level.lower())
