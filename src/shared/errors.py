"""Fixture server exception classes and FastAPI exception handlers."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

logger = logging.getLogger(__name__)


class FixtureError(Exception):
    """Base fixture server error."""

    def __init__(self, detail: str, status_code: int = 500) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class MalformedRequestError(FixtureError):
    """Request body could not be decoded as JSON (500)."""

    def __init__(self, detail: str = "Malformed request body") -> None:
        super().__init__(detail=detail, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """Register fixture exception handlers with a FastAPI app.

    Failures are rendered as ``{"error": message}`` with the error's status.
    """

    @app.exception_handler(FixtureError)
    async def fixture_error_handler(request: Request, exc: FixtureError) -> JSONResponse:
        logger.warning(
            "Fixture error on %s %s: %s", request.method, request.url.path, exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
