"""Deterministic fixture catalog for the metadata and chat-completion providers.

Maps a :class:`FixtureRequest` to a :class:`FixtureResponse` without I/O or
shared state.  Identical requests always produce identical responses; the
only exception is the cosmetic ``created`` timestamp of chat completions.

Routing is table-driven: each :class:`RoutePattern` either matches a request
and yields its path parameters, or returns :data:`NO_MATCH`.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from src.shared.constants import SERIES_PROMPT_MARKER
from src.shared.models.fixtures import (
    ChatChoice,
    ChatCompletionResponse,
    ChatMessage,
    FixtureRequest,
    FixtureResponse,
    MovieResult,
    SeriesResult,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Canonical entities
# ---------------------------------------------------------------------------

MATRIX_ID = 603
MATRIX_IMDB_ID = "tt0133093"
INCEPTION_ID = 27205
INCEPTION_IMDB_ID = "tt1375666"
BREAKING_BAD_ID = 1396
BREAKING_BAD_IMDB_ID = "tt0903747"

EXTERNAL_ID_PREFIX = "tt"

IMAGE_CONFIGURATION: dict[str, Any] = {
    "images": {
        "base_url": "https://image.tmdb.org/t/p/",
        "secure_base_url": "https://image.tmdb.org/t/p/",
        "poster_sizes": ["w92", "w154", "w185", "w342", "w500", "original"],
        "backdrop_sizes": ["w300", "w780", "w1280", "original"],
    },
    "change_keys": [],
}

MOVIE_RECOMMENDATIONS = [
    "movie|The Matrix|1999",
    "movie|Inception|2010",
    "movie|Mock Movie One|2001",
    "movie|Mock Movie Two|2002",
    "movie|Mock Movie Three|2003",
]

SERIES_RECOMMENDATIONS = [
    "series|Breaking Bad|2008",
    "series|Mock Series One|2011",
    "series|Mock Series Two|2012",
    "series|Mock Series Three|2013",
    "series|Mock Series Four|2014",
]


def movie_result(id: int, title: str, year: int, imdb_id: str) -> MovieResult:
    return MovieResult(
        id=id,
        title=title,
        release_date=f"{year}-01-01",
        overview=f"Overview for {title}",
        imdb_id=imdb_id,
    )


def series_result(id: int, name: str, year: int, imdb_id: str) -> SeriesResult:
    return SeriesResult(
        id=id,
        name=name,
        first_air_date=f"{year}-01-01",
        overview=f"Overview for {name}",
        imdb_id=imdb_id,
    )


def synthesize_external_id(numeric_id: int) -> str:
    """``tt`` followed by the id zero-padded to 7 digits."""
    return f"{EXTERNAL_ID_PREFIX}{numeric_id:07d}"


# ---------------------------------------------------------------------------
# Pure lookups
# ---------------------------------------------------------------------------


def search_movies(query: str) -> list[MovieResult]:
    """Match *query* against the known movie titles (case-insensitive)."""
    q = query.lower()
    if "matrix" in q:
        return [movie_result(MATRIX_ID, "The Matrix", 1999, MATRIX_IMDB_ID)]
    if "inception" in q:
        return [movie_result(INCEPTION_ID, "Inception", 2010, INCEPTION_IMDB_ID)]
    return [
        movie_result(100, "Mock Movie One", 2001, "tt0000100"),
        movie_result(101, "Mock Movie Two", 2002, "tt0000101"),
    ]


def search_series(query: str) -> list[SeriesResult]:
    """Match *query* against the known series titles (case-insensitive)."""
    if "breaking bad" in query.lower():
        return [series_result(BREAKING_BAD_ID, "Breaking Bad", 2008, BREAKING_BAD_IMDB_ID)]
    return [
        series_result(200, "Mock Series One", 2011, "tt0000200"),
        series_result(201, "Mock Series Two", 2012, "tt0000201"),
    ]


def movie_details(numeric_id: int) -> dict[str, Any]:
    if numeric_id == MATRIX_ID:
        title, imdb_id = "The Matrix", MATRIX_IMDB_ID
    else:
        title, imdb_id = "Mock Movie One", synthesize_external_id(numeric_id)
    document = movie_result(numeric_id, title, 1999, imdb_id).model_dump()
    document["external_ids"] = {"imdb_id": imdb_id}
    return document


def series_details(numeric_id: int) -> dict[str, Any]:
    if numeric_id == BREAKING_BAD_ID:
        name, imdb_id = "Breaking Bad", BREAKING_BAD_IMDB_ID
    else:
        name, imdb_id = "Mock Series One", synthesize_external_id(numeric_id)
    document = series_result(numeric_id, name, 2008, imdb_id).model_dump()
    document["external_ids"] = {"imdb_id": imdb_id}
    return document


def build_chat_completion(prompt: str, created: int | None = None) -> dict[str, Any]:
    """Return five ``kind|title|year`` recommendations for *prompt*.

    Prompts carrying the series marker get series; everything else,
    including an empty prompt, gets movies.
    """
    wants_series = SERIES_PROMPT_MARKER in prompt.lower()
    lines = SERIES_RECOMMENDATIONS if wants_series else MOVIE_RECOMMENDATIONS
    completion = ChatCompletionResponse(
        created=int(time.time()) if created is None else created,
        choices=[ChatChoice(index=0, message=ChatMessage(content="\n".join(lines)))],
    )
    return completion.model_dump()


def first_message_content(payload: Any) -> str:
    """Content of ``messages[0]``, or ``""`` when any level is missing."""
    if not isinstance(payload, dict):
        return ""
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        return ""
    first = messages[0]
    if not isinstance(first, dict):
        return ""
    content = first.get("content")
    if not isinstance(content, str):
        return ""
    return content


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


def _chat_completions(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    prompt = first_message_content(request.json_body())
    return FixtureResponse(body=build_chat_completion(prompt))


def _configuration(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    api_key = request.query("api_key")
    if not api_key or api_key == "bad":
        return FixtureResponse(status_code=401, body={"status_message": "Invalid API key"})
    return FixtureResponse(body=IMAGE_CONFIGURATION)


def _search_movie(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    results = search_movies(request.query("query"))
    return FixtureResponse(body={"results": [r.model_dump() for r in results]})


def _search_tv(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    results = search_series(request.query("query"))
    return FixtureResponse(body={"results": [r.model_dump() for r in results]})


def _movie_details(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    return FixtureResponse(body=movie_details(int(params["id"])))


def _tv_details(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    return FixtureResponse(body=series_details(int(params["id"])))


def _find(request: FixtureRequest, params: dict[str, str]) -> FixtureResponse:
    # external_source is accepted for interface compatibility only.
    external_id = params["external_id"]
    movie = movie_result(MATRIX_ID, "The Matrix", 1999, external_id)
    series = series_result(BREAKING_BAD_ID, "Breaking Bad", 2008, external_id)
    return FixtureResponse(
        body={
            "movie_results": [movie.model_dump()],
            "tv_results": [series.model_dump()],
        }
    )


# ---------------------------------------------------------------------------
# Route table
# ---------------------------------------------------------------------------

Handler = Callable[[FixtureRequest, dict[str, str]], FixtureResponse]


@dataclass(frozen=True)
class RouteMatch:
    """Outcome of matching a request against a route pattern."""

    matched: bool
    params: dict[str, str] = field(default_factory=dict)


NO_MATCH = RouteMatch(matched=False)


@dataclass(frozen=True)
class RoutePattern:
    """A method plus an anchored path regex with named groups."""

    name: str
    method: str
    pattern: re.Pattern[str]
    handler: Handler

    def match(self, method: str, path: str) -> RouteMatch:
        if method.upper() != self.method:
            return NO_MATCH
        found = self.pattern.fullmatch(path)
        if found is None:
            return NO_MATCH
        return RouteMatch(matched=True, params=found.groupdict())


ROUTES: list[RoutePattern] = [
    RoutePattern("chat_completions", "POST", re.compile(r"/v1/chat/completions"), _chat_completions),
    RoutePattern("configuration", "GET", re.compile(r"/3/configuration"), _configuration),
    RoutePattern("search_movie", "GET", re.compile(r"/3/search/movie"), _search_movie),
    RoutePattern("search_tv", "GET", re.compile(r"/3/search/tv"), _search_tv),
    RoutePattern("movie_details", "GET", re.compile(r"/3/movie/(?P<id>[0-9]+)"), _movie_details),
    RoutePattern("tv_details", "GET", re.compile(r"/3/tv/(?P<id>[0-9]+)"), _tv_details),
    RoutePattern("find", "GET", re.compile(r"/3/find/(?P<external_id>[a-z]{2}[0-9]+)"), _find),
]


def respond_to(request: FixtureRequest) -> FixtureResponse:
    """Produce the canned response for *request*.

    Unknown routes yield 404 ``{error, path}``; any handler failure
    (a malformed JSON body included) yields 500 ``{error}``.
    """
    for route in ROUTES:
        outcome = route.match(request.method, request.path)
        if not outcome.matched:
            continue
        try:
            return route.handler(request, outcome.params)
        except Exception as exc:
            logger.warning("Fixture route %s failed: %s", route.name, exc)
            return FixtureResponse(status_code=500, body={"error": str(exc)})
    return FixtureResponse(status_code=404, body={"error": "Not found", "path": request.path})
