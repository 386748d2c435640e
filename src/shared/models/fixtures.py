"""Pydantic v2 models for fixture requests, responses and entity templates."""
from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from src.shared.errors import MalformedRequestError


class FixtureRequest(BaseModel):
    """A logical inbound request, one per connection."""
    method: str
    path: str
    query_params: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    model_config = {"frozen": True}

    def query(self, name: str) -> str:
        """Return a query parameter, or ``""`` when it is absent."""
        return self.query_params.get(name, "")

    def json_body(self) -> Any:
        """Decode the body as JSON; an empty body is an empty object.

        Raises:
            MalformedRequestError: If the body is not valid JSON.
        """
        if not self.body:
            return {}
        try:
            return json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedRequestError(str(exc)) from exc


class FixtureResponse(BaseModel):
    """Status code plus JSON document produced for a ``FixtureRequest``."""
    status_code: int = 200
    body: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class MovieResult(BaseModel):
    """Movie entity as returned by the metadata provider."""
    id: int
    title: str
    release_date: str
    poster_path: str = "/poster.jpg"
    backdrop_path: str = "/backdrop.jpg"
    vote_average: float = 8.2
    genre_ids: list[int] = Field(default_factory=lambda: [28, 878])
    overview: str
    imdb_id: str


class SeriesResult(BaseModel):
    """Series entity as returned by the metadata provider."""
    id: int
    name: str
    first_air_date: str
    poster_path: str = "/poster.jpg"
    backdrop_path: str = "/backdrop.jpg"
    vote_average: float = 8.0
    genre_ids: list[int] = Field(default_factory=lambda: [10759, 18])
    overview: str
    imdb_id: str


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: str


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion envelope."""
    id: str = "chatcmpl_mock"
    object: str = "chat.completion"
    created: int
    model: str = "mock"
    choices: list[ChatChoice]
