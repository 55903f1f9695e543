"""OMDb API client, response parsing and error types.

Provides async functions for searching movies by title and fetching a single
movie record by IMDb id. Unlike the pipelines built on top of them, these
functions raise: callers decide how failures are presented.
"""

from __future__ import annotations

__all__ = [
    "OMDB_API_URL",
    "MalformedResponseError",
    "MovieNotFoundError",
    "OmdbError",
    "fetch_movie_detail",
    "parse_detail_response",
    "parse_leading_number",
    "parse_search_response",
    "search_movies",
]

import logging
import math
import re
from typing import Any

import httpx

from popcorn_browser.models import DEFAULT_REQUEST_TIMEOUT_SECONDS, MovieDetail, MovieSummary

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

OMDB_API_URL = "https://www.omdbapi.com/"
OMDB_USER_AGENT = "popcorn-browser/0.1"
OMDB_NOT_FOUND_ERRORS = frozenset({"Movie not found!", "Incorrect IMDb ID."})

_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)")

# ============================================================================
# Errors
# ============================================================================


class OmdbError(Exception):
    """Base class for OMDb lookup failures that are not transport errors."""


class MovieNotFoundError(OmdbError):
    """OMDb answered successfully but found no matching movie."""


class MalformedResponseError(OmdbError):
    """OMDb answered with a payload that does not have the expected shape."""


# ============================================================================
# Response Parsing
# ============================================================================


def parse_leading_number(value: Any) -> float:
    """Return the leading numeric token of an OMDb value.

    ``"142 min"`` -> 142.0, ``"8.8"`` -> 8.8. Missing values such as
    ``"N/A"`` parse as 0.

    Raises:
        MalformedResponseError: the number is too large to be a finite float.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        token: int | float | str = value
    elif isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if match is None:
            return 0.0
        token = match.group(1)
    else:
        return 0.0
    try:
        number = float(token)
    except OverflowError:
        number = math.inf
    if not math.isfinite(number):
        raise MalformedResponseError(f"{type(value).__name__} value is not a finite number")
    return number


def _check_envelope(data: Any) -> dict[str, Any]:
    """Validate the common ``Response``/``Error`` envelope of OMDb payloads."""
    if not isinstance(data, dict):
        raise MalformedResponseError(f"expected a JSON object, got {type(data).__name__}")
    if data.get("Response") == "False":
        error = data.get("Error")
        if error in OMDB_NOT_FOUND_ERRORS:
            raise MovieNotFoundError(error)
        raise OmdbError(str(error or "OMDb reported an unknown error"))
    return data


def _require_str(record: dict[str, Any], key: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"missing or invalid field {key!r}")
    return value


def parse_search_response(data: Any) -> list[MovieSummary]:
    """Parse an OMDb ``?s=`` payload into summaries.

    Raises:
        MovieNotFoundError: the service reported no matches.
        MalformedResponseError: the payload is missing required fields.
        OmdbError: the service reported any other error.
    """
    payload = _check_envelope(data)
    raw_results = payload.get("Search")
    if not isinstance(raw_results, list):
        raise MalformedResponseError("missing 'Search' list")

    movies: list[MovieSummary] = []
    for raw in raw_results:
        if not isinstance(raw, dict):
            raise MalformedResponseError("search result is not an object")
        movies.append(
            MovieSummary(
                imdb_id=_require_str(raw, "imdbID"),
                title=_require_str(raw, "Title"),
                year=_require_str(raw, "Year"),
                poster_url=raw.get("Poster") if isinstance(raw.get("Poster"), str) else "",
            )
        )
    return movies


def parse_detail_response(data: Any) -> MovieDetail:
    """Parse an OMDb ``?i=`` payload into a MovieDetail.

    Numeric fields arrive as formatted strings and keep only their leading
    number. Text fields other than id and title default to empty strings.
    """
    payload = _check_envelope(data)

    def text(key: str) -> str:
        value = payload.get(key)
        return value if isinstance(value, str) else ""

    runtime_label = text("Runtime")
    return MovieDetail(
        imdb_id=_require_str(payload, "imdbID"),
        title=_require_str(payload, "Title"),
        year=text("Year"),
        poster_url=text("Poster"),
        runtime_minutes=int(parse_leading_number(runtime_label)),
        imdb_rating=parse_leading_number(payload.get("imdbRating")),
        plot=text("Plot"),
        released=text("Released"),
        actors=text("Actors"),
        director=text("Director"),
        genre=text("Genre"),
        runtime_label=runtime_label,
    )


# ============================================================================
# API Functions (async, accept httpx.AsyncClient)
# ============================================================================


async def _omdb_get(
    client: httpx.AsyncClient | None,
    params: dict[str, str],
    timeout: float,
) -> Any:
    """Send one GET to OMDb and decode the JSON body."""
    headers = {"User-Agent": OMDB_USER_AGENT}
    if client is not None:
        response = await client.get(OMDB_API_URL, params=params, headers=headers, timeout=timeout)
    else:
        async with httpx.AsyncClient() as tmp_client:
            response = await tmp_client.get(
                OMDB_API_URL, params=params, headers=headers, timeout=timeout
            )

    response.raise_for_status()
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponseError(f"response body is not JSON: {exc}") from exc


async def search_movies(
    *,
    client: httpx.AsyncClient | None,
    query: str,
    api_key: str,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> list[MovieSummary]:
    """Search OMDb by free-text title. Only the first page is returned."""
    data = await _omdb_get(client, {"apikey": api_key, "s": query}, timeout)
    movies = parse_search_response(data)
    logger.debug("OMDb search %r returned %d movies", query, len(movies))
    return movies


async def fetch_movie_detail(
    *,
    client: httpx.AsyncClient | None,
    imdb_id: str,
    api_key: str,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> MovieDetail:
    """Fetch the full OMDb record for one IMDb id."""
    data = await _omdb_get(client, {"apikey": api_key, "i": imdb_id}, timeout)
    return parse_detail_response(data)
