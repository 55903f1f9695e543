"""Data models and constants for the popcorn browser application."""

from __future__ import annotations

from dataclasses import dataclass

# Application identity: single source of truth for platformdirs paths
CONFIG_APP_NAME = "popcorn-browser"

# Search policy
MIN_QUERY_LENGTH = 3

# Display title shown while no movie detail is open
DEFAULT_TITLE = "usePopcorn"
DETAIL_TITLE_FORMAT = "Movie | {title}"

# User-facing failure copy
NOT_FOUND_MESSAGE = "Movie not found"
FETCH_FAILED_MESSAGE = "Something went wrong with fetching movies"
TIMEOUT_MESSAGE = "Request timed out"

# Request limits
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10
MAX_REQUEST_TIMEOUT_SECONDS = 60

# Rating scale (0 means "not rated yet")
NEUTRAL_RATING = 0
MAX_USER_RATING = 10

# Durable storage key for the watched list snapshot
WATCHED_STORAGE_KEY = "watched"


@dataclass(frozen=True, slots=True)
class MovieSummary:
    """A single search hit."""

    imdb_id: str
    title: str
    year: str
    poster_url: str


@dataclass(frozen=True, slots=True)
class MovieDetail:
    """Full record for one movie, fetched per selection."""

    imdb_id: str
    title: str
    year: str
    poster_url: str
    runtime_minutes: int
    imdb_rating: float
    plot: str
    released: str
    actors: str
    director: str
    genre: str
    runtime_label: str = ""  # Raw runtime text as reported upstream, e.g. "148 min"


@dataclass(frozen=True, slots=True)
class WatchedEntry:
    """A movie the user watched and rated."""

    imdb_id: str
    title: str
    year: str
    poster_url: str
    imdb_rating: float
    runtime_minutes: int
    user_rating: int
    rating_decision_count: int = 0


@dataclass(frozen=True, slots=True)
class WatchedStats:
    """Aggregates derived from the watched list."""

    count: int
    avg_imdb_rating: float
    avg_user_rating: float
    avg_runtime: float


@dataclass(slots=True)
class UserConfig:
    """User configuration persisted between sessions."""

    api_key: str = ""
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    min_query_length: int = MIN_QUERY_LENGTH
    version: int = 1


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "DEFAULT_TITLE",
    "DETAIL_TITLE_FORMAT",
    "FETCH_FAILED_MESSAGE",
    "MAX_REQUEST_TIMEOUT_SECONDS",
    "MAX_USER_RATING",
    "MIN_QUERY_LENGTH",
    "NEUTRAL_RATING",
    "NOT_FOUND_MESSAGE",
    "TIMEOUT_MESSAGE",
    "WATCHED_STORAGE_KEY",
    "MovieDetail",
    "MovieSummary",
    "UserConfig",
    "WatchedEntry",
    "WatchedStats",
]
