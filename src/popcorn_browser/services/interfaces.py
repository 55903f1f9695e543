"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from popcorn_browser import omdb as _omdb
from popcorn_browser.models import MovieDetail, MovieSummary


@runtime_checkable
class MovieApiService(Protocol):
    """Interface for movie catalog lookups."""

    async def search_movies(
        self,
        *,
        client: httpx.AsyncClient | None,
        query: str,
        api_key: str,
        timeout_seconds: float,
    ) -> list[MovieSummary]:
        """Search the catalog by free-text title."""
        ...

    async def fetch_movie_detail(
        self,
        *,
        client: httpx.AsyncClient | None,
        imdb_id: str,
        api_key: str,
        timeout_seconds: float,
    ) -> MovieDetail:
        """Fetch the full record of one movie."""
        ...


class DefaultMovieApiService:
    """Default adapter that delegates to the function-based OMDb client."""

    async def search_movies(
        self,
        *,
        client: httpx.AsyncClient | None,
        query: str,
        api_key: str,
        timeout_seconds: float,
    ) -> list[MovieSummary]:
        return await _omdb.search_movies(
            client=client,
            query=query,
            api_key=api_key,
            timeout=timeout_seconds,
        )

    async def fetch_movie_detail(
        self,
        *,
        client: httpx.AsyncClient | None,
        imdb_id: str,
        api_key: str,
        timeout_seconds: float,
    ) -> MovieDetail:
        return await _omdb.fetch_movie_detail(
            client=client,
            imdb_id=imdb_id,
            api_key=api_key,
            timeout=timeout_seconds,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    movies: MovieApiService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the OMDb client module."""
    return AppServices(movies=DefaultMovieApiService())


__all__ = [
    "AppServices",
    "DefaultMovieApiService",
    "MovieApiService",
    "build_default_app_services",
]
