"""Shared test fixtures for popcorn browser tests."""

from __future__ import annotations

import logging

import pytest

from popcorn_browser.models import MovieDetail, MovieSummary, WatchedEntry
from popcorn_browser.storage import MemoryStore
from popcorn_browser.watched import WatchedList
from popcorn_browser.widgets.listing import set_ascii_icons

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Restore icon set and logging after each test.

    PopcornBrowser.__init__ switches the module-level icon set and
    cli._configure_logging disables logging globally.
    """
    yield
    set_ascii_icons(False)
    logging.disable(logging.NOTSET)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_summary():
    """Factory fixture for creating MovieSummary instances."""

    def _make(
        imdb_id: str = "tt1375666",
        title: str = "Inception",
        year: str = "2010",
        poster_url: str = "https://example.com/inception.jpg",
    ) -> MovieSummary:
        return MovieSummary(imdb_id=imdb_id, title=title, year=year, poster_url=poster_url)

    return _make


@pytest.fixture
def make_detail():
    """Factory fixture for creating MovieDetail instances with sensible defaults."""

    def _make(
        imdb_id: str = "tt1375666",
        title: str = "Inception",
        year: str = "2010",
        poster_url: str = "https://example.com/inception.jpg",
        runtime_minutes: int = 148,
        imdb_rating: float = 8.8,
        plot: str = "A thief who steals corporate secrets through dreams.",
        released: str = "16 Jul 2010",
        actors: str = "Leonardo DiCaprio, Joseph Gordon-Levitt",
        director: str = "Christopher Nolan",
        genre: str = "Action, Sci-Fi",
        runtime_label: str = "148 min",
    ) -> MovieDetail:
        return MovieDetail(
            imdb_id=imdb_id,
            title=title,
            year=year,
            poster_url=poster_url,
            runtime_minutes=runtime_minutes,
            imdb_rating=imdb_rating,
            plot=plot,
            released=released,
            actors=actors,
            director=director,
            genre=genre,
            runtime_label=runtime_label,
        )

    return _make


@pytest.fixture
def make_entry():
    """Factory fixture for creating WatchedEntry instances."""

    def _make(
        imdb_id: str = "tt1375666",
        title: str = "Inception",
        year: str = "2010",
        poster_url: str = "",
        imdb_rating: float = 8.8,
        runtime_minutes: int = 148,
        user_rating: int = 9,
        rating_decision_count: int = 1,
    ) -> WatchedEntry:
        return WatchedEntry(
            imdb_id=imdb_id,
            title=title,
            year=year,
            poster_url=poster_url,
            imdb_rating=imdb_rating,
            runtime_minutes=runtime_minutes,
            user_rating=user_rating,
            rating_decision_count=rating_decision_count,
        )

    return _make


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def watched_list(memory_store) -> WatchedList:
    return WatchedList(memory_store)
