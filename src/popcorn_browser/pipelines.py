"""Query- and selection-driven fetch pipelines.

Both pipelines follow the same request-token discipline: every call to
``observe`` bumps a generation counter and cancels the previous in-flight
lookup. A lookup's outcome is applied only if its generation is still the
current one when it finishes, so a slow response for an old query can never
overwrite the result of a newer one, even when the lookup ignores
cancellation.

Fetch errors never escape ``observe``; they become ``Failure`` results.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Generic, TypeVar

import httpx

from popcorn_browser.models import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DETAIL_TITLE_FORMAT,
    FETCH_FAILED_MESSAGE,
    MAX_USER_RATING,
    MIN_QUERY_LENGTH,
    NEUTRAL_RATING,
    NOT_FOUND_MESSAGE,
    TIMEOUT_MESSAGE,
    MovieDetail,
    MovieSummary,
    WatchedEntry,
)
from popcorn_browser.omdb import MalformedResponseError, MovieNotFoundError, OmdbError
from popcorn_browser.results import IDLE, LOADING, Failure, FetchResult, Idle, Success
from popcorn_browser.title import TitleLease, TitleSlot

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V")

ResultListener = Callable[[FetchResult], None]
SearchLookup = Callable[[str], Awaitable[list[MovieSummary]]]
DetailLookup = Callable[[str], Awaitable[MovieDetail]]


def describe_fetch_error(exc: BaseException) -> str:
    """Map a lookup exception to user-facing failure copy."""
    if isinstance(exc, MovieNotFoundError):
        return NOT_FOUND_MESSAGE
    if isinstance(exc, MalformedResponseError):
        logger.warning("Malformed OMDb response: %s", exc)
        return FETCH_FAILED_MESSAGE
    if isinstance(exc, OmdbError):
        return str(exc) or FETCH_FAILED_MESSAGE
    if isinstance(exc, httpx.TimeoutException | TimeoutError):
        return TIMEOUT_MESSAGE
    if isinstance(exc, httpx.HTTPStatusError):
        return f"{FETCH_FAILED_MESSAGE} (HTTP {exc.response.status_code})"
    logger.warning("Movie lookup failed: %s", exc, exc_info=exc)
    return FETCH_FAILED_MESSAGE


class _FetchPipeline(Generic[T, V]):
    """Shared generation-token state machine.

    ``T`` is the value type of successful results, ``V`` the raw type the
    lookup returns.
    """

    label = "fetch"

    def __init__(
        self,
        lookup: Callable[[str], Awaitable[V]],
        *,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        on_change: ResultListener | None = None,
        initial: FetchResult = IDLE,
    ) -> None:
        self._lookup = lookup
        self._timeout_seconds = timeout_seconds
        self._on_change = on_change
        self._generation = 0
        self._inflight: asyncio.Future[V] | None = None
        self._result: FetchResult = initial

    @property
    def result(self) -> FetchResult:
        return self._result

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def _convert(self, raw: V) -> T:
        return raw  # type: ignore[return-value]

    def _on_applied(self, result: FetchResult) -> None:
        """Hook run after a result becomes current."""

    def _begin(self) -> int:
        """Start a new generation and cancel the previous lookup."""
        self._generation += 1
        self._cancel_inflight()
        return self._generation

    def _cancel_inflight(self) -> None:
        task = self._inflight
        self._inflight = None
        if task is not None and not task.done():
            task.cancel()

    def _apply(self, token: int, result: FetchResult) -> bool:
        if token != self._generation:
            logger.debug(
                "Discarding stale %s result (generation %d, current %d)",
                self.label,
                token,
                self._generation,
            )
            return False
        self._result = result
        self._on_applied(result)
        if self._on_change is not None:
            self._on_change(result)
        return True

    async def _run(self, token: int, key: str) -> FetchResult:
        """Look up ``key`` under ``token`` and apply the outcome if still current."""
        if token != self._generation:
            return self._result
        self._apply(token, LOADING)
        task = asyncio.ensure_future(self._lookup(key))
        self._inflight = task
        outcome: FetchResult
        try:
            raw = await asyncio.wait_for(task, timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            if token != self._generation:
                logger.debug("%s lookup for %r superseded", self.label, key)
                return self._result
            outcome = Failure(FETCH_FAILED_MESSAGE)
        except (OmdbError, httpx.HTTPError, OSError, ValueError) as exc:
            # TimeoutError is an OSError subclass.
            outcome = Failure(describe_fetch_error(exc))
        else:
            outcome = Success(self._convert(raw))
        finally:
            if self._inflight is task:
                self._inflight = None

        self._apply(token, outcome)
        return self._result

    def cancel(self) -> None:
        """Abandon any in-flight lookup without changing the current result."""
        self._generation += 1
        self._cancel_inflight()


class SearchFetchPipeline(_FetchPipeline[tuple[MovieSummary, ...], list[MovieSummary]]):
    """Turns the search box text into a list of movie summaries.

    Queries shorter than ``min_query_length`` (ignoring surrounding
    whitespace) resolve to an empty success without touching the network.
    """

    label = "search"

    def __init__(
        self,
        search: SearchLookup,
        *,
        min_query_length: int = MIN_QUERY_LENGTH,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        on_change: ResultListener | None = None,
    ) -> None:
        super().__init__(
            search,
            timeout_seconds=timeout_seconds,
            on_change=on_change,
            initial=Success(()),
        )
        self._min_query_length = max(1, min_query_length)
        self._query = ""

    @property
    def query(self) -> str:
        return self._query

    @property
    def movies(self) -> tuple[MovieSummary, ...]:
        """Movies of the current result; empty unless it is a success."""
        if isinstance(self._result, Success):
            return self._result.value
        return ()

    def _convert(self, raw: list[MovieSummary]) -> tuple[MovieSummary, ...]:
        return tuple(raw)

    async def observe(self, query: str) -> FetchResult:
        """Re-evaluate for a new query and return the resulting state.

        If a newer query supersedes this one before its lookup finishes, this
        lookup's outcome is dropped and the call returns whatever state the
        pipeline holds at that moment, which may still be ``Loading``.
        """
        token = self._begin()
        self._query = query
        normalized = query.strip()
        if len(normalized) < self._min_query_length:
            self._apply(token, Success(()))
            return self._result
        return await self._run(token, normalized)


class DetailFetchPipeline(_FetchPipeline[MovieDetail, MovieDetail]):
    """Fetches the detail record for the selected movie.

    Besides the fetch state it owns the per-selection user rating, the count
    of rating decisions, and the display-title lease shown while a detail is
    loaded.
    """

    label = "detail"

    def __init__(
        self,
        fetch_detail: DetailLookup,
        *,
        title_slot: TitleSlot | None = None,
        title_format: str = DETAIL_TITLE_FORMAT,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        on_change: ResultListener | None = None,
    ) -> None:
        super().__init__(fetch_detail, timeout_seconds=timeout_seconds, on_change=on_change)
        self._title_slot = title_slot
        self._title_format = title_format
        self._title_lease: TitleLease | None = None
        self._selected_id: str | None = None
        self._user_rating = NEUTRAL_RATING
        self._rating_decisions = 0

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def detail(self) -> MovieDetail | None:
        if isinstance(self._result, Success):
            return self._result.value
        return None

    @property
    def user_rating(self) -> int:
        return self._user_rating

    @property
    def rating_decision_count(self) -> int:
        return self._rating_decisions

    def request(self, selected_id: str | None) -> Coroutine[None, None, FetchResult] | None:
        """Record a new selection now and return the lookup to run for it.

        Selection state changes before this returns, so a ``close()`` that
        follows before the lookup starts still wins. Returns None when nothing
        needs fetching.
        """
        if selected_id == self._selected_id and selected_id is not None:
            return None
        token = self._begin()
        self._selected_id = selected_id
        self._reset_rating()
        self._release_title()
        if selected_id is None:
            self._apply(token, IDLE)
            return None
        return self._run(token, selected_id)

    async def observe(self, selected_id: str | None) -> FetchResult:
        """Re-evaluate for a new selection and return the resulting state.

        Observing the id that is already selected keeps the current state.
        """
        pending = self.request(selected_id)
        if pending is None:
            return self._result
        return await pending

    def close(self) -> None:
        """Tear down the detail view: drop the lookup and restore the title."""
        self._generation += 1
        self._cancel_inflight()
        self._selected_id = None
        self._reset_rating()
        self._release_title()
        if not isinstance(self._result, Idle):
            self._apply(self._generation, IDLE)

    def set_user_rating(self, rating: int) -> None:
        """Record the user's rating for the current selection.

        Every change to a non-neutral value counts as one rating decision.
        """
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise TypeError(f"rating must be an int, got {type(rating).__name__}")
        if not NEUTRAL_RATING <= rating <= MAX_USER_RATING:
            raise ValueError(f"rating must be between {NEUTRAL_RATING} and {MAX_USER_RATING}")
        if rating == self._user_rating:
            return
        self._user_rating = rating
        if rating != NEUTRAL_RATING:
            self._rating_decisions += 1

    def build_watched_entry(self) -> WatchedEntry:
        """Build the watched-list entry for the loaded detail and current rating.

        Raises:
            ValueError: no detail is loaded or the movie has not been rated.
        """
        detail = self.detail
        if detail is None:
            raise ValueError("No movie detail is loaded")
        if self._user_rating == NEUTRAL_RATING:
            raise ValueError("Rate the movie before adding it to the watched list")
        return WatchedEntry(
            imdb_id=detail.imdb_id,
            title=detail.title,
            year=detail.year,
            poster_url=detail.poster_url,
            imdb_rating=detail.imdb_rating,
            runtime_minutes=detail.runtime_minutes,
            user_rating=self._user_rating,
            rating_decision_count=self._rating_decisions,
        )

    def _on_applied(self, result: FetchResult) -> None:
        if isinstance(result, Success) and result.value.title:
            self._show_title(result.value.title)

    def _reset_rating(self) -> None:
        self._user_rating = NEUTRAL_RATING
        self._rating_decisions = 0

    def _show_title(self, title: str) -> None:
        if self._title_slot is None:
            return
        self._release_title()
        self._title_lease = self._title_slot.lease(self._title_format.format(title=title))

    def _release_title(self) -> None:
        lease = self._title_lease
        self._title_lease = None
        if lease is not None:
            lease.release()


__all__ = [
    "DetailFetchPipeline",
    "SearchFetchPipeline",
    "describe_fetch_error",
]
