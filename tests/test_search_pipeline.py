"""Tests for the query-driven search pipeline."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from popcorn_browser.models import FETCH_FAILED_MESSAGE, NOT_FOUND_MESSAGE, TIMEOUT_MESSAGE
from popcorn_browser.omdb import MalformedResponseError, MovieNotFoundError, OmdbError
from popcorn_browser.pipelines import SearchFetchPipeline, describe_fetch_error
from popcorn_browser.results import LOADING, Failure, Loading, Success


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://www.omdbapi.com/")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class TestShortQueries:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "a", "ab", "   ", "  ab  "])
    async def test_short_query_yields_empty_success_without_lookup(self, query) -> None:
        lookup = AsyncMock(return_value=[])
        pipeline = SearchFetchPipeline(lookup)

        result = await pipeline.observe(query)

        assert result == Success(())
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_query_is_stripped_before_lookup(self, make_summary) -> None:
        lookup = AsyncMock(return_value=[make_summary()])
        pipeline = SearchFetchPipeline(lookup)

        await pipeline.observe("  inception ")

        lookup.assert_awaited_once_with("inception")
        assert pipeline.query == "  inception "

    @pytest.mark.asyncio
    async def test_custom_minimum_length(self) -> None:
        lookup = AsyncMock(return_value=[])
        pipeline = SearchFetchPipeline(lookup, min_query_length=5)

        await pipeline.observe("abcd")
        lookup.assert_not_awaited()
        await pipeline.observe("abcde")
        lookup.assert_awaited_once_with("abcde")

    @pytest.mark.asyncio
    async def test_short_query_supersedes_inflight_search(self, make_summary) -> None:
        started = asyncio.Event()
        release = asyncio.Event()

        async def lookup(query: str):
            started.set()
            await release.wait()
            return [make_summary()]

        pipeline = SearchFetchPipeline(lookup)
        task = asyncio.create_task(pipeline.observe("inception"))
        await started.wait()

        result = await pipeline.observe("in")
        release.set()
        await task

        assert result == Success(())
        assert pipeline.result == Success(())
        assert not pipeline.in_flight


class TestResults:
    @pytest.mark.asyncio
    async def test_success_publishes_loading_then_movies(self, make_summary) -> None:
        movies = [make_summary(), make_summary(imdb_id="tt0816692", title="Interstellar")]
        states = []
        pipeline = SearchFetchPipeline(AsyncMock(return_value=movies), on_change=states.append)

        result = await pipeline.observe("nolan")

        assert states == [LOADING, Success(tuple(movies))]
        assert result == Success(tuple(movies))
        assert pipeline.movies == tuple(movies)

    def test_initial_state_is_empty_success(self) -> None:
        pipeline = SearchFetchPipeline(AsyncMock())
        assert pipeline.result == Success(())
        assert pipeline.movies == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("exc", "reason"),
        [
            (MovieNotFoundError("Movie not found!"), NOT_FOUND_MESSAGE),
            (OmdbError("Invalid API key!"), "Invalid API key!"),
            (MalformedResponseError("missing 'Search' list"), FETCH_FAILED_MESSAGE),
            (httpx.ConnectError("connection refused"), FETCH_FAILED_MESSAGE),
            (httpx.ReadTimeout("read timed out"), TIMEOUT_MESSAGE),
        ],
    )
    async def test_lookup_errors_become_failures(self, exc, reason) -> None:
        pipeline = SearchFetchPipeline(AsyncMock(side_effect=exc))

        result = await pipeline.observe("inception")

        assert result == Failure(reason)
        assert pipeline.movies == ()

    @pytest.mark.asyncio
    async def test_http_status_is_included_in_reason(self) -> None:
        pipeline = SearchFetchPipeline(AsyncMock(side_effect=_status_error(503)))

        result = await pipeline.observe("inception")

        assert result == Failure(f"{FETCH_FAILED_MESSAGE} (HTTP 503)")

    @pytest.mark.asyncio
    async def test_slow_lookup_times_out(self) -> None:
        async def lookup(query: str):
            await asyncio.sleep(5)
            return []

        pipeline = SearchFetchPipeline(lookup, timeout_seconds=0.01)

        result = await pipeline.observe("inception")

        assert result == Failure(TIMEOUT_MESSAGE)
        assert not pipeline.in_flight

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self, make_summary) -> None:
        lookup = AsyncMock(side_effect=[MovieNotFoundError("Movie not found!"), [make_summary()]])
        pipeline = SearchFetchPipeline(lookup)

        assert isinstance(await pipeline.observe("xyzzy"), Failure)
        assert await pipeline.observe("inception") == Success((make_summary(),))


class TestOutOfOrderResponses:
    @pytest.mark.asyncio
    async def test_older_slow_response_never_overwrites_newer(self, make_summary) -> None:
        batman = make_summary(imdb_id="tt0372784", title="Batman Begins")
        superman = make_summary(imdb_id="tt0078346", title="Superman")
        bat_started = asyncio.Event()
        release_bat = asyncio.Event()

        async def lookup(query: str):
            if query == "bat":
                bat_started.set()
                await release_bat.wait()
                return [batman]
            return [superman]

        states = []
        pipeline = SearchFetchPipeline(lookup, on_change=states.append)
        bat_task = asyncio.create_task(pipeline.observe("bat"))
        await bat_started.wait()

        result = await pipeline.observe("superman")
        release_bat.set()
        bat_result = await bat_task

        assert result == Success((superman,))
        assert bat_result in (LOADING, Success((superman,)))
        assert pipeline.result == Success((superman,))
        assert states == [LOADING, LOADING, Success((superman,))]

    @pytest.mark.asyncio
    async def test_lookup_ignoring_cancellation_is_still_discarded(self, make_summary) -> None:
        stale = make_summary(imdb_id="tt0000001", title="Stale")
        fresh = make_summary(imdb_id="tt0000002", title="Fresh")
        started = asyncio.Event()

        async def lookup(query: str):
            if query == "old query":
                started.set()
                try:
                    await asyncio.sleep(5)
                except asyncio.CancelledError:
                    return [stale]
            return [fresh]

        pipeline = SearchFetchPipeline(lookup)
        old_task = asyncio.create_task(pipeline.observe("old query"))
        await started.wait()

        await pipeline.observe("new query")
        await old_task

        assert pipeline.result == Success((fresh,))

    @pytest.mark.asyncio
    async def test_external_cancellation_propagates(self) -> None:
        started = asyncio.Event()

        async def lookup(query: str):
            started.set()
            await asyncio.sleep(5)
            return []

        pipeline = SearchFetchPipeline(lookup)
        task = asyncio.create_task(pipeline.observe("inception"))
        await started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not pipeline.in_flight

    @pytest.mark.asyncio
    async def test_cancel_abandons_inflight_lookup(self, make_summary) -> None:
        started = asyncio.Event()

        async def lookup(query: str):
            started.set()
            await asyncio.sleep(5)
            return [make_summary()]

        states = []
        pipeline = SearchFetchPipeline(lookup, on_change=states.append)
        task = asyncio.create_task(pipeline.observe("inception"))
        await started.wait()

        pipeline.cancel()
        await task

        assert states == [LOADING]
        assert isinstance(pipeline.result, Loading)
        assert not pipeline.in_flight


def test_describe_fetch_error_handles_builtin_timeout() -> None:
    assert describe_fetch_error(TimeoutError()) == TIMEOUT_MESSAGE


def test_describe_fetch_error_falls_back_for_unknown_errors() -> None:
    assert describe_fetch_error(OSError("disk")) == FETCH_FAILED_MESSAGE

