"""Tests for the selection-driven detail pipeline, ratings and title leases."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from popcorn_browser.models import DEFAULT_TITLE, NOT_FOUND_MESSAGE
from popcorn_browser.omdb import MovieNotFoundError
from popcorn_browser.pipelines import DetailFetchPipeline, SearchFetchPipeline
from popcorn_browser.results import IDLE, LOADING, Failure, Idle, Success
from popcorn_browser.selection import SelectionController
from popcorn_browser.title import TitleSlot
from popcorn_browser.watched import WatchedList


class TestObserve:
    @pytest.mark.asyncio
    async def test_no_selection_is_idle_without_lookup(self) -> None:
        lookup = AsyncMock()
        pipeline = DetailFetchPipeline(lookup)

        assert pipeline.result == IDLE
        assert await pipeline.observe(None) == IDLE
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_selection_loads_detail(self, make_detail) -> None:
        detail = make_detail()
        states = []
        pipeline = DetailFetchPipeline(AsyncMock(return_value=detail), on_change=states.append)

        result = await pipeline.observe("tt1375666")

        assert result == Success(detail)
        assert pipeline.detail.runtime_minutes == 148
        assert pipeline.selected_id == "tt1375666"
        assert states == [LOADING, Success(detail)]

    @pytest.mark.asyncio
    async def test_same_selection_does_not_refetch(self, make_detail) -> None:
        lookup = AsyncMock(return_value=make_detail())
        pipeline = DetailFetchPipeline(lookup)

        await pipeline.observe("tt1375666")
        pipeline.set_user_rating(6)
        await pipeline.observe("tt1375666")

        lookup.assert_awaited_once()
        assert pipeline.user_rating == 6

    @pytest.mark.asyncio
    async def test_request_for_current_selection_needs_no_lookup(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")

        assert pipeline.request("tt1375666") is None
        assert pipeline.request(None) is None
        assert pipeline.result == IDLE

    @pytest.mark.asyncio
    async def test_not_found_becomes_failure(self) -> None:
        slot = TitleSlot()
        pipeline = DetailFetchPipeline(
            AsyncMock(side_effect=MovieNotFoundError("Incorrect IMDb ID.")), title_slot=slot
        )

        result = await pipeline.observe("tt0000000")

        assert result == Failure(NOT_FOUND_MESSAGE)
        assert pipeline.detail is None
        assert slot.value == DEFAULT_TITLE

    @pytest.mark.asyncio
    async def test_stale_detail_is_discarded(self, make_detail) -> None:
        first = make_detail(imdb_id="tt0000001", title="First")
        second = make_detail(imdb_id="tt0000002", title="Second")
        first_started = asyncio.Event()
        release_first = asyncio.Event()

        async def lookup(imdb_id: str):
            if imdb_id == "tt0000001":
                first_started.set()
                await release_first.wait()
                return first
            return second

        pipeline = DetailFetchPipeline(lookup)
        first_task = asyncio.create_task(pipeline.observe("tt0000001"))
        await first_started.wait()

        await pipeline.observe("tt0000002")
        release_first.set()
        await first_task

        assert pipeline.result == Success(second)
        assert pipeline.selected_id == "tt0000002"


class TestRating:
    @pytest.mark.asyncio
    async def test_counts_changes_to_non_neutral_values(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")

        pipeline.set_user_rating(5)
        pipeline.set_user_rating(7)
        pipeline.set_user_rating(7)
        pipeline.set_user_rating(0)
        pipeline.set_user_rating(9)

        assert pipeline.user_rating == 9
        assert pipeline.rating_decision_count == 3

    @pytest.mark.asyncio
    async def test_rating_resets_on_selection_change(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")
        pipeline.set_user_rating(8)

        await pipeline.observe("tt0816692")

        assert pipeline.user_rating == 0
        assert pipeline.rating_decision_count == 0

    @pytest.mark.asyncio
    async def test_rating_resets_on_close(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")
        pipeline.set_user_rating(8)

        pipeline.close()

        assert (pipeline.user_rating, pipeline.rating_decision_count) == (0, 0)
        assert isinstance(pipeline.result, Idle)

    @pytest.mark.parametrize("value", [-1, 11, 100])
    def test_out_of_range_rating_rejected(self, value) -> None:
        pipeline = DetailFetchPipeline(AsyncMock())
        with pytest.raises(ValueError):
            pipeline.set_user_rating(value)

    @pytest.mark.parametrize("value", [True, 7.5, "7"])
    def test_non_integer_rating_rejected(self, value) -> None:
        pipeline = DetailFetchPipeline(AsyncMock())
        with pytest.raises(TypeError):
            pipeline.set_user_rating(value)


class TestTitleLease:
    @pytest.mark.asyncio
    async def test_title_follows_loaded_detail_and_restores_on_close(self, make_detail) -> None:
        slot = TitleSlot()
        titles: list[str] = []
        slot.add_listener(titles.append)
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()), title_slot=slot)

        await pipeline.observe("tt1375666")
        assert slot.value == "Movie | Inception"

        pipeline.close()
        assert slot.value == DEFAULT_TITLE
        assert titles == ["Movie | Inception", DEFAULT_TITLE]

    @pytest.mark.asyncio
    async def test_close_before_fetch_completes_keeps_default(self, make_detail) -> None:
        slot = TitleSlot()
        started = asyncio.Event()
        release = asyncio.Event()

        async def lookup(imdb_id: str):
            started.set()
            await release.wait()
            return make_detail()

        pipeline = DetailFetchPipeline(lookup, title_slot=slot)
        task = asyncio.create_task(pipeline.observe("tt1375666"))
        await started.wait()

        pipeline.close()
        release.set()
        await task

        assert slot.value == DEFAULT_TITLE
        assert pipeline.result == IDLE

    @pytest.mark.asyncio
    async def test_close_before_requested_lookup_starts(self, make_detail) -> None:
        slot = TitleSlot()
        lookup = AsyncMock(return_value=make_detail())
        pipeline = DetailFetchPipeline(lookup, title_slot=slot)

        pending = pipeline.request("tt1375666")
        assert pipeline.selected_id == "tt1375666"
        pipeline.close()
        result = await pending

        assert result == IDLE
        assert pipeline.selected_id is None
        assert slot.value == DEFAULT_TITLE
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rapid_selection_changes_show_latest_title(self, make_detail) -> None:
        slot = TitleSlot()
        first_started = asyncio.Event()
        release_first = asyncio.Event()

        async def lookup(imdb_id: str):
            if imdb_id == "tt0000001":
                first_started.set()
                await release_first.wait()
                return make_detail(imdb_id=imdb_id, title="First")
            return make_detail(imdb_id=imdb_id, title="Second")

        pipeline = DetailFetchPipeline(lookup, title_slot=slot)
        first_task = asyncio.create_task(pipeline.observe("tt0000001"))
        await first_started.wait()
        await pipeline.observe("tt0000002")
        release_first.set()
        await first_task

        assert slot.value == "Movie | Second"
        pipeline.close()
        assert slot.value == DEFAULT_TITLE

    @pytest.mark.asyncio
    async def test_switching_selection_swaps_title(self, make_detail) -> None:
        slot = TitleSlot()
        titles: list[str] = []
        slot.add_listener(titles.append)

        async def lookup(imdb_id: str):
            return make_detail(imdb_id=imdb_id, title=imdb_id.upper())

        pipeline = DetailFetchPipeline(lookup, title_slot=slot)
        await pipeline.observe("tt1")
        await pipeline.observe("tt2")
        await pipeline.observe(None)

        assert titles == ["Movie | TT1", DEFAULT_TITLE, "Movie | TT2", DEFAULT_TITLE]

    @pytest.mark.asyncio
    async def test_custom_title_format(self, make_detail) -> None:
        slot = TitleSlot(default="Home")
        pipeline = DetailFetchPipeline(
            AsyncMock(return_value=make_detail()), title_slot=slot, title_format="{title}!"
        )

        await pipeline.observe("tt1375666")
        assert slot.value == "Inception!"
        pipeline.close()
        assert slot.value == "Home"


class TestBuildWatchedEntry:
    def test_requires_loaded_detail(self) -> None:
        pipeline = DetailFetchPipeline(AsyncMock())
        with pytest.raises(ValueError, match="No movie detail"):
            pipeline.build_watched_entry()

    @pytest.mark.asyncio
    async def test_requires_rating(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")
        with pytest.raises(ValueError, match="Rate the movie"):
            pipeline.build_watched_entry()

    @pytest.mark.asyncio
    async def test_entry_carries_detail_and_rating(self, make_detail) -> None:
        pipeline = DetailFetchPipeline(AsyncMock(return_value=make_detail()))
        await pipeline.observe("tt1375666")
        pipeline.set_user_rating(7)
        pipeline.set_user_rating(9)

        entry = pipeline.build_watched_entry()

        assert entry.imdb_id == "tt1375666"
        assert entry.imdb_rating == pytest.approx(8.8)
        assert entry.runtime_minutes == 148
        assert entry.user_rating == 9
        assert entry.rating_decision_count == 2


@pytest.mark.asyncio
async def test_search_select_rate_add_flow(make_summary, make_detail, memory_store) -> None:
    search = SearchFetchPipeline(AsyncMock(return_value=[make_summary()]))
    slot = TitleSlot()
    detail = DetailFetchPipeline(AsyncMock(return_value=make_detail()), title_slot=slot)
    watched = WatchedList(memory_store)
    watched.hydrate()
    pending: list[str | None] = []
    selection = SelectionController(on_change=pending.append)

    await search.observe("inception")
    selection.select(search.movies[0].imdb_id)
    await detail.observe(pending.pop())
    assert slot.value == "Movie | Inception"

    detail.set_user_rating(9)
    watched.append(detail.build_watched_entry())
    selection.close()
    await detail.observe(pending.pop())

    stats = watched.stats()
    assert stats.count == 1
    assert stats.avg_imdb_rating == pytest.approx(8.8)
    assert stats.avg_user_rating == pytest.approx(9.0)
    assert stats.avg_runtime == pytest.approx(148.0)
    assert slot.value == DEFAULT_TITLE
    assert isinstance(detail.result, Idle)

    reloaded = WatchedList(memory_store)
    reloaded.hydrate()
    assert [e.imdb_id for e in reloaded] == ["tt1375666"]
