"""Textual front end wiring the fetch pipelines and the watched list together.

The app owns no fetch state of its own. It forwards the search box text to
the SearchFetchPipeline, list clicks to the SelectionController, and renders
whatever FetchResult the pipelines publish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.events import Key
from textual.timer import Timer
from textual.widgets import Footer, Header, Input, Label, OptionList
from textual.widgets.option_list import Option

from popcorn_browser.action_messages import (
    build_actionable_error,
    build_added_notification,
    build_removed_notification,
    build_results_count_label,
)
from popcorn_browser.keys import KeyBinding, KeyPressStream
from popcorn_browser.models import DEFAULT_TITLE, MovieDetail, MovieSummary, UserConfig
from popcorn_browser.pipelines import DetailFetchPipeline, SearchFetchPipeline
from popcorn_browser.results import Failure, FetchResult, Loading, Success
from popcorn_browser.selection import SelectionController
from popcorn_browser.services import AppServices, build_default_app_services
from popcorn_browser.storage import JsonFileStore
from popcorn_browser.title import TitleSlot
from popcorn_browser.ui_constants import (
    APP_BINDINGS,
    APP_CSS,
    CLOSE_DETAIL_KEY,
    FOCUS_SEARCH_KEY,
)
from popcorn_browser.watched import (
    DuplicateWatchedEntryError,
    WatchedList,
    WatchedListStorageError,
)
from popcorn_browser.widgets import (
    MovieDetails,
    WatchedSummary,
    render_movie_option,
    render_watched_option,
    set_ascii_icons,
)
from popcorn_browser.widgets.listing import escape_rich_text

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_DELAY = 0.3  # seconds


class PopcornBrowser(App):
    """A TUI application to search movies and keep a watched list."""

    TITLE = DEFAULT_TITLE

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        config: UserConfig | None = None,
        watched: WatchedList | None = None,
        services: AppServices | None = None,
        initial_query: str = "",
        ascii_icons: bool = False,
        search_debounce: float = SEARCH_DEBOUNCE_DELAY,
    ) -> None:
        super().__init__()
        self._config = config or UserConfig()
        self._services: AppServices = services or build_default_app_services()
        self._watched_list = watched if watched is not None else WatchedList(JsonFileStore())
        self._initial_query = initial_query
        self._search_debounce = search_debounce
        self._search_timer: Timer | None = None
        self._pending_query: str = ""

        # Shared HTTP client for connection pooling (created in on_mount)
        self._http_client: httpx.AsyncClient | None = None

        # Background task tracking (prevent GC of fire-and-forget tasks)
        self._background_tasks: set[asyncio.Task[Any]] = set()

        # Process-wide display title, mirrored into App.title
        self._title_slot = TitleSlot(DEFAULT_TITLE)
        self._title_slot.add_listener(self._apply_display_title)

        # Global key stream fed from on_key
        self._key_stream = KeyPressStream()
        self._focus_search_binding = KeyBinding(self._key_stream)
        self._close_detail_binding = KeyBinding(self._key_stream)

        self._selection_controller = SelectionController(on_change=self._on_selection_changed)
        self._search_pipeline = SearchFetchPipeline(
            self._lookup_movies,
            min_query_length=self._config.min_query_length,
            timeout_seconds=self._config.request_timeout_seconds,
            on_change=self._on_search_result,
        )
        self._detail_pipeline = DetailFetchPipeline(
            self._lookup_detail,
            title_slot=self._title_slot,
            timeout_seconds=self._config.request_timeout_seconds,
            on_change=self._on_detail_result,
        )

        set_ascii_icons(ascii_icons)

    def _get_services(self) -> AppServices:
        return self._services

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-container"):
            with Vertical(id="left-pane"):
                yield Input(placeholder="Search movies...", id="search-input")
                yield Label(build_results_count_label(0), id="results-count")
                yield OptionList(id="movie-list")
            with Vertical(id="right-pane"):
                with VerticalScroll(id="details-scroll", classes="collapsed"):
                    yield MovieDetails(id="movie-details")
                with Vertical(id="watched-pane"):
                    yield WatchedSummary(id="watched-summary")
                    yield OptionList(id="watched-list")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted. Hydrates the watched list."""
        self._http_client = httpx.AsyncClient()

        self._watched_list.hydrate()
        self._refresh_watched()

        self._focus_search_binding.bind(FOCUS_SEARCH_KEY, self._focus_search)

        if self._initial_query:
            self._get_search_input().value = self._initial_query
        logger.debug("App mounted: %d watched movies", len(self._watched_list))

    async def on_unmount(self) -> None:
        """Called when app is unmounted. Cancels lookups and restores the title."""
        timer = self._search_timer
        self._search_timer = None
        if timer is not None:
            timer.stop()

        self._search_pipeline.cancel()
        self._detail_pipeline.close()
        self._focus_search_binding.unbind()
        self._close_detail_binding.unbind()

        # Cancel tracked background tasks to avoid leaks during teardown.
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

        # Close shared HTTP client
        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    def _track_task(self, coro: Any) -> asyncio.Task[Any]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[Any]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ========================================================================
    # Lookups
    # ========================================================================

    async def _lookup_movies(self, query: str) -> list[MovieSummary]:
        return await self._get_services().movies.search_movies(
            client=self._http_client,
            query=query,
            api_key=self._config.api_key,
            timeout_seconds=self._config.request_timeout_seconds,
        )

    async def _lookup_detail(self, imdb_id: str) -> MovieDetail:
        return await self._get_services().movies.fetch_movie_detail(
            client=self._http_client,
            imdb_id=imdb_id,
            api_key=self._config.api_key,
            timeout_seconds=self._config.request_timeout_seconds,
        )

    # ========================================================================
    # Widget accessors
    # ========================================================================

    def _get_search_input(self) -> Input:
        return self.query_one("#search-input", Input)

    def _get_movie_list(self) -> OptionList:
        return self.query_one("#movie-list", OptionList)

    def _get_watched_list(self) -> OptionList:
        return self.query_one("#watched-list", OptionList)

    def _get_movie_details(self) -> MovieDetails:
        return self.query_one("#movie-details", MovieDetails)

    # ========================================================================
    # Search
    # ========================================================================

    @on(Input.Changed, "#search-input")
    def on_search_changed(self, event: Input.Changed) -> None:
        """Handle search input change with debouncing.

        Uses atomic swap pattern to avoid race conditions with timer callbacks.
        """
        self._pending_query = event.value
        old_timer = self._search_timer
        self._search_timer = None
        if old_timer is not None:
            old_timer.stop()
        if self._search_debounce <= 0:
            self._debounced_search()
            return
        self._search_timer = self.set_timer(self._search_debounce, self._debounced_search)

    def _debounced_search(self) -> None:
        """Run the search pipeline after the debounce delay."""
        self._search_timer = None
        self._track_task(self._search_pipeline.observe(self._pending_query))

    def _on_search_result(self, result: FetchResult) -> None:
        try:
            option_list = self._get_movie_list()
            count_label = self.query_one("#results-count", Label)
        except NoMatches:
            return
        option_list.clear_options()
        shown = 0
        if isinstance(result, Loading):
            option_list.add_option(Option("[italic]Loading...[/]", disabled=True))
        elif isinstance(result, Failure):
            option_list.add_option(
                Option(f"[red]⛔ {escape_rich_text(result.reason)}[/]", disabled=True)
            )
        elif isinstance(result, Success):
            seen: set[str] = set()
            options = []
            for movie in result.value:
                # OMDb occasionally repeats an id within one page.
                if movie.imdb_id in seen:
                    continue
                seen.add(movie.imdb_id)
                options.append(
                    Option(
                        render_movie_option(
                            movie, watched=movie.imdb_id in self._watched_list
                        ),
                        id=movie.imdb_id,
                    )
                )
            option_list.add_options(options)
            shown = len(options)
        count_label.update(build_results_count_label(shown))

    def _focus_search(self) -> None:
        """Focus the search box and clear it, unless it already has focus."""
        search_input = self._get_search_input()
        if search_input.has_focus:
            return
        search_input.focus()
        search_input.value = ""

    def action_focus_search(self) -> None:
        self._focus_search()

    # ========================================================================
    # Selection and details
    # ========================================================================

    @on(OptionList.OptionSelected, "#movie-list")
    def on_movie_selected(self, event: OptionList.OptionSelected) -> None:
        """Toggle the detail view for the chosen movie."""
        option_id = event.option.id
        if option_id is not None:
            self._selection_controller.select(option_id)

    def _on_selection_changed(self, imdb_id: str | None) -> None:
        if imdb_id is None:
            self._detail_pipeline.close()
            self._close_detail_binding.unbind()
        else:
            self._close_detail_binding.bind(CLOSE_DETAIL_KEY, self._selection_controller.close)
            pending = self._detail_pipeline.request(imdb_id)
            if pending is not None:
                self._track_task(pending)
        self._show_detail_pane(imdb_id is not None)

    def _show_detail_pane(self, visible: bool) -> None:
        try:
            details_scroll = self.query_one("#details-scroll", VerticalScroll)
            watched_pane = self.query_one("#watched-pane", Vertical)
        except NoMatches:
            return
        details_scroll.set_class(not visible, "collapsed")
        watched_pane.set_class(visible, "collapsed")

    def _on_detail_result(self, result: FetchResult) -> None:
        self._refresh_detail(result)

    def _refresh_detail(self, result: FetchResult | None = None) -> None:
        try:
            details = self._get_movie_details()
        except NoMatches:
            return
        selected = self._detail_pipeline.selected_id
        entry = self._watched_list.get(selected) if selected is not None else None
        details.update_result(
            result if result is not None else self._detail_pipeline.result,
            user_rating=self._detail_pipeline.user_rating,
            watched_rating=entry.user_rating if entry is not None else None,
        )

    def action_rate(self, rating: int) -> None:
        """Set the user's rating for the open movie."""
        selected = self._detail_pipeline.selected_id
        if self._detail_pipeline.detail is None or selected is None:
            return
        if selected in self._watched_list:
            return
        self._detail_pipeline.set_user_rating(rating)
        self._refresh_detail()

    def action_add_watched(self) -> None:
        """Add the open movie with the current rating to the watched list."""
        try:
            entry = self._detail_pipeline.build_watched_entry()
        except ValueError as exc:
            self.notify(str(exc), title="Watched", severity="warning")
            return
        try:
            self._watched_list.append(entry)
        except DuplicateWatchedEntryError:
            self.notify(f"{entry.title} is already in your list", title="Watched")
            return
        except WatchedListStorageError as exc:
            self.notify(
                build_actionable_error(
                    "save your watched list",
                    why=str(exc),
                    next_step="check disk space and permissions, then press a again",
                ),
                title="Watched",
                severity="error",
                timeout=8,
            )
            return
        self.notify(build_added_notification(entry.title, entry.user_rating), title="Watched")
        self._refresh_watched()
        self._selection_controller.close()

    # ========================================================================
    # Watched list
    # ========================================================================

    def _refresh_watched(self) -> None:
        try:
            summary = self.query_one("#watched-summary", WatchedSummary)
            option_list = self._get_watched_list()
        except NoMatches:
            return
        summary.update_stats(self._watched_list.stats())
        option_list.clear_options()
        option_list.add_options(
            [
                Option(render_watched_option(entry), id=entry.imdb_id)
                for entry in self._watched_list
            ]
        )

    def action_delete_watched(self) -> None:
        """Delete the highlighted watched entry."""
        option_list = self._get_watched_list()
        index = option_list.highlighted
        if index is None or not option_list.has_focus:
            return
        imdb_id = option_list.get_option_at_index(index).id
        if imdb_id is None:
            return
        entry = self._watched_list.get(imdb_id)
        try:
            self._watched_list.remove(imdb_id)
        except WatchedListStorageError as exc:
            self.notify(
                build_actionable_error(
                    "update your watched list",
                    why=str(exc),
                    next_step="check disk space and permissions, then retry",
                ),
                title="Watched",
                severity="error",
                timeout=8,
            )
            return
        if entry is not None:
            self.notify(build_removed_notification(entry.title), title="Watched")
        self._refresh_watched()

    # ========================================================================
    # Panes, title and keys
    # ========================================================================

    def action_toggle_results_pane(self) -> None:
        self._get_movie_list().toggle_class("collapsed")

    def action_toggle_right_pane(self) -> None:
        self.query_one("#right-pane", Vertical).toggle_class("collapsed")

    def _apply_display_title(self, title: str) -> None:
        self.title = title

    def on_key(self, event: Key) -> None:
        """Forward unhandled key presses to the global key stream."""
        if self._key_stream.dispatch(event.key):
            event.prevent_default()
            event.stop()


__all__ = [
    "SEARCH_DEBOUNCE_DELAY",
    "PopcornBrowser",
]
