"""Widget classes and render helpers for modular UI composition."""

from popcorn_browser.widgets.details import (
    MovieDetails,
    WatchedSummary,
    render_detail_markup,
    render_result_markup,
    render_summary_markup,
)
from popcorn_browser.widgets.listing import (
    render_movie_option,
    render_watched_option,
    set_ascii_icons,
)

__all__ = [
    "MovieDetails",
    "WatchedSummary",
    "render_detail_markup",
    "render_movie_option",
    "render_result_markup",
    "render_summary_markup",
    "render_watched_option",
    "set_ascii_icons",
]
