"""List rendering helpers for search results and watched entries."""

from __future__ import annotations

from rich.markup import escape as escape_markup

from popcorn_browser.models import MovieSummary, WatchedEntry

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "year": "🗓",
        "imdb": "⭐",
        "user": "🌟",
        "runtime": "⏳",
        "count": "#️⃣",
        "watched": "✓",
    },
    "ascii": {
        "year": "Y",
        "imdb": "*",
        "user": "+",
        "runtime": "t",
        "count": "#",
        "watched": "v",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]


def set_ascii_icons(enabled: bool) -> None:
    """Switch list indicators between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def icon(name: str) -> str:
    return _ACTIVE_ICON_SET[name]


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def format_minutes(minutes: float) -> str:
    """Render a runtime; whole numbers drop their decimals."""
    if float(minutes).is_integer():
        return f"{int(minutes)} min"
    return f"{minutes:.1f} min"


def render_movie_option(movie: MovieSummary, *, watched: bool = False) -> str:
    """Render a search hit as Rich markup for OptionList display."""
    title = f"[bold]{escape_rich_text(movie.title)}[/]"
    if watched:
        title = f"{title} [green]{icon('watched')}[/]"
    return f"{title}\n[dim]{icon('year')} {escape_rich_text(movie.year)}[/]"


def render_watched_option(entry: WatchedEntry) -> str:
    """Render a watched entry as Rich markup for OptionList display."""
    stats = "  ".join(
        [
            f"{icon('imdb')} {entry.imdb_rating:g}",
            f"{icon('user')} {entry.user_rating}",
            f"{icon('runtime')} {format_minutes(entry.runtime_minutes)}",
        ]
    )
    return f"[bold]{escape_rich_text(entry.title)}[/]\n[dim]{stats}[/]"


__all__ = [
    "escape_rich_text",
    "format_minutes",
    "icon",
    "render_movie_option",
    "render_watched_option",
    "set_ascii_icons",
]
