"""Detail pane and watched-summary widgets."""

from __future__ import annotations

from textual.widgets import Static

from popcorn_browser.models import MAX_USER_RATING, MovieDetail, WatchedStats
from popcorn_browser.results import Failure, FetchResult, Idle, Loading, Success
from popcorn_browser.widgets.listing import escape_rich_text, format_minutes, icon

EMPTY_DETAIL_MARKUP = "[dim italic]Select a movie to view details[/]"
LOADING_MARKUP = "[italic]Loading...[/]"


def render_rating_line(user_rating: int, watched_rating: int | None) -> str:
    """Render the rating prompt, or the stored rating for watched movies."""
    if watched_rating is not None:
        return f"You rated this movie {watched_rating} {icon('user')}"
    stars = "★" * user_rating + "☆" * (MAX_USER_RATING - user_rating)
    line = f"[yellow]{stars}[/] {user_rating or ''}\n[dim]Rate with 1-9, 0 for 10[/]"
    if user_rating > 0:
        line += "\n[bold green]+ Add to list[/] [dim](press a)[/]"
    return line


def render_detail_markup(
    detail: MovieDetail,
    *,
    user_rating: int = 0,
    watched_rating: int | None = None,
) -> str:
    """Render a loaded movie detail as Rich markup."""
    runtime = detail.runtime_label or format_minutes(detail.runtime_minutes)
    lines = [
        f"[bold]{escape_rich_text(detail.title)}[/]",
        f"{escape_rich_text(detail.released)} • {escape_rich_text(runtime)}",
        escape_rich_text(detail.genre),
        f"{icon('imdb')} {detail.imdb_rating:g} IMDb rating",
    ]
    if detail.poster_url and detail.poster_url != "N/A":
        lines.append(f"[dim]{escape_rich_text(detail.poster_url)}[/]")
    lines.append("")
    lines.append(render_rating_line(user_rating, watched_rating))
    lines.append("")
    lines.append(f"[italic]{escape_rich_text(detail.plot)}[/]")
    lines.append(f"Starring {escape_rich_text(detail.actors)}")
    lines.append(f"Directed by {escape_rich_text(detail.director)}")
    return "\n".join(lines)


def render_result_markup(
    result: FetchResult,
    *,
    user_rating: int = 0,
    watched_rating: int | None = None,
) -> str:
    """Pick the loading/error/data branch for the detail pane."""
    if isinstance(result, Loading):
        return LOADING_MARKUP
    if isinstance(result, Failure):
        return f"[red]⛔ {escape_rich_text(result.reason)}[/]"
    if isinstance(result, Success):
        return render_detail_markup(
            result.value, user_rating=user_rating, watched_rating=watched_rating
        )
    return EMPTY_DETAIL_MARKUP


def render_summary_markup(stats: WatchedStats) -> str:
    """Render the watched-list aggregates."""
    return (
        "[bold]Movies you watched[/]\n"
        f"{icon('count')} {stats.count} movie{'s' if stats.count != 1 else ''}  "
        f"{icon('imdb')} {stats.avg_imdb_rating:.2f}  "
        f"{icon('user')} {stats.avg_user_rating:.2f}  "
        f"{icon('runtime')} {format_minutes(round(stats.avg_runtime, 1))}"
    )


class MovieDetails(Static):
    """Widget to display the selected movie's details."""

    def __init__(self, **kwargs) -> None:
        super().__init__(EMPTY_DETAIL_MARKUP, **kwargs)
        self._result: FetchResult = Idle()

    @property
    def result(self) -> FetchResult:
        return self._result

    def update_result(
        self,
        result: FetchResult,
        *,
        user_rating: int = 0,
        watched_rating: int | None = None,
    ) -> None:
        """Update the displayed details."""
        self._result = result
        self.update(
            render_result_markup(result, user_rating=user_rating, watched_rating=watched_rating)
        )


class WatchedSummary(Static):
    """Widget showing watched-list aggregates."""

    def update_stats(self, stats: WatchedStats) -> None:
        self.update(render_summary_markup(stats))


__all__ = [
    "EMPTY_DETAIL_MARKUP",
    "LOADING_MARKUP",
    "MovieDetails",
    "WatchedSummary",
    "render_detail_markup",
    "render_rating_line",
    "render_result_markup",
    "render_summary_markup",
]
