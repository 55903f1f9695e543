"""Search OMDb movies, rate them and keep a watched list."""

from popcorn_browser.models import (
    MovieDetail,
    MovieSummary,
    UserConfig,
    WatchedEntry,
    WatchedStats,
)
from popcorn_browser.pipelines import DetailFetchPipeline, SearchFetchPipeline
from popcorn_browser.results import Failure, FetchResult, Idle, Loading, Success
from popcorn_browser.selection import SelectionController
from popcorn_browser.watched import WatchedList

__all__ = [
    "DetailFetchPipeline",
    "Failure",
    "FetchResult",
    "Idle",
    "Loading",
    "MovieDetail",
    "MovieSummary",
    "SearchFetchPipeline",
    "SelectionController",
    "Success",
    "UserConfig",
    "WatchedEntry",
    "WatchedList",
    "WatchedStats",
]
