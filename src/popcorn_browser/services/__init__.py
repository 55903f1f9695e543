"""Internal service layer for app orchestration."""

from popcorn_browser.services.interfaces import (
    AppServices,
    DefaultMovieApiService,
    MovieApiService,
    build_default_app_services,
)

__all__ = [
    "AppServices",
    "DefaultMovieApiService",
    "MovieApiService",
    "build_default_app_services",
]
