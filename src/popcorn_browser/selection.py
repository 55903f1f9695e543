"""Selected-movie state with toggle-close semantics."""

from __future__ import annotations

from collections.abc import Callable

SelectionListener = Callable[[str | None], None]


class SelectionController:
    """Holds the currently selected IMDb id, or None when the detail is closed."""

    def __init__(self, on_change: SelectionListener | None = None) -> None:
        self._selected_id: str | None = None
        self._on_change = on_change

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    def select(self, imdb_id: str) -> str | None:
        """Select ``imdb_id``; selecting the current id again closes it."""
        if imdb_id == self._selected_id:
            self._set(None)
        else:
            self._set(imdb_id)
        return self._selected_id

    def close(self) -> None:
        self._set(None)

    def _set(self, imdb_id: str | None) -> None:
        if imdb_id == self._selected_id:
            return
        self._selected_id = imdb_id
        if self._on_change is not None:
            self._on_change(imdb_id)


__all__ = ["SelectionController"]
