"""Watched list: an ordered collection mirrored to durable storage.

The in-memory tuple is the source of truth. Each mutation builds the new
tuple, writes the complete snapshot to the store, and only then replaces the
in-memory state. A failed write leaves both sides at the previous snapshot.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from typing import Any

from popcorn_browser.models import (
    MAX_USER_RATING,
    WATCHED_STORAGE_KEY,
    WatchedEntry,
    WatchedStats,
)
from popcorn_browser.storage import KeyValueStore

logger = logging.getLogger(__name__)


class DuplicateWatchedEntryError(ValueError):
    """An entry with the same IMDb id is already in the watched list."""


class WatchedListStorageError(RuntimeError):
    """The watched list snapshot could not be persisted."""


def average(values: Iterable[float]) -> float:
    """Arithmetic mean; the mean of nothing is 0."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def compute_stats(entries: Iterable[WatchedEntry]) -> WatchedStats:
    items = list(entries)
    return WatchedStats(
        count=len(items),
        avg_imdb_rating=average(e.imdb_rating for e in items),
        avg_user_rating=average(e.user_rating for e in items),
        avg_runtime=average(e.runtime_minutes for e in items),
    )


def _entry_to_dict(entry: WatchedEntry) -> dict[str, Any]:
    return {
        "imdbID": entry.imdb_id,
        "title": entry.title,
        "year": entry.year,
        "poster": entry.poster_url,
        "imdbRating": entry.imdb_rating,
        "runtime": entry.runtime_minutes,
        "userRating": entry.user_rating,
        "countRatingDecisions": entry.rating_decision_count,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, expected_type):
        return default
    return value


def _dict_to_entry(data: Any) -> WatchedEntry | None:
    """Deserialize one stored entry. Returns None if it is unusable."""
    if not isinstance(data, dict):
        return None
    imdb_id = _safe_get(data, "imdbID", "", str)
    if not imdb_id:
        return None
    user_rating = _safe_get(data, "userRating", 0, int)
    if not 1 <= user_rating <= MAX_USER_RATING:
        return None
    return WatchedEntry(
        imdb_id=imdb_id,
        title=_safe_get(data, "title", "", str),
        year=_safe_get(data, "year", "", str),
        poster_url=_safe_get(data, "poster", "", str),
        imdb_rating=float(_safe_get(data, "imdbRating", 0.0, (int, float))),
        runtime_minutes=int(_safe_get(data, "runtime", 0, (int, float))),
        user_rating=user_rating,
        rating_decision_count=max(0, _safe_get(data, "countRatingDecisions", 0, int)),
    )


def serialize_entries(entries: Iterable[WatchedEntry]) -> str:
    return json.dumps([_entry_to_dict(e) for e in entries], ensure_ascii=False)


def deserialize_entries(raw: str) -> list[WatchedEntry]:
    """Parse a stored snapshot, skipping unusable entries.

    Raises:
        json.JSONDecodeError: the snapshot is not valid JSON.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        logger.warning("Watched list snapshot is not a JSON array, ignoring it")
        return []
    entries: list[WatchedEntry] = []
    for item in data:
        entry = _dict_to_entry(item)
        if entry is None:
            logger.warning("Skipping invalid watched entry: %r", item)
            continue
        entries.append(entry)
    return entries


class WatchedList:
    """The user's watched movies, persisted as a full snapshot on every change."""

    def __init__(self, store: KeyValueStore, key: str = WATCHED_STORAGE_KEY) -> None:
        self._store = store
        self._key = key
        self._entries: tuple[WatchedEntry, ...] = ()

    @property
    def entries(self) -> tuple[WatchedEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WatchedEntry]:
        return iter(self._entries)

    def __contains__(self, imdb_id: object) -> bool:
        return any(entry.imdb_id == imdb_id for entry in self._entries)

    def get(self, imdb_id: str) -> WatchedEntry | None:
        for entry in self._entries:
            if entry.imdb_id == imdb_id:
                return entry
        return None

    def hydrate(self) -> tuple[WatchedEntry, ...]:
        """Load the stored snapshot. Missing or unreadable data yields an empty list."""
        try:
            raw = self._store.get(self._key)
        except OSError as e:
            logger.warning("Could not read watched list, starting empty: %s", e)
            raw = None
        if raw is None:
            self._entries = ()
            return self._entries
        try:
            self._entries = tuple(deserialize_entries(raw))
        except json.JSONDecodeError as e:
            logger.warning("Watched list has invalid JSON, starting empty: %s", e)
            self._entries = ()
        logger.debug("Hydrated %d watched entries", len(self._entries))
        return self._entries

    def append(self, entry: WatchedEntry) -> tuple[WatchedEntry, ...]:
        """Append ``entry`` and persist.

        Raises:
            DuplicateWatchedEntryError: an entry with this id already exists.
            WatchedListStorageError: the snapshot could not be written.
        """
        if entry.imdb_id in self:
            raise DuplicateWatchedEntryError(f"{entry.imdb_id} is already in the watched list")
        return self._commit((*self._entries, entry))

    def remove(self, imdb_id: str) -> tuple[WatchedEntry, ...]:
        """Remove every entry with ``imdb_id`` and persist."""
        remaining = tuple(entry for entry in self._entries if entry.imdb_id != imdb_id)
        if len(remaining) == len(self._entries):
            logger.debug("remove(%r) matched no watched entry", imdb_id)
        return self._commit(remaining)

    def clear(self) -> tuple[WatchedEntry, ...]:
        return self._commit(())

    def stats(self) -> WatchedStats:
        return compute_stats(self._entries)

    def _commit(self, entries: tuple[WatchedEntry, ...]) -> tuple[WatchedEntry, ...]:
        try:
            self._store.set(self._key, serialize_entries(entries))
        except OSError as e:
            logger.error("Failed to persist watched list: %s", e)
            raise WatchedListStorageError(str(e)) from e
        self._entries = entries
        return self._entries


__all__ = [
    "DuplicateWatchedEntryError",
    "WatchedList",
    "WatchedListStorageError",
    "average",
    "compute_stats",
    "deserialize_entries",
    "serialize_entries",
]
