"""Process-wide display title with scoped leases.

The title slot holds one string. A lease replaces it while held and restores
the slot's default when released. Releasing is idempotent, so every lease
restores the default at most once regardless of how many teardown paths run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from popcorn_browser.models import DEFAULT_TITLE

logger = logging.getLogger(__name__)

TitleListener = Callable[[str], None]


class TitleSlot:
    """A single readable/writable title with a known default."""

    def __init__(self, default: str = DEFAULT_TITLE) -> None:
        self.default = default
        self._value = default
        self._listeners: list[TitleListener] = []
        self._active: TitleLease | None = None

    @property
    def value(self) -> str:
        return self._value

    def set(self, value: str) -> None:
        if value == self._value:
            return
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    def reset(self) -> None:
        self.set(self.default)

    def add_listener(self, listener: TitleListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TitleListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def lease(self, title: str) -> TitleLease:
        """Show ``title`` until the returned lease is released.

        A newer lease supersedes an older one; releasing the superseded lease
        afterwards leaves the newer title in place.
        """
        lease = TitleLease(self, title)
        self._active = lease
        self.set(title)
        return lease

    @contextmanager
    def showing(self, title: str) -> Iterator[TitleLease]:
        lease = self.lease(title)
        try:
            yield lease
        finally:
            lease.release()

    def _release(self, lease: TitleLease) -> None:
        if self._active is not lease:
            logger.debug("Ignoring release of superseded title lease %r", lease.title)
            return
        self._active = None
        self.reset()


class TitleLease:
    """Handle for one acquisition of a TitleSlot."""

    __slots__ = ("_released", "_slot", "title")

    def __init__(self, slot: TitleSlot, title: str) -> None:
        self._slot = slot
        self.title = title
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Restore the default title. Returns False if already released."""
        if self._released:
            return False
        self._released = True
        self._slot._release(self)
        return True


__all__ = [
    "TitleLease",
    "TitleSlot",
]
