"""Global key-press stream and scoped single-key bindings."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType

logger = logging.getLogger(__name__)

KeyListener = Callable[[str], bool]
KeyHandler = Callable[[], None]


class KeyPressStream:
    """Fan-out of named key presses to subscribed listeners.

    Listeners return True when they handled the key. Dispatch stops at the
    first listener that handles it, newest subscriber first.
    """

    def __init__(self) -> None:
        self._listeners: list[KeyListener] = []

    def subscribe(self, listener: KeyListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: KeyListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, key: str) -> bool:
        """Deliver ``key`` to listeners. Returns True if one handled it."""
        for listener in reversed(list(self._listeners)):
            if listener(key):
                return True
        return False


def normalize_key(key: str) -> str:
    return key.strip().lower()


class KeyBinding:
    """One logical binding of a single key on a KeyPressStream.

    Rebinding removes the previous listener before installing the new one,
    so the binding never holds two listeners at once. Used as a context
    manager, the binding is removed when the scope exits.
    """

    def __init__(self, stream: KeyPressStream) -> None:
        self._stream = stream
        self._listener: KeyListener | None = None
        self._key: str | None = None
        self._handler: KeyHandler | None = None

    @property
    def key(self) -> str | None:
        return self._key

    @property
    def bound(self) -> bool:
        return self._listener is not None

    def bind(self, key: str, handler: KeyHandler) -> KeyBinding:
        normalized = normalize_key(key)
        if self._key == normalized and self._handler is handler:
            return self
        self.unbind()

        def listener(pressed: str) -> bool:
            if normalize_key(pressed) != normalized:
                return False
            handler()
            return True

        self._key = normalized
        self._handler = handler
        self._listener = listener
        self._stream.subscribe(listener)
        logger.debug("Bound key %r", normalized)
        return self

    def unbind(self) -> None:
        listener = self._listener
        if listener is None:
            return
        self._listener = None
        self._handler = None
        self._stream.unsubscribe(listener)
        logger.debug("Unbound key %r", self._key)
        self._key = None

    def __enter__(self) -> KeyBinding:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unbind()


__all__ = [
    "KeyBinding",
    "KeyPressStream",
    "normalize_key",
]
