"""Tri-state fetch results shared by the search and detail pipelines.

A pipeline holds exactly one of these at a time. ``Idle`` means nothing was
requested, ``Loading`` means a lookup is in flight, and ``Success``/``Failure``
carry the outcome of the most recent honored lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Idle:
    """No lookup has been requested."""


@dataclass(frozen=True, slots=True)
class Loading:
    """A lookup is in flight."""


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """The lookup completed with data."""

    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    """The lookup failed; ``reason`` is user-facing copy."""

    reason: str


FetchResult = Idle | Loading | Success[T] | Failure

IDLE = Idle()
LOADING = Loading()


__all__ = [
    "IDLE",
    "LOADING",
    "Failure",
    "FetchResult",
    "Idle",
    "Loading",
    "Success",
]
