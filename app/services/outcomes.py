"""Result types for best-effort audit paths.

Backup capture, identity resolution and audit writes must never block the
operation they observe. Instead of returning ``None`` or raising and catching,
they return one of these values so callers and tests can tell the degraded
path apart from the normal one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Operation completed normally."""

    value: T


@dataclass(frozen=True, slots=True)
class Degraded:
    """Operation could not complete; ``fallback`` is used instead."""

    reason: str
    fallback: Any = None


@dataclass(frozen=True, slots=True)
class Skipped:
    """Operation was intentionally not performed."""

    reason: str


Outcome = Union[Ok[T], Degraded]
