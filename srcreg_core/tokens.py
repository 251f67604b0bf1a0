"""Identity tokens handed out by the dependency recorder."""

from __future__ import annotations

import itertools
from dataclasses import dataclass

__all__ = ["RecordToken"]

_COUNTER = itertools.count()


@dataclass(frozen=True)
class RecordToken:
    """Opaque handle correlating a start-recording call with its stop call."""

    value: int

    @classmethod
    def next(cls) -> "RecordToken":
        return cls(next(_COUNTER))
