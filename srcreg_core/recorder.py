"""Dependency recording sessions used while resolving providers."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .errors import RecordingError
from .tokens import RecordToken

__all__ = ["DependencyRecorder"]


@dataclass(frozen=True)
class _Frame:
    token: RecordToken
    paused: tuple[RecordToken, ...]


class DependencyRecorder:
    """Collects the names resolved underneath marked points of a call chain.

    Every open session owns an accumulator keyed by its token. Active
    sessions receive each recorded name; paused ones do not. The resolver
    uses :meth:`push` and :meth:`pop` around every factory call so that a
    session only ever sees the names resolved directly within it.
    """

    def __init__(self) -> None:
        self._accumulators: dict[RecordToken, list[str]] = {}
        self._active: list[RecordToken] = []
        self._paused: set[RecordToken] = set()
        self._frames: list[_Frame] = []

    def start_recording(self) -> RecordToken:
        token = RecordToken.next()
        self._accumulators[token] = []
        self._active.append(token)
        return token

    def pause(self, token: RecordToken) -> None:
        if token not in self._active:
            raise RecordingError(f"{token} is not an active recording.")
        self._active.remove(token)
        self._paused.add(token)

    def resume(self, token: RecordToken) -> None:
        if token not in self._paused:
            raise RecordingError(f"{token} is not a paused recording.")
        self._paused.remove(token)
        self._active.append(token)

    def stop_recording(self, token: RecordToken) -> list[str]:
        if token not in self._accumulators:
            raise RecordingError(f"{token} is not an open recording.")
        if any(frame.token == token for frame in self._frames):
            raise RecordingError(f"{token} belongs to a resolution in progress.")
        self._paused.discard(token)
        if token in self._active:
            self._active.remove(token)
        return self._accumulators.pop(token)

    def record(self, name: str) -> None:
        for token in self._active:
            self._accumulators[token].append(name)

    def push(self) -> RecordToken:
        """Open a nested session, pausing every session active so far."""

        paused = tuple(self._active)
        for token in paused:
            self.pause(token)
        token = self.start_recording()
        self._frames.append(_Frame(token=token, paused=paused))
        return token

    def pop(self, token: RecordToken) -> list[str]:
        """Close the innermost nested session and resume what it paused."""

        if not self._frames or self._frames[-1].token != token:
            raise RecordingError(f"{token} is not the innermost nested recording.")
        frame = self._frames.pop()
        recorded = self.stop_recording(token)
        for paused in frame.paused:
            # the session may have been stopped while it was paused
            if paused in self._paused:
                self.resume(paused)
        return recorded

    @contextmanager
    def recording(self) -> Iterator[list[str]]:
        """Record into a live list for the duration of the block."""

        token = self.start_recording()
        try:
            yield self._accumulators[token]
        finally:
            if token in self._accumulators:
                self.stop_recording(token)

    @property
    def depth(self) -> int:
        return len(self._frames)

    def is_idle(self) -> bool:
        return not self._accumulators
