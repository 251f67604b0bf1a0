"""Unit tests for the dependency recorder and its tokens."""

from __future__ import annotations

import pytest

from srcreg_core import DependencyRecorder, RecordingError, RecordToken


def test_tokens_are_unique_and_increasing() -> None:
    first = RecordToken.next()
    second = RecordToken.next()

    assert first != second
    assert second.value > first.value


def test_records_into_active_sessions() -> None:
    recorder = DependencyRecorder()
    outer = recorder.start_recording()
    recorder.record("a")
    inner = recorder.start_recording()
    recorder.record("b")

    assert recorder.stop_recording(inner) == ["b"]
    assert recorder.stop_recording(outer) == ["a", "b"]
    assert recorder.is_idle()


def test_paused_session_skips_names() -> None:
    recorder = DependencyRecorder()
    token = recorder.start_recording()
    recorder.pause(token)
    recorder.record("skipped")
    recorder.resume(token)
    recorder.record("kept")

    assert recorder.stop_recording(token) == ["kept"]


def test_push_pop_records_direct_names_only() -> None:
    recorder = DependencyRecorder()
    user = recorder.start_recording()

    outer = recorder.push()
    recorder.record("b")
    inner = recorder.push()
    recorder.record("c")
    assert recorder.depth == 2
    assert recorder.pop(inner) == ["c"]
    recorder.record("d")
    assert recorder.pop(outer) == ["b", "d"]
    recorder.record("a")

    assert recorder.stop_recording(user) == ["a"]
    assert recorder.depth == 0


def test_pop_must_match_innermost_frame() -> None:
    recorder = DependencyRecorder()
    outer = recorder.push()
    recorder.push()

    with pytest.raises(RecordingError):
        recorder.pop(outer)


def test_frame_token_cannot_be_stopped_directly() -> None:
    recorder = DependencyRecorder()
    token = recorder.push()

    with pytest.raises(RecordingError):
        recorder.stop_recording(token)


def test_unknown_tokens_are_rejected() -> None:
    recorder = DependencyRecorder()
    token = recorder.start_recording()
    recorder.stop_recording(token)

    with pytest.raises(RecordingError):
        recorder.stop_recording(token)
    with pytest.raises(RecordingError):
        recorder.pause(token)
    with pytest.raises(RecordingError):
        recorder.resume(token)
    with pytest.raises(ValueError):
        recorder.resume(RecordToken.next())


def test_session_stopped_while_paused_is_not_resumed() -> None:
    recorder = DependencyRecorder()
    user = recorder.start_recording()
    frame = recorder.push()
    assert recorder.stop_recording(user) == []

    assert recorder.pop(frame) == []
    recorder.record("after")
    assert recorder.is_idle()


def test_recording_context_manager() -> None:
    recorder = DependencyRecorder()

    with recorder.recording() as names:
        recorder.record("a")
    recorder.record("b")

    assert names == ["a"]
    assert recorder.is_idle()
