"""Tests for the SessionRecorder state machine."""

from datetime import timedelta

import pytest

from bills.errors import ConfigError, RecordingAborted
from bills.recorder import (
    CommitNote,
    DeleteChar,
    InputLost,
    InsertText,
    RecorderState,
    SessionRecorder,
    Stop,
)
from conftest import ScriptedInput


def _type(text):
    return [(0, InsertText(ch)) for ch in text]


def test_rejects_non_positive_rate_before_running(clock):
    for rate in (0, -12):
        with pytest.raises(ConfigError):
            SessionRecorder(rate, clock=clock)


def test_catch_up_fixes_effective_start(clock):
    real_start = clock.now()
    recorder = SessionRecorder(60, catch_up_minutes=15, clock=clock)
    assert recorder.start == real_start - timedelta(minutes=15)

    clock.advance(45 * 60)
    frame = recorder.frame()
    assert frame.elapsed_seconds == 3600
    assert frame.earned == pytest.approx(60)
    assert recorder.start == real_start - timedelta(minutes=15)


def test_run_records_session_with_tags(clock, renderer):
    recorder = SessionRecorder(36, clock=clock)
    start = clock.now()
    steps = (
        [(10, None)]
        + _type("reviewed PR")
        + [(0, CommitNote())]
        + [(30, None)]
        + _type("oops")
        + [(0, DeleteChar())] * 4
        + [(0, CommitNote())]
        + [(20, Stop())]
    )
    source = ScriptedInput(clock, steps)

    session = recorder.run(source, renderer)

    assert recorder.state is RecorderState.STOPPED
    assert session.start == start
    assert session.end == start + timedelta(seconds=60)
    assert session.hourly_rate == 36
    assert [t.note for t in session.tags] == ["reviewed PR"]
    assert session.tags[0].timestamp == start + timedelta(seconds=10)
    assert session.earned() == pytest.approx(0.60)


def test_run_polls_with_one_cent_tick(clock, renderer):
    recorder = SessionRecorder(72, clock=clock)
    source = ScriptedInput(clock, [(2, Stop())])

    recorder.run(source, renderer)

    # 2 seconds at a 0.5s tick: four waits, the last of which delivers Stop
    assert source.timeouts == [0.5, 0.5, 0.5, 0.5]
    assert len(renderer.frames) == 4
    earnings = [f.earned for f in renderer.frames]
    assert earnings == sorted(earnings)
    assert renderer.frames[-1].earned == pytest.approx(0.03)


def test_frames_show_pending_input_and_tags(clock, renderer):
    recorder = SessionRecorder(36, clock=clock)
    steps = _type("ab") + [(0, CommitNote())] + _type("c") + [(0, Stop())]
    recorder.run(ScriptedInput(clock, steps), renderer)

    pending = [f.pending_input for f in renderer.frames]
    assert pending == ["", "a", "ab", "", "c"]
    assert [t.note for t in renderer.frames[-1].tags] == ["ab"]


def test_blank_commit_adds_no_tag_and_keeps_buffer(clock):
    recorder = SessionRecorder(36, clock=clock)
    for event in _type("   "):
        recorder.handle(event[1])
    recorder.handle(CommitNote())
    assert len(recorder.tags) == 0
    assert recorder.pending_input == "   "


def test_delete_on_empty_buffer_is_harmless(clock):
    recorder = SessionRecorder(36, clock=clock)
    recorder.handle(DeleteChar())
    assert recorder.pending_input == ""
    assert recorder.state is RecorderState.RUNNING


def test_input_lost_aborts_without_session(clock, renderer):
    recorder = SessionRecorder(36, clock=clock)
    source = ScriptedInput(clock, _type("half a note") + [(5, InputLost("terminal closed"))])

    with pytest.raises(RecordingAborted, match="terminal closed"):
        recorder.run(source, renderer)
    assert recorder.session is None
    assert recorder.state is RecorderState.RUNNING


def test_source_error_aborts(clock, renderer):
    recorder = SessionRecorder(36, clock=clock)
    source = ScriptedInput(clock, [])  # raises EOFError on first poll

    with pytest.raises(RecordingAborted):
        recorder.run(source, renderer)
    assert recorder.session is None


def test_handle_after_stop_fails(clock):
    recorder = SessionRecorder(36, clock=clock)
    assert recorder.handle(Stop()) is not None
    with pytest.raises(RuntimeError):
        recorder.handle(InsertText("x"))


def test_frame_clock_text(clock):
    recorder = SessionRecorder(36, clock=clock)
    clock.advance(3725)
    assert recorder.frame().clock_text == "Time: 01:02:05 Earned: $37.25"


def test_stop_logs_nothing_at_info(clock, renderer, caplog):
    """The session screen is still up when Stop arrives, so nothing may print at INFO."""
    recorder = SessionRecorder(36, clock=clock)
    with caplog.at_level("INFO", logger="bills"):
        recorder.run(ScriptedInput(clock, [(5, Stop())]), renderer)
    assert not [r for r in caplog.records if r.levelno >= 20]
