"""Terminal adapters for the recorder: keyboard input and a live-updating screen."""

from __future__ import annotations

import logging
import os
import select
import sys
import termios
import tty
from collections import deque

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from bills.errors import RecordingAborted
from bills.recorder import (
    CommitNote,
    DeleteChar,
    Frame,
    InputEvent,
    InputLost,
    InsertText,
    Stop,
)

logger = logging.getLogger(__name__)

STOP_KEY = "\x1b"
ENTER_KEYS = ("\r", "\n")
BACKSPACE_KEYS = ("\x7f", "\x08")


def key_to_event(key: str) -> InputEvent | None:
    """Translate one raw key read from the terminal. None for keys we ignore."""
    if key == STOP_KEY:
        return Stop()
    if key in ENTER_KEYS:
        return CommitNote()
    if key in BACKSPACE_KEYS:
        return DeleteChar()
    if key.startswith(STOP_KEY):
        # Arrow keys and other escape sequences
        return None
    text = "".join(ch for ch in key if ch.isprintable())
    return InsertText(text) if text else None


def chunk_to_events(chunk: str) -> list[InputEvent]:
    """Split one read from the terminal into events.

    A chunk that starts with ESC and carries more bytes is an escape sequence
    (arrow keys and the like) and is dropped whole.
    """
    if chunk.startswith(STOP_KEY) and len(chunk) > 1:
        return []
    events: list[InputEvent] = []
    for ch in chunk:
        event = key_to_event(ch)
        if event is None:
            continue
        if events and isinstance(event, InsertText) and isinstance(events[-1], InsertText):
            events[-1] = InsertText(events[-1].text + event.text)
        else:
            events.append(event)
    return events


class KeyboardInput:
    """Waits on the terminal with select(). Use as a context manager.

    While the session runs the terminal is in cbreak mode: keys arrive without
    echo or line buffering, and output processing stays on, so the screen keeps
    its CRLF line endings. The previous settings are restored on exit.
    """

    def __init__(self, fd: int | None = None) -> None:
        self._fd = fd
        self._tty_file = None
        self._saved_attrs: list | None = None
        self._pending: deque[InputEvent] = deque()

    def __enter__(self) -> KeyboardInput:
        try:
            if self._fd is None:
                if sys.stdin.isatty():
                    self._fd = sys.stdin.fileno()
                else:
                    self._tty_file = open("/dev/tty", "rb", buffering=0)
                    self._fd = self._tty_file.fileno()
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        except (OSError, termios.error) as exc:
            self._close_tty()
            raise RecordingAborted(f"No keyboard available: {exc}") from exc
        return self

    def __exit__(self, *exc_info) -> None:
        try:
            if self._saved_attrs is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
                self._saved_attrs = None
        except termios.error as exc:
            # The terminal hung up; there is nothing left to restore
            logger.debug("Could not restore terminal settings: %r", exc)
        finally:
            self._close_tty()

    def _close_tty(self) -> None:
        if self._tty_file is not None:
            self._tty_file.close()
            self._tty_file = None

    def poll(self, timeout: float) -> InputEvent | None:
        if self._pending:
            return self._pending.popleft()
        try:
            readable, _, _ = select.select([self._fd], [], [], timeout)
            if not readable:
                return None
            chunk = os.read(self._fd, 64)
        except KeyboardInterrupt:
            return InputLost("interrupted")
        except (OSError, ValueError) as exc:
            logger.debug("Keyboard input closed: %r", exc)
            return InputLost("keyboard input closed")
        if not chunk:
            return InputLost("keyboard input closed")

        self._pending.extend(chunk_to_events(chunk.decode("utf-8", errors="ignore")))
        return self._pending.popleft() if self._pending else None


class LiveFrameRenderer:
    """Draws recorder frames full-screen with rich. Use as a context manager."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._live = Live(console=self.console, screen=True, auto_refresh=False)

    def __enter__(self) -> LiveFrameRenderer:
        self._live.__enter__()
        return self

    def __exit__(self, *exc_info) -> None:
        self._live.__exit__(*exc_info)

    def draw(self, frame: Frame) -> None:
        self._live.update(build_screen(frame), refresh=True)


def build_screen(frame: Frame) -> Group:
    info = Panel(Text(frame.clock_text), title="Session Info", title_align="left")

    tag_lines = Text()
    for i, tag in enumerate(frame.tags):
        if i:
            tag_lines.append("\n")
        tag_lines.append(f"{tag.timestamp.strftime('%H:%M:%S')} -- {tag.note}")
    tags = Panel(tag_lines, title="Tags", title_align="left")

    pending = Text(frame.pending_input, style="yellow")
    pending.append("_", style="blink")
    prompt = Panel(
        pending,
        title="Input",
        title_align="left",
        subtitle="Enter: add tag  Esc: stop",
        subtitle_align="right",
    )
    return Group(info, tags, prompt)
