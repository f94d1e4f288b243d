"""Raw-mode terminal session and key decoding."""

from __future__ import annotations

import re
import signal
import sys
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Optional, TextIO, Tuple

from prompt_toolkit.input.vt100_parser import Vt100Parser
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console

from .keys import KeyEvent, KeyKind
from .terminal import TCSADRAIN, TerminalError, kbhit, read_input, setraw, tcgetattr, tcsetattr

SHOW_CURSOR = "\x1b[?25h"
RESET_STYLE = "\x1b[0m"
REPORT_CURSOR = "\x1b[6n"

ESCAPE_TIMEOUT = 0.05
REPORT_TIMEOUT = 1.0
RELEASE_GRACE_SECONDS = 0.05

_CPR_RE = re.compile(r"\x1b\[(\d+);(\d+)R")

_SIMPLE_KEYS = {
    Keys.ControlI: KeyKind.TAB,
    Keys.ControlM: KeyKind.ENTER,
    Keys.ControlJ: KeyKind.ENTER,
    Keys.Up: KeyKind.ARROW_UP,
    Keys.Down: KeyKind.ARROW_DOWN,
    Keys.ControlC: KeyKind.CTRL_C,
    Keys.ControlD: KeyKind.CTRL_D,
    Keys.ControlL: KeyKind.CTRL_L,
}


class TerminalIOFailure(OSError):
    """The terminal could not be read, written or switched between modes."""


class KeyReader:
    """Decode raw terminal input into KeyEvents.

    Cursor position reports share the input stream with key presses, so they
    are split off here and queued separately.
    """

    def __init__(
        self,
        read: Callable[[], str] = read_input,
        poll: Callable[[Optional[float]], bool] = kbhit,
        *,
        escape_timeout: float = ESCAPE_TIMEOUT,
    ) -> None:
        self._read = read
        self._poll = poll
        self._escape_timeout = escape_timeout
        self._presses: Deque[KeyPress] = deque()
        self._events: Deque[KeyEvent] = deque()
        self._reports: Deque[Tuple[int, int]] = deque()
        self._parser = Vt100Parser(self._on_key_press)

    def read_event(self) -> KeyEvent:
        """Block until the next key event is available."""
        while not self._events:
            while not self._presses:
                self._pump(None)
            self._events.extend(self._translate(self._presses.popleft()))
        return self._events.popleft()

    def read_cursor_report(self, timeout: float = REPORT_TIMEOUT) -> Tuple[int, int]:
        """Return the next reported ``(row, column)``, both 1-based."""
        deadline = time.monotonic() + timeout
        while not self._reports:
            remaining = deadline - time.monotonic()
            if remaining <= 0 or not self._pump(remaining):
                raise TerminalIOFailure("terminal did not report the cursor position")
        return self._reports.popleft()

    def _pump(self, timeout: Optional[float]) -> bool:
        try:
            if not self._poll(timeout):
                return False
            data = self._read()
        except EOFError as exc:
            raise TerminalIOFailure("terminal input closed") from exc
        except OSError as exc:
            raise TerminalIOFailure(f"cannot read from terminal: {exc}") from exc
        before = len(self._presses) + len(self._reports)
        self._parser.feed(data)
        produced = len(self._presses) + len(self._reports) > before
        if not produced and not self._poll(self._escape_timeout):
            # A lone ESC stays buffered in the parser until flushed.
            self._parser.flush()
        return True

    def _on_key_press(self, press: KeyPress) -> None:
        if press.key == Keys.CPRResponse:
            match = _CPR_RE.search(press.data)
            if match:
                self._reports.append((int(match.group(1)), int(match.group(2))))
            return
        self._presses.append(press)

    def _translate(self, press: KeyPress) -> list[KeyEvent]:
        key = press.key
        if key == Keys.Escape:
            if self._presses and self._presses[0].key == Keys.ControlH:
                self._presses.popleft()
                return [KeyEvent.backspace(word=True)]
            return [KeyEvent(KeyKind.OTHER)]
        if key == Keys.ControlH:
            return [KeyEvent.backspace()]
        if key == Keys.ControlW:
            return [KeyEvent.backspace(word=True)]
        if key == Keys.BracketedPaste:
            return [KeyEvent.character(ch) for ch in press.data if ch.isprintable()]
        if key in _SIMPLE_KEYS:
            return [KeyEvent(_SIMPLE_KEYS[key])]
        if isinstance(key, str) and len(key) == 1 and key.isprintable():
            return [KeyEvent.character(key)]
        return [KeyEvent(KeyKind.OTHER)]


def _raise_exit(signum: int, frame: Any) -> None:
    raise SystemExit(128 + signum)


class TerminalSession:
    """Scoped raw mode on the controlling terminal.

    Use as a context manager: raw mode is released, the cursor shown and the
    styling reset on every exit path, followed by a short grace delay so the
    terminal consumes the control sequences before the process goes away.
    """

    def __init__(
        self,
        console: Console,
        keys: Optional[KeyReader] = None,
        *,
        stdin: Optional[TextIO] = None,
        grace: float = RELEASE_GRACE_SECONDS,
        report_timeout: float = REPORT_TIMEOUT,
    ) -> None:
        self.console = console
        self.keys = keys or KeyReader()
        self._stdin = stdin or sys.stdin
        self._grace = grace
        self._report_timeout = report_timeout
        self._saved: Any = None
        self._previous_handlers: dict[int, Any] = {}

    @property
    def active(self) -> bool:
        return self._saved is not None

    def __enter__(self) -> "TerminalSession":
        self.acquire()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def acquire(self) -> None:
        if self.active:
            return
        fd = self._stdin.fileno()
        try:
            saved = tcgetattr(fd)
            setraw(fd)
        except (OSError, TerminalError) as exc:
            raise TerminalIOFailure(f"cannot enter raw mode: {exc}") from exc
        self._saved = saved
        self._install_signal_handlers()
        self._write(SHOW_CURSOR + RESET_STYLE)

    def release(self) -> None:
        if not self.active:
            return
        saved, self._saved = self._saved, None
        self._restore_signal_handlers()
        try:
            tcsetattr(self._stdin.fileno(), TCSADRAIN, saved)
        except (OSError, TerminalError) as exc:
            raise TerminalIOFailure(f"cannot leave raw mode: {exc}") from exc
        finally:
            try:
                self._write(SHOW_CURSOR + RESET_STYLE)
            finally:
                time.sleep(self._grace)

    def read_event(self) -> KeyEvent:
        return self.keys.read_event()

    def cursor_position(self) -> Tuple[int, int]:
        """Current ``(column, row)``, both 0-based. Asked of the terminal on every call."""
        self._write(REPORT_CURSOR)
        row, col = self.keys.read_cursor_report(self._report_timeout)
        return col - 1, row - 1

    def size(self) -> Tuple[int, int]:
        dims = self.console.size
        return dims.width, dims.height

    def _write(self, data: str) -> None:
        try:
            self.console.file.write(data)
            self.console.file.flush()
        except OSError as exc:
            raise TerminalIOFailure(f"cannot write to terminal: {exc}") from exc

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for name in ("SIGTERM", "SIGHUP"):
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.signal(signum, _raise_exit)

    def _restore_signal_handlers(self) -> None:
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)
