"""Scroll-safe drawing primitives for a terminal in raw mode.

Raw mode neither scrolls the viewport at the bottom row nor turns ``\\n``
into a carriage return, so every line break goes through
:meth:`Renderer.advance_line`.
"""

from __future__ import annotations

from typing import Iterable, Protocol, Tuple, Union

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from .context import ShellContext
from .session import TerminalIOFailure

NEXT_LINE = "\x1b[{}E"
PREVIOUS_LINE = "\x1b[{}F"
SCROLL_UP = "\x1b[{}S"
SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"

ERASE_LINE = str(Control((ControlType.ERASE_IN_LINE, 2)))
ERASE_TO_END = str(Control((ControlType.ERASE_IN_LINE, 0)))
COLUMN_ZERO = str(Control.move_to_column(0))

SUGGESTION_SEPARATOR = "  "


class TerminalProbe(Protocol):
    def cursor_position(self) -> Tuple[int, int]:
        ...

    def size(self) -> Tuple[int, int]:
        ...


class Renderer:
    def __init__(self, console: Console, terminal: TerminalProbe, context: ShellContext) -> None:
        self.console = console
        self.terminal = terminal
        self.context = context

    def write(self, content: Union[str, Text]) -> None:
        """Print text at the cursor without any line break."""
        try:
            self.console.print(
                content, end="", soft_wrap=True, markup=False, highlight=False, emoji=False
            )
        except OSError as exc:
            raise TerminalIOFailure(f"cannot write to terminal: {exc}") from exc

    def advance_line(self, lines: int = 1) -> None:
        """Move to the start of the line ``lines`` below, scrolling first at the bottom row."""
        if lines <= 0:
            return
        _, row = self.terminal.cursor_position()
        _, height = self.terminal.size()
        if row >= height - 1:
            self._out(SCROLL_UP.format(lines), str(Control.move(0, -lines)))
        self._out(NEXT_LINE.format(lines))

    def println(self, content: Union[str, Text] = "") -> None:
        if content:
            self.write(content)
        self.advance_line(1)

    def prompt(self) -> None:
        """Print ``prefix>`` at column 0, on a fresh line if the current one is in use."""
        col, _ = self.terminal.cursor_position()
        if col > 0:
            self.advance_line(1)
            self._out(ERASE_LINE)
        self.write(self.context.prompt_text())

    def redraw(self, buffer: str) -> None:
        self._out(COLUMN_ZERO, ERASE_LINE)
        self.write(self.context.prompt_text())
        self.write(buffer)

    def show_suggestions(self, words: Iterable[str]) -> None:
        """Print candidates on the line below and come back to the same column."""
        col, _ = self.terminal.cursor_position()
        width, _ = self.terminal.size()
        self.advance_line(1)
        self._out(ERASE_LINE)
        self.write(_fit(words, width))
        self._out(PREVIOUS_LINE.format(1), str(Control.move_to_column(col)))

    def list_candidates(self, words: Iterable[str]) -> None:
        """Print candidates on the next line and leave the cursor after them."""
        width, _ = self.terminal.size()
        self.advance_line(1)
        self._out(ERASE_LINE)
        self.write(_fit(words, width))

    def clear_below(self) -> None:
        self._out(SAVE_CURSOR, str(Control.move(0, 1)), ERASE_LINE, RESTORE_CURSOR)

    def clear_line(self) -> None:
        self._out(COLUMN_ZERO, ERASE_LINE)

    def erase_tail(self, count: int) -> None:
        """Step back ``count`` columns and clear to the end of the line."""
        if count > 0:
            self._out(str(Control.move(-count, 0)), ERASE_TO_END)

    def replace_tail(self, old_length: int, text: str) -> None:
        self.erase_tail(old_length)
        if text:
            self.write(text)

    def clear_screen_above(self) -> None:
        """Scroll every line above the cursor out of view and follow it to the top."""
        _, row = self.terminal.cursor_position()
        if row > 0:
            self._out(SCROLL_UP.format(row), str(Control.move(0, -row)))

    def error(self, message: str) -> None:
        self.write(Text.assemble(("x", "red"), " ", message))
        self.advance_line(1)

    def exception(self, message: str) -> None:
        self.write(Text(f"Exception: {message}", style="black on red"))
        self.advance_line(1)

    def _out(self, *codes: str) -> None:
        try:
            self.console.file.write("".join(codes))
            self.console.file.flush()
        except OSError as exc:
            raise TerminalIOFailure(f"cannot write to terminal: {exc}") from exc


def _fit(words: Iterable[str], width: int) -> str:
    """Join words with two spaces, dropping those that would wrap the line."""
    line = ""
    for word in words:
        candidate = f"{line}{SUGGESTION_SEPARATOR}{word}" if line else word
        if len(candidate) >= width and line:
            return f"{line}{SUGGESTION_SEPARATOR}..."
        line = candidate
    return line
