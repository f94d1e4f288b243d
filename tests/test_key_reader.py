import unittest
from collections import deque
from typing import Optional

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from gershell.cli.keys import KeyEvent, KeyKind
from gershell.cli.session import KeyReader, TerminalIOFailure


class ScriptedInput:
    """Hands out one chunk per read, as if the user typed each chunk at once."""

    def __init__(self, *chunks: str) -> None:
        self.chunks = deque(chunks)

    def read(self) -> str:
        if not self.chunks:
            raise EOFError("stdin closed")
        return self.chunks.popleft()

    def poll(self, timeout: Optional[float]) -> bool:
        return bool(self.chunks) or timeout is None


def reader_for(*chunks: str) -> KeyReader:
    source = ScriptedInput(*chunks)
    return KeyReader(source.read, source.poll, escape_timeout=0)


class KeyReaderTests(unittest.TestCase):
    def _kinds(self, reader: KeyReader, count: int) -> list:
        return [reader.read_event().kind for _ in range(count)]

    def test_printable_and_editing_keys(self) -> None:
        reader = reader_for("h\t\r")
        self.assertEqual(reader.read_event(), KeyEvent.character("h"))
        self.assertEqual(self._kinds(reader, 2), [KeyKind.TAB, KeyKind.ENTER])

    def test_arrows_and_control_keys(self) -> None:
        reader = reader_for("\x1b[A\x1b[B\x03\x04\x0c")
        self.assertEqual(
            self._kinds(reader, 5),
            [KeyKind.ARROW_UP, KeyKind.ARROW_DOWN, KeyKind.CTRL_C, KeyKind.CTRL_D, KeyKind.CTRL_L],
        )

    def test_backspace_variants(self) -> None:
        reader = reader_for("\x7f\x08\x17")
        self.assertEqual(reader.read_event(), KeyEvent.backspace())
        self.assertEqual(reader.read_event(), KeyEvent.backspace())
        self.assertEqual(reader.read_event(), KeyEvent.backspace(word=True))

    def test_alt_backspace_is_a_word_delete(self) -> None:
        reader = reader_for("\x1b\x7f")
        self.assertEqual(reader.read_event(), KeyEvent.backspace(word=True))

    def test_escape_then_backspace_presses(self) -> None:
        reader = reader_for()
        reader._on_key_press(KeyPress(Keys.Escape, "\x1b"))
        reader._on_key_press(KeyPress(Keys.ControlH, "\x7f"))
        self.assertEqual(reader.read_event(), KeyEvent.backspace(word=True))

    def test_lone_escape_is_flushed(self) -> None:
        reader = reader_for("\x1b")
        self.assertEqual(reader.read_event().kind, KeyKind.OTHER)

    def test_bracketed_paste_becomes_characters(self) -> None:
        reader = reader_for("\x1b[200~ab\ncd\x1b[201~")
        typed = "".join(reader.read_event().char for _ in range(4))
        self.assertEqual(typed, "abcd")

    def test_unknown_keys_are_other(self) -> None:
        reader = reader_for("\x1b[C")
        self.assertEqual(reader.read_event().kind, KeyKind.OTHER)

    def test_cursor_report_is_split_from_keys(self) -> None:
        reader = reader_for("x\x1b[3;7R")
        self.assertEqual(reader.read_cursor_report(1.0), (3, 7))
        self.assertEqual(reader.read_event(), KeyEvent.character("x"))

    def test_missing_cursor_report_times_out(self) -> None:
        reader = KeyReader(lambda: "", lambda timeout: False, escape_timeout=0)
        with self.assertRaises(TerminalIOFailure):
            reader.read_cursor_report(0.01)

    def test_closed_input_is_a_terminal_failure(self) -> None:
        reader = reader_for()
        with self.assertRaises(TerminalIOFailure):
            reader.read_event()

    def test_read_errors_are_terminal_failures(self) -> None:
        def broken() -> str:
            raise OSError("EIO")

        reader = KeyReader(broken, lambda timeout: True, escape_timeout=0)
        with self.assertRaises(TerminalIOFailure):
            reader.read_event()


if __name__ == "__main__":
    unittest.main()
