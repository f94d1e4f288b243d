import io
import unittest

from rich.console import Console

from gershell.cli.context import PromptStyle, ShellContext
from gershell.cli.render import Renderer, _fit
from gershell.cli.session import TerminalIOFailure


class FakeTerminal:
    def __init__(self, col: int = 0, row: int = 3, width: int = 80, height: int = 24) -> None:
        self.col = col
        self.row = row
        self.width = width
        self.height = height

    def cursor_position(self) -> tuple:
        return self.col, self.row

    def size(self) -> tuple:
        return self.width, self.height


class BrokenFile(io.StringIO):
    def write(self, data: str) -> int:
        raise OSError("EIO")


class RendererTests(unittest.TestCase):
    def setUp(self) -> None:
        self.output = io.StringIO()
        self.console = Console(file=self.output, force_terminal=True, color_system=None)
        self.terminal = FakeTerminal()
        self.renderer = Renderer(self.console, self.terminal, ShellContext())

    def test_advance_line_mid_screen(self) -> None:
        self.renderer.advance_line(1)
        self.assertEqual(self.output.getvalue(), "\x1b[1E")

    def test_advance_line_on_last_row_scrolls_first(self) -> None:
        self.terminal.row = 23
        self.renderer.advance_line(1)
        self.assertEqual(self.output.getvalue(), "\x1b[1S\x1b[1A\x1b[1E")

    def test_advance_line_reads_size_every_call(self) -> None:
        self.terminal.row = 23
        self.renderer.advance_line(2)
        self.terminal.height = 40
        self.renderer.advance_line(1)
        self.assertEqual(self.output.getvalue(), "\x1b[2S\x1b[2A\x1b[2E\x1b[1E")

    def test_advance_zero_lines_is_a_noop(self) -> None:
        self.renderer.advance_line(0)
        self.assertEqual(self.output.getvalue(), "")

    def test_prompt_at_column_zero(self) -> None:
        self.renderer.prompt()
        self.assertEqual(self.output.getvalue(), "gerrit>")

    def test_prompt_moves_off_a_used_line(self) -> None:
        self.terminal.col = 5
        self.renderer.prompt()
        self.assertEqual(self.output.getvalue(), "\x1b[1E\x1b[2Kgerrit>")

    def test_prompt_follows_context_style(self) -> None:
        context = ShellContext(style=PromptStyle(prefix="gerrit change", symbol="$"))
        Renderer(self.console, self.terminal, context).prompt()
        self.assertEqual(self.output.getvalue(), "gerrit change$")

    def test_redraw(self) -> None:
        self.renderer.redraw("change show")
        self.assertEqual(self.output.getvalue(), "\x1b[1G\x1b[2Kgerrit>change show")

    def test_println(self) -> None:
        self.renderer.println("remote url: https://review")
        self.assertEqual(self.output.getvalue(), "remote url: https://review\x1b[1E")

    def test_show_suggestions_returns_to_column(self) -> None:
        self.terminal.col = 9
        self.renderer.show_suggestions(["query", "show"])
        self.assertEqual(
            self.output.getvalue(), "\x1b[1E\x1b[2Kquery  show\x1b[1F\x1b[10G"
        )

    def test_list_candidates(self) -> None:
        self.renderer.list_candidates(["remote", "reset"])
        self.assertEqual(self.output.getvalue(), "\x1b[1E\x1b[2Kremote  reset")

    def test_clear_below_leaves_cursor_in_place(self) -> None:
        self.renderer.clear_below()
        self.assertEqual(self.output.getvalue(), "\x1b7\x1b[1B\x1b[2K\x1b8")

    def test_clear_line(self) -> None:
        self.renderer.clear_line()
        self.assertEqual(self.output.getvalue(), "\x1b[1G\x1b[2K")

    def test_erase_and_replace_tail(self) -> None:
        self.renderer.erase_tail(0)
        self.renderer.replace_tail(3, "help")
        self.assertEqual(self.output.getvalue(), "\x1b[3D\x1b[0Khelp")

    def test_clear_screen_above(self) -> None:
        self.terminal.row = 7
        self.renderer.clear_screen_above()
        self.assertEqual(self.output.getvalue(), "\x1b[7S\x1b[7A")

    def test_clear_screen_on_top_row_does_nothing(self) -> None:
        self.terminal.row = 0
        self.renderer.clear_screen_above()
        self.assertEqual(self.output.getvalue(), "")

    def test_error_and_exception(self) -> None:
        self.renderer.error("Invalid input: zz")
        self.renderer.exception("unhandled command! 'remote'")
        self.assertEqual(
            self.output.getvalue(),
            "x Invalid input: zz\x1b[1E" "Exception: unhandled command! 'remote'\x1b[1E",
        )

    def test_write_failure_is_a_terminal_failure(self) -> None:
        console = Console(file=BrokenFile(), force_terminal=True, color_system=None)
        renderer = Renderer(console, self.terminal, ShellContext())
        with self.assertRaises(TerminalIOFailure):
            renderer.clear_line()


class FitTests(unittest.TestCase):
    def test_words_are_joined_with_two_spaces(self) -> None:
        self.assertEqual(_fit(["alpha", "beta"], 80), "alpha  beta")

    def test_overflowing_words_are_elided(self) -> None:
        self.assertEqual(_fit(["alpha", "beta", "gamma"], 12), "alpha  beta  ...")

    def test_empty(self) -> None:
        self.assertEqual(_fit([], 80), "")


if __name__ == "__main__":
    unittest.main()
