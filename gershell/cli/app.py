from __future__ import annotations

import argparse
import asyncio
import errno
from typing import List, Optional, Protocol

from rich.console import Console
from rich.text import Text

from ..config import ConfigError, GershellPaths, Settings, load_settings
from ..core.session_log import (
    SessionLogger,
    log_command,
    log_error,
    log_event,
    log_exception,
    set_active_logger,
)
from ..core.wait import ProgressIndicator
from ..remote.client import ChangeInfo, GerritClient, GerritError
from .change_view import change_detail, change_row
from .commands import (
    ArgumentSpec,
    CommandAction,
    CommandCall,
    CommandNode,
    command_root,
    help_command,
    help_lines,
    locate,
)
from .context import PromptStyle, ShellContext
from .editor import LineEditor
from .keys import KeyEvent
from .render import Renderer, TerminalProbe
from .session import TerminalIOFailure, TerminalSession

EXIT_CODE_CONFIG = 3
EXIT_CODE_TERMINAL = 4

WELCOME_LINE = "Gerrit command-line interface"

QUERY_FILTERS = frozenset(
    {"owner:self", "is:open", "is:wip", "-owner:self", "-is:open", "-is:wip"}
)


class ChangeSource(Protocol):
    async def query(self, terms: List[str]) -> List[ChangeInfo]:
        ...

    async def get(self, change_id: str) -> ChangeInfo:
        ...

    async def aclose(self) -> None:
        ...


class ShellTerminal(TerminalProbe, Protocol):
    def __enter__(self) -> "ShellTerminal":
        ...

    def __exit__(self, *exc_info: object) -> None:
        ...

    def read_event(self) -> KeyEvent:
        ...


class GerritShell:
    """Interactive shell: read a command with the line editor, then dispatch it.

    Sub-trees with their own commands (``change``) can be entered as a mode;
    while a mode is active the prompt reads ``gerrit change>`` and the mode's
    commands are reachable without the ``change`` prefix.
    """

    def __init__(
        self,
        settings: Settings,
        console: Optional[Console] = None,
        *,
        client: Optional[ChangeSource] = None,
        terminal: Optional[ShellTerminal] = None,
        context: Optional[ShellContext] = None,
    ) -> None:
        self.settings = settings
        self.console = console or Console()
        self.client: ChangeSource = client or GerritClient(settings)
        self.terminal: ShellTerminal = terminal or TerminalSession(self.console)
        self.context = context or ShellContext(
            style=PromptStyle(prefix=settings.prompt_prefix, symbol=settings.prompt_symbol)
        )
        self.renderer = Renderer(self.console, self.terminal, self.context)
        self.editor = LineEditor(self.context, self.renderer, self.terminal)
        self.tree = self.build_tree()
        self._modes: List[CommandNode] = []
        self._changes: List[ChangeInfo] = []

    def build_tree(self) -> CommandNode:
        change = CommandNode(
            "change",
            "Change related commands",
            children=(
                CommandNode(
                    "show",
                    "Show a change by number, or by $N from the last query",
                    argument=ArgumentSpec("ID", required=True),
                    handler=self._show_change,
                ),
                CommandNode(
                    "query",
                    "Query changes",
                    argument=ArgumentSpec("QUERY", values=QUERY_FILTERS, multiple=True),
                    handler=self._query_changes,
                ),
                help_command(self._help),
                CommandNode("exit", "Exit from current mode", handler=self._exit_mode),
                CommandNode("quit", "Quit the program", handler=self._quit),
            ),
            handler=self._enter_mode,
        )
        return command_root(
            "gerrit",
            CommandNode("remote", "Show the configured remote", handler=self._remote),
            CommandNode("reset", "Forget the cached query results", handler=self._reset),
            change,
            quit_handler=self._quit,
            help_handler=self._help,
        )

    @property
    def current_root(self) -> CommandNode:
        return self._modes[-1] if self._modes else self.tree

    @property
    def cached_changes(self) -> List[ChangeInfo]:
        return list(self._changes)

    def run(self) -> int:
        """Read and dispatch commands on the calling thread until ``quit``.

        Key reads block this thread; only the handlers run on the event loop,
        so a signal raised during a read unwinds straight through the session.
        """
        loop = asyncio.new_event_loop()
        try:
            with self.terminal:
                return self.loop(loop)
        finally:
            try:
                loop.run_until_complete(self.client.aclose())
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                loop.close()

    def loop(self, loop: asyncio.AbstractEventLoop) -> int:
        self.renderer.println(WELCOME_LINE)
        while True:
            tokens = self.editor.run(self.current_root)
            action = loop.run_until_complete(self.dispatch(tokens))
            if action is CommandAction.QUIT:
                return 0

    async def dispatch(self, tokens: List[str]) -> CommandAction:
        if not tokens:
            return CommandAction.CONTINUE
        root = self.current_root
        path, args = locate(root, tokens)
        log_command("cli", tokens)
        if not path or path[-1].handler is None:
            log_error("cli", "command.unhandled", " ".join(tokens))
            self.renderer.exception(f"unhandled command! '{' '.join(tokens)}'")
            return CommandAction.CONTINUE
        return await path[-1].handler(CommandCall(root, path, args))

    def _update_prompt(self) -> None:
        names = [mode.name for mode in self._modes]
        self.context.style.prefix = " ".join([self.settings.prompt_prefix, *names])

    async def _quit(self, call: CommandCall) -> CommandAction:
        return CommandAction.QUIT

    async def _help(self, call: CommandCall) -> CommandAction:
        for line in help_lines(call.scope):
            self.renderer.println(line)
        self.renderer.advance_line(1)
        return CommandAction.CONTINUE

    async def _enter_mode(self, call: CommandCall) -> CommandAction:
        self._modes.append(call.command)
        self._update_prompt()
        log_event("cli", "debug", "mode.enter", call.command.name)
        return CommandAction.ENTER_MODE

    async def _exit_mode(self, call: CommandCall) -> CommandAction:
        if not self._modes:
            return CommandAction.CONTINUE
        mode = self._modes.pop()
        self._update_prompt()
        log_event("cli", "debug", "mode.exit", mode.name)
        return CommandAction.EXIT_MODE

    async def _remote(self, call: CommandCall) -> CommandAction:
        if self.settings.gerrit_url:
            self.renderer.println(f"remote url: {self.settings.gerrit_url}")
        else:
            self.renderer.println("no remotes configured")
        return CommandAction.CONTINUE

    async def _reset(self, call: CommandCall) -> CommandAction:
        self._changes = []
        self.renderer.println("cleared cached changes")
        return CommandAction.CONTINUE

    async def _query_changes(self, call: CommandCall) -> CommandAction:
        try:
            async with ProgressIndicator(self.renderer):
                changes = await self.client.query(call.args)
        except GerritError as exc:
            self._request_failed(exc)
            return CommandAction.CONTINUE
        self._changes = changes
        if not changes:
            self.renderer.println("no changes")
        for index, change in enumerate(changes, start=1):
            self.renderer.println(change_row(index, change))
        return CommandAction.CONTINUE

    async def _show_change(self, call: CommandCall) -> CommandAction:
        raw = call.args[0]
        by_index = raw.startswith("$")
        digits = raw[1:] if by_index else raw
        if not digits.isdigit():
            self.renderer.println("Argument is not a number")
            return CommandAction.CONTINUE
        number = int(digits)
        if by_index:
            if not 1 <= number <= len(self._changes):
                self.renderer.println("ID out of bounds")
                return CommandAction.CONTINUE
            change_id = str(self._changes[number - 1].number)
        else:
            change_id = str(number)
        try:
            async with ProgressIndicator(self.renderer):
                change = await self.client.get(change_id)
        except GerritError as exc:
            self._request_failed(exc)
            return CommandAction.CONTINUE
        for line in change_detail(change):
            self.renderer.println(line)
        return CommandAction.CONTINUE

    def _request_failed(self, exc: GerritError) -> None:
        log_exception("remote", exc)
        self.renderer.error(f"Request failed: {exc}")


def main() -> None:
    parser = argparse.ArgumentParser(description="gershell - interactive Gerrit code review shell")
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    args = parser.parse_args()
    if args.version:
        from gershell import __version__

        print(f"gershell {__version__}")
        return

    console = Console()
    paths = GershellPaths()
    try:
        settings = load_settings(paths)
        settings.require()
    except ConfigError as exc:
        console.print(Text(str(exc), style="red"))
        raise SystemExit(EXIT_CODE_CONFIG)

    logger = SessionLogger(paths, settings.debug)
    set_active_logger(logger)
    try:
        code = GerritShell(settings, console).run()
    except TerminalIOFailure as exc:
        log_exception("cli", exc)
        console.print(Text(f"Terminal error: {exc}", style="red"))
        raise SystemExit(EXIT_CODE_TERMINAL)
    except BrokenPipeError:
        return
    except KeyboardInterrupt:
        return
    except OSError as exc:
        if exc.errno == errno.EPIPE:
            return
        log_exception("cli", exc)
        raise
    finally:
        logger.close()
        set_active_logger(None)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
