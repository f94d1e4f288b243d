"""Shell-like line editing on top of raw key events.

The editor owns the text typed after the prompt, walks the command tree as
the user types and keeps the screen in step with the buffer. Editing only
ever appends to or removes from the end of the buffer.
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..core.history import HistoryStore, ScrollCursor
from ..core.session_log import log_event
from .commands import ArgumentSpec, CommandNode
from .context import ShellContext
from .keys import KeyEvent, KeyKind, KeySource
from .matcher import PrefixMatcher, build
from .render import Renderer

EXIT_DIRECTIVE = ["exit"]

_SEPARATORS = frozenset(string.punctuation + string.whitespace)
_TOKEN_RE = re.compile(r"\S+")


def find_last_word_boundary(text: str) -> int:
    """Index where an Alt+Backspace should cut ``text``.

    Trailing separators are removed on their own (``"show "`` -> ``"show"``).
    Otherwise the last word goes together with the separator run in front of
    it (``"change show"`` -> ``"change"``). A string without a separator
    boundary is removed entirely.
    """
    end = len(text)
    idx = end
    while idx > 0 and text[idx - 1] in _SEPARATORS:
        idx -= 1
    if idx < end:
        return idx
    while idx > 0 and text[idx - 1] not in _SEPARATORS:
        idx -= 1
    while idx > 0 and text[idx - 1] in _SEPARATORS:
        idx -= 1
    return idx


class InputError(Exception):
    """Typed line does not fit the command tree.

    ``line`` is the buffer with every completion made before the failure.
    """

    def __init__(self, message: str, line: str) -> None:
        super().__init__(message)
        self.line = line


class UnknownToken(InputError):
    def __init__(self, token: str, line: str) -> None:
        super().__init__(f"Invalid input: {token}", line)
        self.token = token


class AmbiguousInput(InputError):
    def __init__(self, token: str, candidates: List[str], line: str) -> None:
        super().__init__(f"Ambiguous input: {token} ({', '.join(candidates)})", line)
        self.token = token
        self.candidates = candidates


class MissingRequiredArgument(InputError):
    def __init__(self, command: CommandNode, argument: ArgumentSpec, line: str) -> None:
        super().__init__(f"Missing argument {argument.placeholder} for '{command.name}'", line)
        self.command = command
        self.argument = argument


@dataclass(frozen=True)
class Token:
    text: str
    start: int
    terminated: bool

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def split_tokens(text: str) -> List[Token]:
    return [
        Token(match.group(), match.start(), match.end() < len(text))
        for match in _TOKEN_RE.finditer(text)
    ]


class Outcome(Enum):
    RESOLVED = "resolved"
    SUSPENDED = "suspended"
    BROWSE = "browse"


@dataclass
class Resolution:
    outcome: Outcome
    line: str
    tokens: List[str]
    node: CommandNode
    argument_given: bool
    candidates: List[str] = field(default_factory=list)

    def missing_argument(self) -> Optional[ArgumentSpec]:
        argument = self.node.argument
        if argument is not None and argument.required and not self.argument_given:
            return argument
        return None


def offers_next_words(node: CommandNode, argument_given: bool) -> bool:
    """True while a trailing space at ``node`` should list what may follow.

    A repeatable slot counts as filled once it holds one value.
    """
    return bool(node.children) or (node.argument is not None and not argument_given)


@dataclass
class BufferState:
    cursor: ScrollCursor
    text: str = ""
    resolved_prefix_len: int = 0
    suggestion_visible: bool = False

    def set_text(self, text: str) -> None:
        self.text = text
        if len(text) < self.resolved_prefix_len:
            self.resolved_prefix_len = 0


class LineEditor:
    def __init__(self, context: ShellContext, renderer: Renderer, keys: KeySource) -> None:
        self.context = context
        self.renderer = renderer
        self.keys = keys
        self._matchers: Dict[Tuple[CommandNode, bool], PrefixMatcher] = {}

    @property
    def history(self) -> HistoryStore:
        return self.context.history

    def run(self, root: CommandNode) -> List[str]:
        """Prompt until a line resolves against ``root``; return its canonical tokens."""
        state = BufferState(cursor=self.history.new_cursor())
        self.renderer.prompt()
        while True:
            tokens = self.handle(self.keys.read_event(), root, state)
            if tokens is not None:
                return tokens

    def handle(self, event: KeyEvent, root: CommandNode, state: BufferState) -> Optional[List[str]]:
        kind = event.kind
        if kind is KeyKind.CHARACTER:
            state.text += event.char
            self.renderer.write(event.char)
        elif kind is KeyKind.BACKSPACE:
            self._backspace(state, event.word)
        elif kind is KeyKind.TAB:
            self._tab(state, root)
        elif kind is KeyKind.ENTER:
            return self._enter(state, root)
        elif kind is KeyKind.ARROW_UP:
            self._history_up(state)
        elif kind is KeyKind.ARROW_DOWN:
            self._history_down(state)
        elif kind is KeyKind.CTRL_C:
            self._dismiss_suggestion(state)
            self.renderer.write("^C")
            self.renderer.advance_line(1)
            self.renderer.prompt()
            state.set_text("")
        elif kind is KeyKind.CTRL_D:
            if not state.text:
                self._dismiss_suggestion(state)
                self.renderer.write("^D")
                self.renderer.advance_line(1)
                return list(EXIT_DIRECTIVE)
        elif kind is KeyKind.CTRL_L:
            self.renderer.clear_screen_above()
        return None

    def resolve(self, text: str, root: CommandNode) -> Resolution:
        """Walk ``text`` token by token down the tree, completing unique prefixes.

        Raises UnknownToken or AmbiguousInput when a token cannot be placed.
        """
        node = root
        line = text
        shift = 0
        tokens: List[str] = []
        argument_given = False
        for token in split_tokens(text):
            slot = self._open_slot(node, argument_given)
            if slot is not None and slot.values is None and not node.children:
                tokens.append(token.text)
                argument_given = True
                continue
            found = self._matcher(node, slot is not None).matches(token.text)
            if token.text in found:
                found = {token.text}
            if not found:
                if slot is not None and slot.values is None:
                    tokens.append(token.text)
                    argument_given = True
                    continue
                raise UnknownToken(token.text, line)
            if len(found) > 1:
                candidates = sorted(found)
                if token.terminated:
                    raise AmbiguousInput(token.text, candidates, line)
                return Resolution(Outcome.SUSPENDED, text, tokens, node, argument_given, candidates)
            (word,) = found
            if len(token.text) < len(word):
                cut = token.end + shift
                line = line[:cut] + word[len(token.text) :] + line[cut:]
                shift += len(word) - len(token.text)
            tokens.append(word)
            child = node.child(word)
            if child is not None:
                node = child
                argument_given = False
            else:
                argument_given = True

        if text[-1:].isspace() and offers_next_words(node, argument_given):
            slot = self._open_slot(node, argument_given)
            return Resolution(
                Outcome.BROWSE, line, tokens, node, argument_given, self._next_words(node, slot)
            )
        return Resolution(Outcome.RESOLVED, line, tokens, node, argument_given)

    def _open_slot(self, node: CommandNode, argument_given: bool) -> Optional[ArgumentSpec]:
        argument = node.argument
        if argument is None or (argument_given and not argument.multiple):
            return None
        return argument

    def _matcher(self, node: CommandNode, with_argument: bool) -> PrefixMatcher:
        key = (node, with_argument)
        matcher = self._matchers.get(key)
        if matcher is None:
            vocabulary = set(node.child_words())
            if with_argument and node.argument is not None and node.argument.values:
                vocabulary.update(node.argument.values)
            matcher = build(vocabulary)
            self._matchers[key] = matcher
        return matcher

    def _next_words(self, node: CommandNode, slot: Optional[ArgumentSpec]) -> List[str]:
        words = sorted(self._matcher(node, slot is not None).matches(""))
        if slot is not None and slot.values is None:
            words.append(slot.placeholder)
        return words

    def _backspace(self, state: BufferState, word: bool) -> None:
        if not state.text:
            return
        if word:
            cut = find_last_word_boundary(state.text)
        else:
            cut = len(state.text) - 1
        count = len(state.text) - cut
        state.set_text(state.text[:cut])
        self.renderer.erase_tail(count)
        self._dismiss_suggestion(state)

    def _tab(self, state: BufferState, root: CommandNode) -> None:
        self._dismiss_suggestion(state)
        if not state.text:
            return
        if state.resolved_prefix_len == len(state.text):
            return
        try:
            resolution = self.resolve(state.text, root)
        except InputError:
            return
        if resolution.outcome is not Outcome.RESOLVED:
            self.renderer.show_suggestions(resolution.candidates)
            state.suggestion_visible = True
            return
        line = resolution.line
        if not line[-1:].isspace():
            line += " "
        if line != state.text:
            state.set_text(line)
            self.renderer.redraw(line)
        if not offers_next_words(resolution.node, resolution.argument_given):
            state.resolved_prefix_len = len(line)

    def _enter(self, state: BufferState, root: CommandNode) -> Optional[List[str]]:
        self._dismiss_suggestion(state)
        if not state.text:
            self.renderer.prompt()
            return None
        try:
            resolution = self.resolve(state.text, root)
        except InputError as exc:
            self._reject(state, exc)
            return None
        if resolution.outcome is not Outcome.RESOLVED:
            self.renderer.list_candidates(resolution.candidates)
            self.renderer.prompt()
            self.renderer.write(state.text)
            return None

        self.renderer.redraw(resolution.line)
        # the line below may still hold a suggestion list
        self.renderer.advance_line(1)
        self.renderer.clear_line()
        self.history.append(resolution.line.strip())
        argument = resolution.missing_argument()
        if argument is not None:
            exc = MissingRequiredArgument(resolution.node, argument, resolution.line)
            log_event("editor", "warn", "input.rejected", str(exc))
            self.renderer.println(str(exc))
            self.renderer.prompt()
            state.set_text("")
            return None
        return resolution.tokens

    def _reject(self, state: BufferState, exc: InputError) -> None:
        log_event("editor", "warn", "input.rejected", str(exc))
        self.renderer.advance_line(1)
        self.renderer.error(str(exc))
        self.renderer.prompt()
        self.history.append(exc.line.strip())
        state.set_text("")

    def _history_up(self, state: BufferState) -> None:
        line = self.history.previous(state.cursor)
        if line is None:
            return
        if state.cursor.pending_snapshot is None:
            state.cursor.pending_snapshot = state.text
        self._replace(state, line)

    def _history_down(self, state: BufferState) -> None:
        line = self.history.next(state.cursor)
        if line is None:
            if state.cursor.pending_snapshot is None:
                return
            line, state.cursor.pending_snapshot = state.cursor.pending_snapshot, None
        self._replace(state, line)

    def _replace(self, state: BufferState, text: str) -> None:
        self._dismiss_suggestion(state)
        old_length = len(state.text)
        state.set_text(text)
        state.resolved_prefix_len = 0
        self.renderer.replace_tail(old_length, text)

    def _dismiss_suggestion(self, state: BufferState) -> None:
        if state.suggestion_visible:
            self.renderer.clear_below()
            state.suggestion_visible = False
