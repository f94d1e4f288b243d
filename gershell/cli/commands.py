from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple


class CommandAction(Enum):
    CONTINUE = "continue"
    QUIT = "quit"
    ENTER_MODE = "enter_mode"
    EXIT_MODE = "exit_mode"


CommandHandler = Callable[["CommandCall"], Awaitable[CommandAction]]


@dataclass(frozen=True)
class ArgumentSpec:
    """Positional slot that consumes tokens as values instead of subcommands.

    ``values`` of ``None`` accepts any token verbatim. ``multiple`` keeps the
    slot open after the first value.
    """

    name: str
    values: Optional[FrozenSet[str]] = None
    required: bool = False
    multiple: bool = False

    @property
    def placeholder(self) -> str:
        return f"<{self.name}>"


@dataclass(frozen=True, eq=False)
class CommandNode:
    name: str
    description: str = ""
    aliases: Tuple[str, ...] = ()
    children: Tuple["CommandNode", ...] = ()
    argument: Optional[ArgumentSpec] = None
    handler: Optional[CommandHandler] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        seen: Dict[str, str] = {}
        for child in self.children:
            for word in child.words:
                if word in seen:
                    raise ValueError(
                        f"'{word}' is used by both '{seen[word]}' and '{child.name}' under '{self.name}'"
                    )
                seen[word] = child.name

    @property
    def words(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)

    def child(self, word: str) -> Optional["CommandNode"]:
        for child in self.children:
            if word in child.words:
                return child
        return None

    def child_words(self) -> List[str]:
        return [word for child in self.children for word in child.words]


@dataclass
class CommandCall:
    """A resolved command line: the command path below ``root`` plus argument values."""

    root: CommandNode
    path: List[CommandNode]
    args: List[str]

    @property
    def command(self) -> CommandNode:
        return self.path[-1]

    @property
    def scope(self) -> CommandNode:
        """Node whose children are the siblings of the invoked command."""
        return self.path[-2] if len(self.path) > 1 else self.root


def quit_command(handler: Optional[CommandHandler] = None) -> CommandNode:
    return CommandNode("quit", "Quit the program", aliases=("exit",), handler=handler)


def help_command(handler: Optional[CommandHandler] = None) -> CommandNode:
    return CommandNode("help", "Print command help", aliases=("?",), handler=handler)


def command_root(
    name: str,
    *children: CommandNode,
    quit_handler: Optional[CommandHandler] = None,
    help_handler: Optional[CommandHandler] = None,
) -> CommandNode:
    """Build a top-level node that always offers ``quit``/``exit`` and ``help``/``?``."""
    taken = {word for child in children for word in child.words}
    builtins = []
    if not taken & {"quit", "exit"}:
        builtins.append(quit_command(quit_handler))
    if not taken & {"help", "?"}:
        builtins.append(help_command(help_handler))
    return CommandNode(name, children=(*builtins, *children))


def locate(root: CommandNode, tokens: List[str]) -> Tuple[List[CommandNode], List[str]]:
    """Split canonical ``tokens`` into the command path and its argument values."""
    path: List[CommandNode] = []
    node = root
    for idx, token in enumerate(tokens):
        child = node.child(token)
        if child is None:
            return path, tokens[idx:]
        path.append(child)
        node = child
    return path, []


def help_lines(node: CommandNode) -> List[str]:
    entries = []
    for child in node.children:
        label = child.name
        if child.aliases:
            label = f"{label} ({', '.join(child.aliases)})"
        if child.argument is not None:
            label = f"{label} {child.argument.placeholder}"
        entries.append((label, child.description))
    width = max((len(label) for label, _ in entries), default=0)
    return [f" {label.ljust(width)}  {description}".rstrip() for label, description in entries]
