from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class KeyKind(Enum):
    CHARACTER = "character"
    BACKSPACE = "backspace"
    TAB = "tab"
    ENTER = "enter"
    ARROW_UP = "up"
    ARROW_DOWN = "down"
    CTRL_C = "c-c"
    CTRL_D = "c-d"
    CTRL_L = "c-l"
    OTHER = "other"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""
    word: bool = False

    @classmethod
    def character(cls, char: str) -> "KeyEvent":
        return cls(KeyKind.CHARACTER, char=char)

    @classmethod
    def backspace(cls, word: bool = False) -> "KeyEvent":
        return cls(KeyKind.BACKSPACE, word=word)


class KeySource(Protocol):
    def read_event(self) -> KeyEvent:
        ...
