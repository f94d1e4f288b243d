from __future__ import annotations

from dataclasses import dataclass, field

from rich.text import Text

from ..core.history import HistoryStore


@dataclass
class PromptStyle:
    """Prompt looks like ``prefix>``, where ``>`` is the symbol."""

    prefix: str = "gerrit"
    symbol: str = ">"
    prefix_style: str = ""
    symbol_style: str = "green"


@dataclass
class ShellContext:
    """State shared by every prompt of one shell process."""

    history: HistoryStore = field(default_factory=HistoryStore)
    style: PromptStyle = field(default_factory=PromptStyle)

    def prompt_text(self) -> Text:
        return Text.assemble(
            (self.style.prefix, self.style.prefix_style),
            (self.style.symbol, self.style.symbol_style),
        )
