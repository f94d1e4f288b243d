"""Interactive shell package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import GerritShell, main
    from .editor import LineEditor

__all__ = ["GerritShell", "LineEditor", "main"]


def __getattr__(name: str) -> Any:
    if name in {"GerritShell", "main"}:
        from .app import GerritShell, main

        return {"GerritShell": GerritShell, "main": main}[name]
    if name == "LineEditor":
        from .editor import LineEditor

        return LineEditor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
