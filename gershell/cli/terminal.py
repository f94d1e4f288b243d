"""
Cross-platform terminal control module.

Provides raw-mode switching and non-blocking input polling for both
Unix/Linux/macOS and Windows.
On Unix systems, uses termios/tty.
On Windows, uses kernel32 console modes and msvcrt.
"""

import sys
import time
from dataclasses import dataclass
from typing import Any, Optional

if sys.platform == "win32":
    import ctypes
    import msvcrt
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)

    STD_INPUT_HANDLE = -10
    ENABLE_PROCESSED_INPUT = 0x0001
    ENABLE_LINE_INPUT = 0x0002
    ENABLE_ECHO_INPUT = 0x0004
    ENABLE_QUICK_EDIT_MODE = 0x0040
    ENABLE_EXTENDED_FLAGS = 0x0080
    ENABLE_VIRTUAL_TERMINAL_INPUT = 0x0200

    kernel32.GetStdHandle.argtypes = [wintypes.DWORD]
    kernel32.GetStdHandle.restype = wintypes.HANDLE
    kernel32.GetConsoleMode.argtypes = [wintypes.HANDLE, wintypes.LPDWORD]
    kernel32.GetConsoleMode.restype = wintypes.BOOL
    kernel32.SetConsoleMode.argtypes = [wintypes.HANDLE, wintypes.DWORD]
    kernel32.SetConsoleMode.restype = wintypes.BOOL

    @dataclass(frozen=True)
    class _TerminalSettings:
        handle: int
        mode: int

    def _input_handle() -> int:
        handle = kernel32.GetStdHandle(STD_INPUT_HANDLE)
        if handle is None or handle == wintypes.HANDLE(-1).value:
            raise OSError("Failed to get Windows console handle")
        return int(handle)

    def tcgetattr(fd: int) -> _TerminalSettings:
        """Get terminal settings (Windows)."""
        handle = _input_handle()
        mode = wintypes.DWORD()
        if not kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
            raise OSError("Failed to read Windows console mode")
        return _TerminalSettings(handle=handle, mode=mode.value)

    def tcsetattr(fd: int, when: int, settings: _TerminalSettings) -> None:
        """Set terminal settings (Windows)."""
        if not kernel32.SetConsoleMode(settings.handle, settings.mode):
            raise OSError("Failed to restore Windows console mode")

    def setraw(fd: int) -> None:
        """Set terminal to raw mode with VT input sequences (Windows)."""
        settings = tcgetattr(fd)
        mode = settings.mode
        mode &= ~(
            ENABLE_PROCESSED_INPUT
            | ENABLE_LINE_INPUT
            | ENABLE_ECHO_INPUT
            | ENABLE_QUICK_EDIT_MODE
        )
        mode |= ENABLE_EXTENDED_FLAGS | ENABLE_VIRTUAL_TERMINAL_INPUT
        if not kernel32.SetConsoleMode(settings.handle, mode):
            raise OSError("Failed to set Windows console mode")

    TCSADRAIN = 0  # Dummy value for Windows compatibility
    TerminalError = OSError

    def kbhit(timeout: Optional[float] = 0) -> bool:
        """Wait up to ``timeout`` seconds for a keypress, forever if None (Windows)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not msvcrt.kbhit():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def read_input() -> str:
        """Read every pending character from the console (Windows)."""
        chars = [msvcrt.getwch()]
        while msvcrt.kbhit():
            chars.append(msvcrt.getwch())
        return "".join(chars)

else:
    import codecs
    import os
    import select
    import termios
    import tty

    _TerminalSettings = Any  # type: ignore[misc]
    tcgetattr = termios.tcgetattr  # type: ignore[assignment]
    tcsetattr = termios.tcsetattr  # type: ignore[assignment]
    TCSADRAIN = termios.TCSADRAIN
    TerminalError = termios.error
    setraw = tty.setraw  # type: ignore[assignment]

    _decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def kbhit(timeout: Optional[float] = 0) -> bool:
        """Wait up to ``timeout`` seconds for a keypress, forever if None (Unix)."""
        return select.select([sys.stdin], [], [], timeout)[0] != []

    def read_input() -> str:
        """Read the bytes currently pending on stdin (Unix)."""
        data = os.read(sys.stdin.fileno(), 1024)
        if not data:
            raise EOFError("stdin closed")
        return _decoder.decode(data)


__all__ = [
    "tcgetattr",
    "tcsetattr",
    "TCSADRAIN",
    "TerminalError",
    "setraw",
    "kbhit",
    "read_input",
    "_TerminalSettings",
]
