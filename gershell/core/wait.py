from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Any, Optional, Protocol, Union

from rich.text import Text

WARMUP_SECONDS = 1.0
TICK_SECONDS = 0.2
TICK_GLYPH = "."


class TickSurface(Protocol):
    def write(self, content: Union[str, Text]) -> None:
        ...

    def clear_line(self) -> None:
        ...


class ProgressIndicator:
    """Print a tick every interval while a remote call is outstanding.

    ``stop`` waits for the ticking task to finish before it clears the line,
    so no tick can land on the line after it has been cleared.
    """

    def __init__(
        self,
        surface: TickSurface,
        *,
        glyph: str = TICK_GLYPH,
        warmup: float = WARMUP_SECONDS,
        interval: float = TICK_SECONDS,
    ) -> None:
        self.surface = surface
        self.glyph = glyph
        self.warmup = warmup
        self.interval = interval
        self.ticks = 0
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def __aenter__(self) -> "ProgressIndicator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.ticks = 0
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self._running:
            return
        self._stop_event.set()
        if self._task:
            with suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._running = False
        self.surface.clear_line()

    async def _wait_stop(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        if await self._wait_stop(self.warmup):
            return
        while not self._stop_event.is_set():
            self.surface.write(self.glyph)
            self.ticks += 1
            if await self._wait_stop(self.interval):
                return
