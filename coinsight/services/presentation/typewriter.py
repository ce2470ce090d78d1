"""Character-by-character reveal of the AI summary."""

from __future__ import annotations

import asyncio
import contextlib
import re
from typing import Callable, Optional

_BOLD = re.compile(r"(\*\*|__)(.*?)\1")
_ITALIC = re.compile(r"(\*|_)(.*?)\1")


def strip_markdown(text: str) -> str:
    """Drop bold/italic emphasis markers, keep the wrapped text."""
    plain = _BOLD.sub(r"\2", text)
    return _ITALIC.sub(r"\2", plain)


class TypewriterRenderer:
    """Reveals one character per tick on the running event loop.

    - start() cancels the previous reveal and restarts from zero
    - the reveal task ends at full length, it never repeats
    - on_update (if provided) receives the visible text after every tick
    """

    def __init__(
        self,
        interval_sec: float = 0.03,
        on_update: Optional[Callable[[str], None]] = None,
    ) -> None:
        if interval_sec < 0:
            raise ValueError("interval_sec must be >= 0")
        self._interval = interval_sec
        self._on_update = on_update
        self._text = ""
        self._visible = 0
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def visible(self) -> int:
        return self._visible

    @property
    def displayed(self) -> str:
        return self._text[: self._visible]

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_complete(self) -> bool:
        return self._visible >= len(self._text)

    def start(self, text: str) -> None:
        self.stop()
        self._text = strip_markdown(text or "")
        self._visible = 0
        if self._on_update:
            self._on_update("")
        if not self._text:
            return
        self._task = asyncio.get_running_loop().create_task(self._reveal())

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _reveal(self) -> None:
        while self._visible < len(self._text):
            await asyncio.sleep(self._interval)
            self._visible += 1
            if self._on_update:
                self._on_update(self.displayed)
