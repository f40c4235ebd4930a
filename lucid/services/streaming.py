"""Streaming text consumption.

``StreamConsumer`` drains a live text source into one growing string. Sources
are either pull based (any async iterable of strings) or push based (an object
whose ``get_reader()`` hands out a reader that must be released).
``TypingSimulator`` reveals a static string one character per tick instead.
The two are independent; each instance runs a single consumption at a time.
"""

import asyncio
import contextlib
import os
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from lucid.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReadResult:
    """One read from a push-based reader."""

    done: bool
    value: str | None = None


class StreamReader(Protocol):
    async def read(self) -> ReadResult: ...

    def release_lock(self) -> None: ...


@runtime_checkable
class ReadableSource(Protocol):
    """Push-based source; the reader it returns is reserved until released."""

    def get_reader(self) -> StreamReader: ...


StreamSource = AsyncIterable[str] | ReadableSource


@dataclass
class StreamConfig:
    """Configuration for streaming display state."""

    typing_interval: float = 0.03  # Seconds per revealed character
    cursor: bool = True
    cursor_char: str = "▋"

    @classmethod
    def from_env(cls) -> "StreamConfig":
        """Build a config from LUCID_TYPING_INTERVAL_MS and LUCID_CURSOR."""
        config = cls()
        interval_ms = os.getenv("LUCID_TYPING_INTERVAL_MS")
        if interval_ms:
            config.typing_interval = float(interval_ms) / 1000
        cursor = os.getenv("LUCID_CURSOR")
        if cursor:
            config.cursor = cursor.lower() not in ("0", "false", "no", "off")
        return config


class CancellationToken:
    """Cooperative cancellation flag checked before every fragment is applied."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class _TextReveal:
    """Accumulated text, activity flag, cursor and completion callback."""

    def __init__(self, config: StreamConfig | None = None, on_complete: Callable[[], None] | None = None):
        self.config = config or StreamConfig()
        self.on_complete = on_complete
        self._text = ""
        self._active = False
        self._token: CancellationToken | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def show_cursor(self) -> bool:
        """True exactly while text is still arriving and the cursor is enabled."""
        return self.config.cursor and self._active

    def render(self) -> str:
        """Current text with the cursor appended while active."""
        return self._text + self.config.cursor_char if self.show_cursor else self._text

    def cancel(self) -> None:
        """Abandon the current consumption; no callback fires and no more text is applied."""
        if self._token is not None:
            self._token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._active = False

    async def wait(self) -> None:
        """Wait for the current consumption to finish, however it ends."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def _begin(self) -> CancellationToken:
        self.cancel()
        token = CancellationToken()
        self._token = token
        self._text = ""
        return token

    def _notify(self, callback: Callable[..., None] | None, *args: object) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Stream callback {callback!r} failed: {e}", exc_info=True)


class StreamConsumer(_TextReveal):
    """Consumes a live text source into an accumulating buffer."""

    def __init__(
        self,
        config: StreamConfig | None = None,
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ):
        super().__init__(config, on_complete)
        self.on_error = on_error
        self._error: Exception | None = None

    @property
    def is_streaming(self) -> bool:
        return self._active

    @property
    def error(self) -> Exception | None:
        return self._error

    def start(self, source: StreamSource) -> asyncio.Task[None]:
        """Start consuming ``source``, cancelling any consumption already running.

        Must be called from a running event loop.
        """
        token = self._begin()
        self._error = None
        self._active = True
        self._task = asyncio.create_task(self._consume(source, token))
        return self._task

    async def _consume(self, source: StreamSource, token: CancellationToken) -> None:
        try:
            async with contextlib.aclosing(self._fragments(source)) as fragments:
                async for fragment in fragments:
                    # A fragment delivered after cancellation is discarded
                    if token.cancelled:
                        return
                    self._text += fragment
        except Exception as e:
            if token.cancelled:
                return
            logger.warning(f"Stream source failed after {len(self._text)} chars: {e}")
            self._error = e
            self._active = False
            self._notify(self.on_error, e)
            return

        if token.cancelled:
            return
        self._active = False
        self._notify(self.on_complete)

    async def _fragments(self, source: StreamSource) -> AsyncIterator[str]:
        if isinstance(source, ReadableSource):
            reader = source.get_reader()
            try:
                while True:
                    result = await reader.read()
                    if result.done:
                        break
                    if result.value:
                        yield result.value
            finally:
                reader.release_lock()
            return

        iterator = aiter(source)
        try:
            async for fragment in iterator:
                yield fragment
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()


class TypingSimulator(_TextReveal):
    """Reveals a static string one character per interval."""

    @property
    def is_typing(self) -> bool:
        return self._active

    def start(self, text: str, interval: float | None = None) -> asyncio.Task[None] | None:
        """Start revealing ``text``; an empty string resets without completing.

        Must be called from a running event loop.
        """
        token = self._begin()
        if not text:
            self._active = False
            self._task = None
            return None

        self._active = True
        tick = self.config.typing_interval if interval is None else interval
        self._task = asyncio.create_task(self._reveal(text, tick, token))
        return self._task

    async def _reveal(self, text: str, interval: float, token: CancellationToken) -> None:
        for index in range(len(text)):
            await asyncio.sleep(interval)
            if token.cancelled:
                return
            self._text = text[: index + 1]

        self._active = False
        self._notify(self.on_complete)
