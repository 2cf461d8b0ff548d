import asyncio
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from typing import Awaitable, Callable, Deque, Optional, Tuple

from .utils import remove_lines_to_fit_len

Sender = Callable[[str], Awaitable[None]]


class DiscordLogHandler(logging.Handler):
    """
    Logging handler that forwards warnings and errors to an operator webhook.

    Records are buffered until an asyncio event loop is registered (see
    `set_event_loop`), then delivered by scheduling `send` calls on that loop.
    Delivery is throttled and repeated messages are dropped, so an error storm
    does not turn into a message storm.
    """

    MAX_MESSAGE_BODY = 1800  # leave headroom for the header and code fence
    MAX_DISCORD_LENGTH = 2000

    def __init__(
        self,
        send: Sender,
        *,
        throttling_window: float = 60.0,
        throttling_capacity: int = 10,
        dedupe_window: float = 15.0,
    ) -> None:
        super().__init__(level=logging.WARNING)
        self._send_text = send
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()
        self._pending: Deque[Tuple[str, logging.LogRecord]] = deque(maxlen=50)
        self._sent_timestamps: Deque[float] = deque(maxlen=throttling_capacity)
        self._throttling_window = throttling_window
        self._dedupe_window = dedupe_window
        self._last_text: Optional[str] = None
        self._last_sent_at: float = 0.0

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the delivery loop and flush buffered records"""
        with self._lock:
            self._loop = loop
            pending = list(self._pending)
            self._pending.clear()

        for text, record in pending:
            self._enqueue(text, record)

    def emit(self, record: logging.LogRecord) -> None:
        # Skip logs emitted by this handler and the HTTP client to prevent recursion
        if record.name.startswith((__name__, "proxybot.common.discord_rest")):
            return

        try:
            text = self._render_message(record)
        except Exception:
            self.handleError(record)
            return

        with self._lock:
            if self._loop is None:
                self._pending.append((text, record))
                return

        self._enqueue(text, record)

    def _enqueue(self, text: str, record: logging.LogRecord) -> None:
        with self._lock:
            loop = self._loop
            if loop is None:
                self._pending.append((text, record))
                return

            if self._should_dedupe(text):
                return

            if not self._allow_throughput():
                return

            now = time.monotonic()
            self._last_text = text
            self._last_sent_at = now
            self._sent_timestamps.append(now)

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is loop:
            task = loop.create_task(self._send_text(text))
            task.add_done_callback(lambda t: self._on_done(t, record))
        else:
            future: Future = asyncio.run_coroutine_threadsafe(self._send_text(text), loop)
            future.add_done_callback(lambda f: self._on_done(f, record))

    def _render_message(self, record: logging.LogRecord) -> str:
        body = self.format(record).replace("```", "'''")
        body = remove_lines_to_fit_len(body, self.MAX_MESSAGE_BODY)

        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created))
        header = f"**{record.levelname}** · `{record.name}` · `{timestamp}`"

        text = f"{header}\n```\n{body}\n```"
        if len(text) > self.MAX_DISCORD_LENGTH:
            text = text[: self.MAX_DISCORD_LENGTH - 1] + "…"
        return text

    def _on_done(self, future, record: logging.LogRecord) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc:
            record.exc_info = (exc.__class__, exc, exc.__traceback__)
            self.handleError(record)

    def _allow_throughput(self) -> bool:
        now = time.monotonic()
        while (
            self._sent_timestamps
            and now - self._sent_timestamps[0] > self._throttling_window
        ):
            self._sent_timestamps.popleft()
        limit = self._sent_timestamps.maxlen or 0
        if limit <= 0:
            return True
        return len(self._sent_timestamps) < limit

    def _should_dedupe(self, text: str) -> bool:
        if not self._last_text:
            return False
        if text != self._last_text:
            return False
        return (time.monotonic() - self._last_sent_at) < self._dedupe_window
