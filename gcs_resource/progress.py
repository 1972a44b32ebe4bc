from __future__ import annotations
"""Progress reporting for streamed transfers."""
import io
import logging
import time
from typing import BinaryIO, Callable, Optional

from .settings import DEFAULT_PROGRESS_WIDTH

LOGGER = logging.getLogger(__name__)

MIN_BAR_WIDTH = 10


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.2f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def render_progress(transferred: int, total: int, elapsed: float, width: int = DEFAULT_PROGRESS_WIDTH) -> str:
    """Render a single progress line of at most ``width`` characters.

    An empty source (``total == 0``) is reported as complete.
    """
    fraction = 1.0 if total <= 0 else min(max(transferred / total, 0.0), 1.0)
    speed = transferred / elapsed if elapsed > 0 else 0.0
    counts = f"{format_size(transferred)} / {format_size(total)}"
    suffix = f" {fraction * 100:6.2f}% {format_size(int(speed))}/s"
    bar_width = max(width - len(counts) - len(suffix) - 3, MIN_BAR_WIDTH)
    filled = int(bar_width * fraction)
    if filled >= bar_width:
        bar = "=" * bar_width
    else:
        bar = "=" * filled + ">" + " " * (bar_width - filled - 1)
    return f"{counts} [{bar}]{suffix}"


class ProgressBar:
    """Writes progress lines for a transfer of known size to a sink.

    The sink may be a text or a binary stream, or ``None`` to discard output.
    Sink failures never interrupt the transfer; output is disabled instead.
    """

    def __init__(
        self,
        total: int,
        output: Optional[io.IOBase] = None,
        *,
        width: int = DEFAULT_PROGRESS_WIDTH,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.total = max(int(total), 0)
        self.transferred = 0
        self._output = output
        self._width = width
        self._clock = clock
        self._started_at: float | None = None

    def start(self) -> None:
        self._started_at = self._clock()
        self._render()

    def set(self, transferred: int) -> None:
        self.transferred = max(int(transferred), 0)
        self._render()

    def add(self, amount: int) -> None:
        self.set(self.transferred + amount)

    def finish(self) -> None:
        self._render()
        self._write("\n")

    def _render(self) -> None:
        if self._output is None:
            return
        started = self._started_at if self._started_at is not None else self._clock()
        line = render_progress(self.transferred, self.total, self._clock() - started, self._width)
        self._write("\r" + line)

    def _write(self, text: str) -> None:
        if self._output is None:
            return
        try:
            try:
                self._output.write(text)
            except TypeError:
                self._output.write(text.encode("utf-8"))
            self._output.flush()
        except (OSError, ValueError, TypeError) as exc:
            LOGGER.debug("Disabling progress output: %s", exc)
            self._output = None


class ProgressReader:
    """Read-only proxy over a binary stream that reports bytes read."""

    def __init__(self, stream: BinaryIO, progress: ProgressBar):
        self._stream = stream
        self._progress = progress

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._progress.add(len(chunk))
        return chunk

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        # Resumable uploads rewind to retry a chunk.
        position = self._stream.seek(offset, whence)
        self._progress.set(position)
        return position

    def seekable(self) -> bool:
        return self._stream.seekable()

    def readable(self) -> bool:
        return True

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed
