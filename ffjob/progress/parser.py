"""
Parser for ffmpeg ``-progress`` output.

ffmpeg reports progress as blocks of ``key=value`` lines. Each block ends with
``progress=continue``, or ``progress=end`` for the last one::

    frame=120
    fps=29.97
    bitrate=1534.2kbits/s
    total_size=786480
    out_time_us=4004000
    out_time=00:00:04.004000
    speed=1.99x
    progress=continue

The parser turns those blocks into immutable ``Progress`` snapshots while the
process is still running. Anything else on the stream (log lines, unknown
keys, values that do not parse) is skipped.
"""

import re
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Protocol,
)

from ffjob.progress.models import Progress, ProgressStatus
from ffjob.utils import get_logger, parse_bitrate, parse_speed, parse_time_to_seconds

logger = get_logger(__name__)

# ffmpeg ends stats lines with \r and log lines with \n
_LINE_BREAK = re.compile(rb"\r\n|\r|\n")

DEFAULT_CHUNK_SIZE = 4096


class ByteStream(Protocol):
    """Anything that reads bytes like ``asyncio.StreamReader``."""

    async def read(self, n: int = -1) -> bytes: ...


def _optional(convert: Callable[[str], Any]) -> Callable[[str], Any]:
    """Wrap a converter so that ffmpeg's ``N/A`` maps to None."""

    def wrapper(value: str) -> Any:
        if value.upper() == "N/A":
            return None
        return convert(value)

    return wrapper


def _microseconds(value: str) -> float:
    return int(value) / 1_000_000


async def iter_lines(
    stream: ByteStream,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_line: Optional[Callable[[str], None]] = None,
) -> AsyncIterator[str]:
    """
    Yield decoded lines from a byte stream as soon as they are complete.

    Reads fixed size chunks instead of ``readline()`` so a long run of
    carriage-return separated stats output cannot overrun the reader limit.

    Args:
        stream: Byte stream to read until EOF
        chunk_size: Bytes requested per read
        on_line: Called with every line before it is yielded
    """
    pending = b""
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break

        buffer = pending + chunk
        # Hold back a trailing \r, it may be the first half of \r\n
        held = b"\r" if buffer.endswith(b"\r") else b""
        parts = _LINE_BREAK.split(buffer[: len(buffer) - len(held)])
        pending = parts.pop() + held

        for raw in parts:
            if raw:
                line = raw.decode("utf-8", errors="replace")
                if on_line is not None:
                    on_line(line)
                yield line

    pending = pending.rstrip(b"\r")
    if pending:
        line = pending.decode("utf-8", errors="replace")
        if on_line is not None:
            on_line(line)
        yield line


class ProgressParser:
    """
    Incremental parser of reporting cycles.

    Feed it lines one at a time with ``feed()``, or wrap an async line source
    and iterate: one ``Progress`` is produced per completed cycle, in stream
    order. Async iteration is forward-only; once the source is exhausted the
    parser stays exhausted.
    """

    # key -> (snapshot field, converter)
    FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
        "frame": ("frame", _optional(int)),
        "fps": ("fps", _optional(float)),
        "bitrate": ("bitrate", parse_bitrate),
        "total_size": ("total_size", _optional(int)),
        "out_time_us": ("out_time_us", _optional(_microseconds)),
        # Despite the name, ffmpeg writes microseconds here too
        "out_time_ms": ("out_time_us", _optional(_microseconds)),
        "out_time": ("out_time", _optional(parse_time_to_seconds)),
        "dup_frames": ("dup_frames", _optional(int)),
        "drop_frames": ("drop_frames", _optional(int)),
        "speed": ("speed", parse_speed),
    }

    def __init__(self, lines: Optional[AsyncIterable[str]] = None):
        """
        Initialize parser.

        Args:
            lines: Async source of decoded lines (see ``iter_lines``)
        """
        self._lines = lines.__aiter__() if lines is not None else None
        self._fields: dict[str, Any] = {}
        self._exhausted = lines is None
        self.cycles = 0
        self.skipped_lines = 0

    def feed(self, line: str) -> Optional[Progress]:
        """
        Consume one line.

        Args:
            line: A single line of ffmpeg output

        Returns:
            The completed snapshot if this line closed a cycle, else None
        """
        line = line.strip()
        if not line:
            return None

        key, sep, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not key:
            self._skip(line)
            return None

        if key == "progress":
            try:
                status = ProgressStatus(value)
            except ValueError:
                self._skip(line)
                return None
            return self._close_cycle(status)

        entry = self.FIELDS.get(key)
        if entry is None:
            # stream_0_0_q and friends
            return None

        field, convert = entry
        try:
            self._fields[field] = convert(value)
        except ValueError:
            self._skip(line)
        return None

    def _close_cycle(self, status: ProgressStatus) -> Progress:
        fields = self._fields
        self._fields = {}

        out_time_us = fields.pop("out_time_us", None)
        if out_time_us is not None:
            fields["out_time"] = out_time_us

        self.cycles += 1
        return Progress(status=status, **fields)

    def _skip(self, line: str) -> None:
        self.skipped_lines += 1
        logger.debug(f"Ignoring unparseable progress line: {line!r}")

    def __aiter__(self) -> "ProgressParser":
        return self

    async def __anext__(self) -> Progress:
        if self._exhausted or self._lines is None:
            raise StopAsyncIteration

        while True:
            try:
                line = await self._lines.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                raise

            snapshot = self.feed(line)
            if snapshot is not None:
                return snapshot


def parse_progress_lines(lines: Iterable[str]) -> Iterator[Progress]:
    """
    Parse already available lines into snapshots.

    Args:
        lines: Lines of ffmpeg ``-progress`` output

    Yields:
        One ``Progress`` per completed cycle, in order
    """
    parser = ProgressParser()
    for line in lines:
        snapshot = parser.feed(line)
        if snapshot is not None:
            yield snapshot
