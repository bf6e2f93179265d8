"""
FFmpeg binary wrapper.

This module runs one ffmpeg invocation to completion, draining its output
while it runs and feeding progress to an optional listener, and answers the
static capability queries (version, codecs, formats).
"""

import asyncio
import re
from collections import deque
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from ..config import ExecutorConfig
from ..models import Codec, Format, parse_codecs, parse_formats, parse_version
from ..progress import ProgressListener, ProgressParser, iter_lines
from ..utils import FFmpegError, get_logger
from .cache import SingleFlightCache
from .process import (
    AsyncProcessRunner,
    OutputStream,
    ProcessHandle,
    ProcessRunner,
    terminate_process,
)

logger = get_logger(__name__)

ERROR_TAIL_LINES = 30

_PROGRESS_KEYS = frozenset(ProgressParser.FIELDS) | {"progress"}

# -progress targets ffmpeg writes to its own stdout or stderr
_STDOUT_TARGETS = frozenset({"pipe:", "pipe:1", "-"})
_STDERR_TARGETS = frozenset({"pipe:2"})

# Common ffmpeg failure messages, most specific first
_ERROR_PATTERNS = [
    r"Error while (opening|decoding|encoding)",
    r"Invalid data found",
    r"No such file or directory",
    r"Permission denied",
    r"Unknown encoder",
    r"Unrecognized option",
    r"Codec .* is not supported",
    r"Invalid argument",
]


class FFmpeg:
    """
    Wrapper around the ffmpeg executable.

    One instance is shared by every job an executor creates. The only state
    it holds across calls is the capability cache.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
        config: Optional[ExecutorConfig] = None,
    ):
        """
        Initialize the wrapper.

        Args:
            path: ffmpeg executable (defaults to the configured ``ffmpeg_path``)
            runner: Process runner (defaults to ``AsyncProcessRunner``)
            config: Executor configuration
        """
        self.config = config or ExecutorConfig()
        self.path = path or self.config.ffmpeg_path
        self.runner: ProcessRunner = runner or AsyncProcessRunner()
        self._cache = SingleFlightCache()

    async def run(
        self,
        args: list[str],
        listener: Optional[ProgressListener] = None,
        working_dir: Optional[Path] = None,
    ) -> None:
        """
        Run ffmpeg with ``args`` and wait for it to exit.

        With a listener, ``-progress pipe:2 -nostats`` is added so progress
        cycles are written to stderr, and every parsed snapshot is passed to
        the listener while the process runs.
        A caller supplied ``-progress pipe:1`` is read from stdout instead.

        Args:
            args: ffmpeg arguments (without the executable)
            listener: Optional progress listener
            working_dir: Directory to run in (None = current directory)

        Raises:
            ValueError: If a listener is attached but ``-progress`` names a
                file or URL, where the cycles could not be read
            FFmpegError: If ffmpeg cannot start or exits non-zero
        """
        progress_on_stdout = self._progress_on_stdout(args, listener)
        command = [self.path, *self._with_progress_args(args, listener)]
        logger.info(f"Running FFmpeg command: {' '.join(command[:4])}...")
        logger.debug(f"Full command: {' '.join(command)}")

        tail: deque[str] = deque(maxlen=ERROR_TAIL_LINES)

        if progress_on_stdout:
            stdout_listener, stderr_listener = listener, None
        else:
            stdout_listener, stderr_listener = None, listener

        handle = await self.runner.run(command, working_dir)
        returncode = await self._communicate(
            handle,
            stdout_consumer=lambda stream: self._consume_progress(stream, stdout_listener),
            stderr_consumer=lambda stream: self._consume_diagnostics(stream, stderr_listener, tail),
        )

        if returncode != 0:
            stderr = "\n".join(tail)
            raise FFmpegError(
                f"FFmpeg failed with code {returncode}: {extract_error_message(stderr)}",
                command=command,
                returncode=returncode,
                stderr=stderr,
            )

        logger.info("FFmpeg command completed successfully")

    @staticmethod
    def _with_progress_args(args: list[str], listener: Optional[ProgressListener]) -> list[str]:
        if listener is None or "-progress" in args:
            return list(args)
        return ["-progress", "pipe:2", "-nostats", *args]

    @staticmethod
    def _progress_on_stdout(args: list[str], listener: Optional[ProgressListener]) -> bool:
        if listener is None or "-progress" not in args:
            return False
        position = args.index("-progress") + 1
        target = args[position] if position < len(args) else ""
        if target in _STDOUT_TARGETS:
            return True
        if target in _STDERR_TARGETS:
            return False
        raise ValueError(
            f"Cannot report progress to a listener when -progress writes to {target!r}; "
            "use pipe:1 or pipe:2"
        )

    async def _communicate(
        self,
        handle: ProcessHandle,
        stdout_consumer: Callable[[OutputStream], Awaitable[Any]],
        stderr_consumer: Callable[[OutputStream], Awaitable[Any]],
    ) -> int:
        """
        Drain both streams concurrently with waiting for exit.

        The process is terminated if anything fails or the caller is cancelled.

        Returns:
            Exit status
        """
        tasks = [asyncio.ensure_future(handle.wait())]
        if handle.stdout is not None:
            tasks.append(asyncio.ensure_future(stdout_consumer(handle.stdout)))
        if handle.stderr is not None:
            tasks.append(asyncio.ensure_future(stderr_consumer(handle.stderr)))

        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await terminate_process(handle, self.config.terminate_timeout)
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return results[0]

    async def _consume_progress(
        self, stream: OutputStream, listener: Optional[ProgressListener]
    ) -> None:
        if listener is None:
            while await stream.read(65536):
                pass
            return
        await self._deliver(ProgressParser(iter_lines(stream)), listener)

    async def _consume_diagnostics(
        self,
        stream: OutputStream,
        listener: Optional[ProgressListener],
        tail: deque[str],
    ) -> None:
        def remember(line: str) -> None:
            key, sep, _ = line.partition("=")
            key = key.strip()
            if not (sep and (key in _PROGRESS_KEYS or key.startswith("stream_"))):
                tail.append(line)

        lines = iter_lines(stream, on_line=remember)

        if listener is None:
            async for _ in lines:
                pass
            return

        await self._deliver(ProgressParser(lines), listener)

    @staticmethod
    async def _deliver(parser: ProgressParser, listener: ProgressListener) -> None:
        async for snapshot in parser:
            try:
                listener.progress(snapshot)
            except Exception as e:
                logger.warning(f"Progress listener failed: {e}")

    async def _capture(self, args: list[str]) -> str:
        """Run a short ffmpeg query and return its standard output."""
        command = [self.path, *args]
        chunks: list[bytes] = []
        tail: deque[str] = deque(maxlen=ERROR_TAIL_LINES)

        async def collect_stdout(stream: OutputStream) -> None:
            while chunk := await stream.read(65536):
                chunks.append(chunk)

        async def collect_stderr(stream: OutputStream) -> None:
            async for line in iter_lines(stream):
                tail.append(line)

        handle = await self.runner.run(command)
        returncode = await self._communicate(handle, collect_stdout, collect_stderr)
        if returncode != 0:
            stderr = "\n".join(tail)
            raise FFmpegError(
                f"FFmpeg failed with code {returncode}: {extract_error_message(stderr)}",
                command=command,
                returncode=returncode,
                stderr=stderr,
            )
        return b"".join(chunks).decode("utf-8", errors="replace")

    async def version(self) -> str:
        """Return the first line of ``ffmpeg -version``."""
        return await self._cache.get("version", self._read_version)

    async def codecs(self) -> list[Codec]:
        """Return the codecs this ffmpeg build supports."""
        return await self._cache.get("codecs", self._read_codecs)

    async def formats(self) -> list[Format]:
        """Return the container formats this ffmpeg build supports."""
        return await self._cache.get("formats", self._read_formats)

    async def _read_version(self) -> str:
        return parse_version(await self._capture(["-version"]))

    async def _read_codecs(self) -> list[Codec]:
        return parse_codecs(await self._capture(["-hide_banner", "-codecs"]))

    async def _read_formats(self) -> list[Format]:
        return parse_formats(await self._capture(["-hide_banner", "-formats"]))

    def clear_cache(self) -> None:
        """Forget cached capability queries."""
        self._cache.clear()


def extract_error_message(stderr: str) -> str:
    """
    Extract meaningful error message from stderr.

    Args:
        stderr: Tail of the diagnostic output

    Returns:
        Extracted error message or the last lines of stderr
    """
    lines = stderr.split("\n")
    for pattern in _ERROR_PATTERNS:
        for i, line in enumerate(lines):
            if re.search(pattern, line, re.IGNORECASE):
                return " | ".join(lines[i : i + 3])

    lines = [line for line in lines if line.strip()]
    return " | ".join(lines[-3:]) if lines else "Unknown error"
