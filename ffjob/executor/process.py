"""
Process runner abstraction.

The runner is the only place that touches real processes. Jobs talk to it
through the ``ProcessRunner`` protocol, so tests can substitute a fake that
feeds canned output without an ffmpeg binary.
"""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from ..utils import FFmpegError, get_logger

logger = get_logger(__name__)


class OutputStream(Protocol):
    """Readable side of a pipe, as ``asyncio.StreamReader`` provides it."""

    async def read(self, n: int = -1) -> bytes: ...


class ProcessHandle(Protocol):
    """A started process. ``asyncio.subprocess.Process`` satisfies this."""

    stdout: Optional[OutputStream]
    stderr: Optional[OutputStream]

    @property
    def returncode(self) -> Optional[int]: ...

    async def wait(self) -> int: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


@runtime_checkable
class ProcessRunner(Protocol):
    """Starts an external program and returns a live handle to it."""

    async def run(self, args: list[str], working_dir: Optional[Path] = None) -> ProcessHandle: ...


class AsyncProcessRunner:
    """Runs programs with ``asyncio.create_subprocess_exec``, both streams piped."""

    async def run(self, args: list[str], working_dir: Optional[Path] = None) -> ProcessHandle:
        """
        Start a process.

        Args:
            args: Executable followed by its arguments
            working_dir: Directory to run in (None = current directory)

        Returns:
            Handle to the running process

        Raises:
            FFmpegError: If the executable cannot be started
        """
        logger.debug(f"Starting process: {' '.join(args)}")
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(working_dir) if working_dir is not None else None,
            )
        except OSError as e:
            raise FFmpegError(
                f"Cannot start {args[0]}: {e}",
                command=args,
            ) from e


async def terminate_process(handle: ProcessHandle, timeout: float = 5.0) -> None:
    """
    Terminate a process gracefully.

    Sends SIGTERM, waits up to ``timeout`` seconds, then sends SIGKILL.

    Args:
        handle: Process to stop
        timeout: Seconds to wait after SIGTERM
    """
    if handle.returncode is not None:
        return

    try:
        logger.info("Terminating FFmpeg process...")
        handle.terminate()
        try:
            await asyncio.wait_for(handle.wait(), timeout=timeout)
            logger.info("Process terminated gracefully")
        except asyncio.TimeoutError:
            logger.warning("Forcing process termination...")
            handle.kill()
            await handle.wait()
            logger.info("Process killed")
    except ProcessLookupError:
        # Exited between the returncode check and the signal
        pass
