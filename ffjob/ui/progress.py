"""
Terminal progress display.

``ConsoleProgressListener`` is a progress listener that renders snapshots
with a Rich progress bar. A two-pass job reports two streams back to back;
the listener starts a new bar whenever a snapshot follows an ``end`` cycle.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.progress import Progress as RichProgress

from ..progress import Progress
from ..utils import format_bitrate, format_duration, format_size, get_logger

logger = get_logger(__name__)


def describe_progress(progress: Progress) -> str:
    """
    Render the numeric fields of a snapshot as one line.

    Fields ffmpeg reported as N/A are left out.
    """
    parts = []
    if progress.frame is not None:
        parts.append(f"frame={progress.frame}")
    if progress.fps is not None:
        parts.append(f"fps={progress.fps:.1f}")
    if progress.out_time is not None:
        parts.append(f"time={format_duration(progress.out_time)}")
    if progress.total_size is not None:
        parts.append(f"size={format_size(progress.total_size)}")
    if progress.bitrate is not None:
        parts.append(f"bitrate={format_bitrate(progress.bitrate)}")
    if progress.speed is not None:
        parts.append(f"speed={progress.speed:.2f}x")
    return " ".join(parts)


class ConsoleProgressListener:
    """
    Progress listener that draws a Rich progress bar.

    Use as a context manager so the live display is started and stopped
    around the job.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        description: str = "Encoding",
        duration: Optional[float] = None,
    ):
        """
        Initialize listener.

        Args:
            console: Rich console to draw on
            description: Label shown before the bar
            duration: Expected output duration in seconds; without it the bar
                is indeterminate
        """
        self.description = description
        self.duration = duration
        self.passes = 0
        self._task_id: Optional[TaskID] = None
        self._ended = False
        self._bar = RichProgress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[stats]}"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=console,
        )

    def __enter__(self) -> "ConsoleProgressListener":
        self._bar.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._bar.stop()

    def _start_pass(self) -> TaskID:
        self.passes += 1
        label = self.description if self.passes == 1 else f"{self.description} (pass {self.passes})"
        self._ended = False
        return self._bar.add_task(label, total=self.duration, stats="")

    def progress(self, progress: Progress) -> None:
        if self._task_id is None or self._ended:
            self._task_id = self._start_pass()

        completed = progress.out_time
        if completed is not None and self.duration:
            completed = min(max(completed, 0.0), self.duration)

        self._bar.update(self._task_id, completed=completed, stats=describe_progress(progress))

        if progress.is_end:
            self._ended = True
            if self.duration:
                self._bar.update(self._task_id, completed=self.duration)
            logger.debug(f"Pass {self.passes} reported end of stream")
