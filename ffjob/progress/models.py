"""
Progress snapshot model.

A snapshot is one reporting cycle of ffmpeg's ``-progress`` output.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProgressStatus(str, Enum):
    """Completion marker that closes a reporting cycle."""

    CONTINUE = "continue"
    END = "end"


@dataclass(frozen=True)
class Progress:
    """Progress of a running transcode at one point in time."""

    status: ProgressStatus
    frame: Optional[int] = None
    fps: Optional[float] = None
    bitrate: Optional[int] = None  # bits per second
    total_size: Optional[int] = None  # bytes
    out_time: Optional[float] = None  # seconds of output written
    dup_frames: Optional[int] = None
    drop_frames: Optional[int] = None
    speed: Optional[float] = None  # multiple of real time

    @property
    def is_end(self) -> bool:
        """Check if this is the final cycle of the stream."""
        return self.status == ProgressStatus.END
