"""Single-pass job."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..progress import ProgressListener
from .base import FFmpegJob

if TYPE_CHECKING:
    from ..executor.ffmpeg import FFmpeg


class SinglePassFFmpegJob(FFmpegJob):
    """Runs one ffmpeg invocation."""

    kind = "single-pass"

    def __init__(
        self,
        ffmpeg: FFmpeg,
        args: list[str],
        listener: Optional[ProgressListener] = None,
        working_dir: Optional[Path] = None,
        name: Optional[str] = None,
    ):
        super().__init__(ffmpeg, [args], listener=listener, working_dir=working_dir, name=name)

    @property
    def args(self) -> list[str]:
        return self.stages[0]
