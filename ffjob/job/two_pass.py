"""
Two-pass job.

Pass 1 analyses the input and writes rate-control statistics to
``<prefix>-N.log`` (plus ``.mbtree`` companions for x264); pass 2 reads them
for the final encode. Once both passes succeed the statistics files are
removed from the working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal, Optional

from ..progress import ProgressListener
from ..utils import PassLogCleanupError, get_logger
from .base import FFmpegJob

if TYPE_CHECKING:
    from ..executor.ffmpeg import FFmpeg

logger = get_logger(__name__)

CleanupPolicy = Literal["strict", "lenient"]

DEFAULT_PASSLOG_PREFIX = "ffmpeg2pass"


def find_pass_logs(directory: Path, prefix: str) -> list[Path]:
    """
    List files in ``directory`` matching ``<prefix>*.log*``.

    The prefix is compared literally; glob characters in it have no special
    meaning.

    Args:
        directory: Directory to scan (not recursive)
        prefix: File name prefix

    Returns:
        Matching regular files, sorted by name

    Raises:
        OSError: If the directory cannot be listed
    """
    matches = []
    for entry in directory.iterdir():
        name = entry.name
        if name.startswith(prefix) and ".log" in name[len(prefix) :] and entry.is_file():
            matches.append(entry)
    return sorted(matches)


class TwoPassFFmpegJob(FFmpegJob):
    """
    Runs pass 1 then pass 2, then removes the pass log files.

    ``transcode_succeeded`` reports whether both passes exited cleanly,
    independently of cleanup. A cleanup failure is stored in
    ``cleanup_error``. With ``cleanup_policy="strict"`` it also fails the
    job; with ``"lenient"`` it is logged and the job still finishes.
    """

    kind = "two-pass"

    def __init__(
        self,
        ffmpeg: FFmpeg,
        pass1: list[str],
        pass2: list[str],
        passlog_prefix: str = DEFAULT_PASSLOG_PREFIX,
        listener: Optional[ProgressListener] = None,
        working_dir: Optional[Path] = None,
        cleanup_policy: CleanupPolicy = "strict",
        name: Optional[str] = None,
    ):
        """
        Initialize two-pass job.

        Args:
            ffmpeg: FFmpeg wrapper
            pass1: Arguments of the analysis pass
            pass2: Arguments of the encoding pass
            passlog_prefix: Prefix of the statistics files to remove afterwards
            listener: Optional progress listener, receives both passes
            working_dir: Directory ffmpeg runs in and logs are removed from
            cleanup_policy: "strict" or "lenient"
            name: Name used in logs and errors
        """
        if cleanup_policy not in ("strict", "lenient"):
            raise ValueError(f"cleanup_policy must be 'strict' or 'lenient', not {cleanup_policy!r}")
        if not passlog_prefix:
            raise ValueError("passlog_prefix must not be empty")

        super().__init__(
            ffmpeg, [pass1, pass2], listener=listener, working_dir=working_dir, name=name
        )
        self.passlog_prefix = passlog_prefix
        self.cleanup_policy = cleanup_policy
        self.transcode_succeeded = False
        self.cleanup_error: Optional[PassLogCleanupError] = None
        self.removed_logs: list[Path] = []

    @property
    def pass1(self) -> list[str]:
        return self.stages[0]

    @property
    def pass2(self) -> list[str]:
        return self.stages[1]

    def _stage_succeeded(self, index: int) -> None:
        if index == len(self.stages):
            self.transcode_succeeded = True

    async def _after_stages(self) -> None:
        try:
            self.delete_pass_logs()
        except PassLogCleanupError as e:
            self.cleanup_error = e
            if self.cleanup_policy == "strict":
                raise
            logger.warning(f"Job {self.name}: {e} (transcode succeeded, continuing)")

    def delete_pass_logs(self) -> list[Path]:
        """
        Remove ``<prefix>*.log*`` files from the working directory.

        Returns:
            Files removed

        Raises:
            PassLogCleanupError: If the directory cannot be listed or a file
                cannot be removed
        """
        directory = self.working_dir or Path.cwd()
        try:
            for path in find_pass_logs(directory, self.passlog_prefix):
                path.unlink(missing_ok=True)
                self.removed_logs.append(path)
                logger.debug(f"Removed pass log: {path}")
        except OSError as e:
            raise PassLogCleanupError(
                f"Failed to remove pass logs '{self.passlog_prefix}*.log*' in {directory}: {e}",
                prefix=self.passlog_prefix,
            ) from e

        return list(self.removed_logs)

    def _failure_phase(self) -> str:
        if self.transcode_succeeded:
            return "pass log cleanup"
        return f"pass {self.current_stage}"
