"""
Job factory.

``FFmpegExecutor`` binds argument lists to an ``FFmpeg`` wrapper and hands
back jobs in the READY state. It never schedules them on its own: the caller awaits
``job.run()`` wherever it likes (directly, in a task, or via ``run_jobs``).
"""

from pathlib import Path
from typing import Callable, Iterable, Optional

from ..config import ExecutorConfig
from ..job import FFmpegJob, SinglePassFFmpegJob, TwoPassFFmpegJob
from ..progress import ProgressListener
from ..utils import get_logger
from .ffmpeg import FFmpeg
from .parallel import JobSummary, run_jobs

logger = get_logger(__name__)


class FFmpegExecutor:
    """Creates single-pass and two-pass jobs that share one FFmpeg wrapper."""

    def __init__(
        self,
        ffmpeg: Optional[FFmpeg] = None,
        config: Optional[ExecutorConfig] = None,
    ):
        """
        Initialize executor.

        Args:
            ffmpeg: FFmpeg wrapper (built from ``config`` if None)
            config: Executor configuration (the wrapper's if None)
        """
        if ffmpeg is None:
            ffmpeg = FFmpeg(config=config)
        self.ffmpeg = ffmpeg
        self.config = config or ffmpeg.config

    @property
    def working_dir(self) -> Optional[Path]:
        return self.config.working_dir

    def create_job(
        self,
        args: list[str],
        listener: Optional[ProgressListener] = None,
        name: Optional[str] = None,
    ) -> SinglePassFFmpegJob:
        """
        Create a single-pass job.

        Args:
            args: ffmpeg arguments
            listener: Optional progress listener
            name: Optional job name

        Returns:
            Job in the READY state
        """
        job = SinglePassFFmpegJob(
            self.ffmpeg,
            args,
            listener=listener,
            working_dir=self.working_dir,
            name=name,
        )
        logger.debug(f"Created {job!r}")
        return job

    def create_two_pass_job(
        self,
        pass1: list[str],
        pass2: list[str],
        passlog_prefix: Optional[str] = None,
        listener: Optional[ProgressListener] = None,
        name: Optional[str] = None,
    ) -> TwoPassFFmpegJob:
        """
        Create a two-pass job.

        See https://trac.ffmpeg.org/wiki/Encode/H.264#twopass

        Args:
            pass1: Arguments of the analysis pass
            pass2: Arguments of the encoding pass
            passlog_prefix: Pass log prefix (configured default if None)
            listener: Optional progress listener
            name: Optional job name

        Returns:
            Job in the READY state
        """
        job = TwoPassFFmpegJob(
            self.ffmpeg,
            pass1,
            pass2,
            passlog_prefix=passlog_prefix or self.config.passlog_prefix,
            listener=listener,
            working_dir=self.working_dir,
            cleanup_policy=self.config.cleanup_policy,
            name=name,
        )
        logger.debug(f"Created {job!r}")
        return job

    async def run_jobs(
        self,
        jobs: Iterable[FFmpegJob],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> JobSummary:
        """Run jobs concurrently, at most ``max_parallel_jobs`` at a time."""
        return await run_jobs(
            jobs,
            max_parallel=self.config.max_parallel_jobs,
            progress_callback=progress_callback,
        )
