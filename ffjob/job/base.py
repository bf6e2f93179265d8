"""
Job lifecycle shared by single-pass and two-pass jobs.

A job is a unit of deferred work: the executor creates it in ``READY`` and
the caller decides when and where ``run()`` is awaited. Every job runs an
ordered list of ffmpeg argument lists (stages) one after another and ends in
exactly one of ``FINISHED`` or ``FAILED``.
"""

from __future__ import annotations

import asyncio
import threading
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..progress import ProgressListener
from ..utils import JobFailedError, JobStateError, get_logger

if TYPE_CHECKING:
    from ..executor.ffmpeg import FFmpeg

logger = get_logger(__name__)


class JobState(str, Enum):
    """Lifecycle state of a job."""

    READY = "ready"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.FINISHED, JobState.FAILED)


# Allowed transitions; anything else is a programming error
_TRANSITIONS = {
    JobState.READY: {JobState.RUNNING},
    JobState.RUNNING: {JobState.FINISHED, JobState.FAILED},
    JobState.FINISHED: set(),
    JobState.FAILED: set(),
}


class FFmpegJob:
    """
    Base job: runs its stages in order and tracks the lifecycle.

    Subclasses provide the stages and may hook ``_after_stages()`` for work
    that must happen once every stage succeeded.
    """

    kind = "job"

    def __init__(
        self,
        ffmpeg: FFmpeg,
        stages: list[list[str]],
        listener: Optional[ProgressListener] = None,
        working_dir: Optional[Path] = None,
        name: Optional[str] = None,
    ):
        """
        Initialize job.

        Args:
            ffmpeg: FFmpeg wrapper the job runs its stages through
            stages: Argument lists, run in order
            listener: Optional progress listener, shared by every stage
            working_dir: Directory ffmpeg runs in (None = current directory)
            name: Name used in logs and errors
        """
        if not stages:
            raise ValueError("A job needs at least one stage")

        self.ffmpeg = ffmpeg
        self.stages = [list(args) for args in stages]
        self.listener = listener
        self.working_dir = working_dir
        self.name = name or f"{self.kind}-{id(self):x}"
        self.current_stage = 0

        self._state = JobState.READY
        self._lock = threading.Lock()

    @property
    def state(self) -> JobState:
        """Current state; reflects the most recently committed transition."""
        with self._lock:
            return self._state

    def _transition(self, new_state: JobState) -> None:
        with self._lock:
            if new_state not in _TRANSITIONS[self._state]:
                raise JobStateError(
                    f"Job {self.name} cannot go from {self._state.value} to {new_state.value}",
                    state=self._state.value,
                )
            logger.debug(f"Job {self.name}: {self._state.value} -> {new_state.value}")
            self._state = new_state

    async def run(self) -> None:
        """
        Run every stage, then the completion hook.

        May be called once. Cancelling the task that awaits it terminates the
        running ffmpeg process and fails the job.

        Raises:
            JobStateError: If the job is not READY (nothing is started)
            JobFailedError: If any stage or the completion hook fails; the
                originating exception is chained as ``__cause__``
            asyncio.CancelledError: If the caller cancelled the job
        """
        with self._lock:
            if self._state is not JobState.READY:
                raise JobStateError(
                    f"Job {self.name} has already been run (state: {self._state.value})",
                    state=self._state.value,
                )
            self._state = JobState.RUNNING

        logger.info(f"Job {self.name} started ({len(self.stages)} stage(s))")

        try:
            for index, args in enumerate(self.stages, start=1):
                self.current_stage = index
                logger.debug(f"Job {self.name}: stage {index}/{len(self.stages)}")
                await self.ffmpeg.run(args, listener=self.listener, working_dir=self.working_dir)
                self._stage_succeeded(index)

            await self._after_stages()

        except asyncio.CancelledError:
            self._transition(JobState.FAILED)
            logger.warning(f"Job {self.name} cancelled during stage {self.current_stage}")
            raise

        except Exception as e:
            self._transition(JobState.FAILED)
            logger.error(f"Job {self.name} failed during {self._failure_phase()}: {e}")
            raise JobFailedError(
                f"Job {self.name} failed: {e}",
                job=self.name,
                state=JobState.FAILED.value,
            ) from e

        self._transition(JobState.FINISHED)
        logger.info(f"Job {self.name} finished")

    def _stage_succeeded(self, index: int) -> None:
        """Called after each stage exits successfully."""

    async def _after_stages(self) -> None:
        """Called once every stage succeeded, before the job finishes."""

    def _failure_phase(self) -> str:
        return f"stage {self.current_stage}/{len(self.stages)}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} state={self.state.value}>"
