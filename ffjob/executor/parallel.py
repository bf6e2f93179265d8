"""
Concurrent execution of independent jobs.

Jobs do not schedule themselves. This module is one way for a caller to run
several of them at once, bounded by a semaphore, and collect the outcomes
without letting one failure stop the others.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..config import get_config
from ..job import FFmpegJob, JobState
from ..utils import JobFailedError, JobStateError, get_logger

logger = get_logger(__name__)


@dataclass
class JobResult:
    """Outcome of one job."""

    job: FFmpegJob
    success: bool
    error: Optional[BaseException] = None
    duration: float = 0.0

    @property
    def state(self) -> JobState:
        return self.job.state


@dataclass
class JobSummary:
    """Summary of a batch of jobs."""

    total_jobs: int
    completed_jobs: int
    failed_jobs: int
    total_duration: float
    results: list[JobResult]

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        if self.total_jobs == 0:
            return 0.0
        return (self.completed_jobs / self.total_jobs) * 100

    @property
    def has_failures(self) -> bool:
        """Check if any jobs failed."""
        return self.failed_jobs > 0


async def run_jobs(
    jobs: Iterable[FFmpegJob],
    max_parallel: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> JobSummary:
    """
    Run jobs concurrently, at most ``max_parallel`` at a time.

    Job failures are recorded in the summary rather than raised. Cancelling
    the caller cancels every job still running.

    Args:
        jobs: Jobs in the READY state
        max_parallel: Concurrency limit (configured ``max_parallel_jobs`` if None)
        progress_callback: Callback with (finished, total) counts

    Returns:
        JobSummary with one result per job, in input order
    """
    if max_parallel is None:
        max_parallel = get_config().executor.max_parallel_jobs
    if max_parallel < 1:
        raise ValueError("max_parallel must be at least 1")

    job_list = list(jobs)
    total = len(job_list)
    semaphore = asyncio.Semaphore(max_parallel)
    finished = 0
    start_time = time.time()

    logger.info(f"Running {total} job(s), {max_parallel} at a time")

    async def run_one(job: FFmpegJob) -> JobResult:
        nonlocal finished
        async with semaphore:
            job_start = time.time()
            try:
                await job.run()
                result = JobResult(job=job, success=True)
            except (JobFailedError, JobStateError) as e:
                result = JobResult(job=job, success=False, error=e)
            result.duration = time.time() - job_start

        finished += 1
        if progress_callback:
            try:
                progress_callback(finished, total)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")
        return result

    results = await asyncio.gather(*(run_one(job) for job in job_list))

    completed = sum(1 for r in results if r.success)
    summary = JobSummary(
        total_jobs=total,
        completed_jobs=completed,
        failed_jobs=total - completed,
        total_duration=time.time() - start_time,
        results=list(results),
    )

    logger.info(
        f"Jobs done: {summary.completed_jobs}/{summary.total_jobs} succeeded "
        f"in {summary.total_duration:.2f}s"
    )
    return summary
