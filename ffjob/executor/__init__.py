"""Process execution, the FFmpeg wrapper and job creation."""

from ffjob.executor.cache import SingleFlightCache
from ffjob.executor.executor import FFmpegExecutor
from ffjob.executor.ffmpeg import FFmpeg, extract_error_message
from ffjob.executor.parallel import JobResult, JobSummary, run_jobs
from ffjob.executor.process import (
    AsyncProcessRunner,
    ProcessHandle,
    ProcessRunner,
    terminate_process,
)

__all__ = [
    "AsyncProcessRunner",
    "FFmpeg",
    "FFmpegExecutor",
    "JobResult",
    "JobSummary",
    "ProcessHandle",
    "ProcessRunner",
    "SingleFlightCache",
    "extract_error_message",
    "run_jobs",
    "terminate_process",
]
