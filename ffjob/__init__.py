"""
ffjob

Run ffmpeg as asynchronous jobs: single-pass and two-pass execution with a
lifecycle state machine, live progress parsing and pass log cleanup.
"""

__version__ = "0.1.0"

from ffjob.executor import FFmpeg, FFmpegExecutor, ProcessRunner, run_jobs
from ffjob.job import FFmpegJob, JobState, SinglePassFFmpegJob, TwoPassFFmpegJob
from ffjob.progress import (
    Progress,
    ProgressListener,
    ProgressParser,
    ProgressStatus,
    RecordingProgressListener,
)
from ffjob.utils import (
    ConfigurationError,
    FFJobError,
    FFmpegError,
    JobFailedError,
    JobStateError,
    PassLogCleanupError,
    get_logger,
    setup_logger,
)

__all__ = [
    "__version__",
    # Execution
    "FFmpeg",
    "FFmpegExecutor",
    "ProcessRunner",
    "run_jobs",
    # Jobs
    "FFmpegJob",
    "JobState",
    "SinglePassFFmpegJob",
    "TwoPassFFmpegJob",
    # Progress
    "Progress",
    "ProgressListener",
    "ProgressParser",
    "ProgressStatus",
    "RecordingProgressListener",
    # Utils
    "ConfigurationError",
    "FFJobError",
    "FFmpegError",
    "JobFailedError",
    "JobStateError",
    "PassLogCleanupError",
    "get_logger",
    "setup_logger",
]
