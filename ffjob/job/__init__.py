"""Jobs: lifecycle state machine, single-pass and two-pass execution."""

from ffjob.job.base import FFmpegJob, JobState
from ffjob.job.single_pass import SinglePassFFmpegJob
from ffjob.job.two_pass import (
    DEFAULT_PASSLOG_PREFIX,
    TwoPassFFmpegJob,
    find_pass_logs,
)

__all__ = [
    "DEFAULT_PASSLOG_PREFIX",
    "FFmpegJob",
    "JobState",
    "SinglePassFFmpegJob",
    "TwoPassFFmpegJob",
    "find_pass_logs",
]
