"""Progress reporting: snapshots, parser and listeners."""

from ffjob.progress.listener import ProgressListener, RecordingProgressListener
from ffjob.progress.models import Progress, ProgressStatus
from ffjob.progress.parser import ProgressParser, iter_lines, parse_progress_lines

__all__ = [
    "Progress",
    "ProgressListener",
    "ProgressParser",
    "ProgressStatus",
    "RecordingProgressListener",
    "iter_lines",
    "parse_progress_lines",
]
