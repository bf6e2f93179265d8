"""Terminal output components."""

from ffjob.ui.progress import ConsoleProgressListener, describe_progress

__all__ = [
    "ConsoleProgressListener",
    "describe_progress",
]
