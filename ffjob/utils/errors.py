"""
Custom exceptions for ffjob.

This module defines the exception hierarchy used throughout the application.
Every failure is terminal for the job that raised it: nothing here retries.
"""

from typing import Optional


class FFJobError(Exception):
    """Base exception for all ffjob errors."""

    pass


class ConfigurationError(FFJobError):
    """Configuration is invalid or missing."""

    pass


class FFmpegError(FFJobError):
    """FFmpeg exited non-zero or could not be started."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: Optional[int] = None,
        stderr: str | None = None,
    ):
        """
        Initialize FFmpeg error with command details.

        Args:
            message: Error message
            command: FFmpeg command that failed
            returncode: Exit status (None if the process never started)
            stderr: Tail of the diagnostic output from FFmpeg
        """
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class JobStateError(FFJobError):
    """A job was used in a state that does not allow the operation."""

    def __init__(self, message: str, state: str):
        super().__init__(message)
        self.state = state


class PassLogCleanupError(FFJobError):
    """Pass log files could not be listed or removed after a two-pass encode."""

    def __init__(self, message: str, prefix: str):
        super().__init__(message)
        self.prefix = prefix


class JobFailedError(FFJobError):
    """
    A job ended in the FAILED state.

    The originating exception is always chained as ``__cause__``.
    """

    def __init__(self, message: str, job: str, state: str):
        """
        Initialize job failure.

        Args:
            message: Error message
            job: Name of the failed job
            state: Final job state
        """
        super().__init__(message)
        self.job = job
        self.state = state

    @property
    def root_cause(self) -> Optional[BaseException]:
        """Innermost exception in the ``__cause__`` chain."""
        cause = self.__cause__
        while cause is not None and cause.__cause__ is not None:
            cause = cause.__cause__
        return cause
