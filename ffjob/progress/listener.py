"""Progress listener interface."""

from typing import Protocol, runtime_checkable

from ffjob.progress.models import Progress


@runtime_checkable
class ProgressListener(Protocol):
    """
    Receives progress snapshots from a running job.

    ``progress`` is called once per snapshot, in stream order, on the event
    loop that drives the job.
    """

    def progress(self, progress: Progress) -> None: ...


class RecordingProgressListener:
    """Listener that keeps every snapshot it receives."""

    def __init__(self) -> None:
        self.progresses: list[Progress] = []

    def progress(self, progress: Progress) -> None:
        self.progresses.append(progress)

    @property
    def last(self) -> Progress | None:
        return self.progresses[-1] if self.progresses else None
