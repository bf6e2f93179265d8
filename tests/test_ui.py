"""
Tests for terminal progress display.
"""

import io

from rich.console import Console

from ffjob.progress import Progress, ProgressListener, ProgressStatus, parse_progress_lines
from ffjob.ui import ConsoleProgressListener, describe_progress
from tests.fakes import progress_stream


def make_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class TestDescribeProgress:
    """Test describe_progress function."""

    def test_all_fields(self):
        """Test a complete snapshot."""
        progress = Progress(
            status=ProgressStatus.CONTINUE,
            frame=120,
            fps=29.97,
            bitrate=1534200,
            total_size=786480,
            out_time=4.004,
            speed=1.99,
        )

        text = describe_progress(progress)

        assert text == (
            "frame=120 fps=30.0 time=00:00:04 size=768.0 KiB bitrate=1.5 Mbit/s speed=1.99x"
        )

    def test_missing_fields_left_out(self):
        """Test N/A fields are not shown."""
        progress = Progress(status=ProgressStatus.CONTINUE, frame=0)

        assert describe_progress(progress) == "frame=0"

    def test_negative_time_clamped(self):
        """Test pre-roll timestamps display as zero."""
        progress = Progress(status=ProgressStatus.CONTINUE, out_time=-0.04)

        assert describe_progress(progress) == "time=00:00:00"


class TestConsoleProgressListener:
    """Test ConsoleProgressListener class."""

    def test_is_listener(self):
        """Test the listener protocol is satisfied."""
        assert isinstance(ConsoleProgressListener(make_console()), ProgressListener)

    def test_single_pass(self):
        """Test one stream uses one bar."""
        snapshots = list(parse_progress_lines(progress_stream([10, 20, 30]).decode().splitlines()))

        with ConsoleProgressListener(make_console(), duration=1.2) as listener:
            for snapshot in snapshots:
                listener.progress(snapshot)

        assert listener.passes == 1
        task = listener._bar.tasks[0]
        assert task.completed == 1.2
        assert "frame=30" in task.fields["stats"]

    def test_two_passes(self):
        """Test a stream after an end cycle starts a new bar."""
        lines = (progress_stream([1, 2]) + progress_stream([3])).decode().splitlines()

        with ConsoleProgressListener(make_console(), description="Encoding") as listener:
            for snapshot in parse_progress_lines(lines):
                listener.progress(snapshot)

        assert listener.passes == 2
        assert [t.description for t in listener._bar.tasks] == ["Encoding", "Encoding (pass 2)"]

    def test_completed_clamped_to_duration(self):
        """Test the bar never goes past the expected duration."""
        listener = ConsoleProgressListener(make_console(), duration=1.0)

        listener.progress(Progress(status=ProgressStatus.CONTINUE, out_time=5.0))

        assert listener._bar.tasks[0].completed == 1.0
