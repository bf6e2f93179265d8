"""
Tests for the ffmpeg progress parser.
"""

import pytest

from ffjob.progress import (
    Progress,
    ProgressParser,
    ProgressStatus,
    iter_lines,
    parse_progress_lines,
)
from tests.fakes import ChunkedStream, progress_block, progress_stream


async def collect(parser: ProgressParser) -> list[Progress]:
    return [snapshot async for snapshot in parser]


class TestProgressModel:
    """Test Progress snapshot."""

    def test_status_values(self):
        """Test status enum compares equal to the raw marker."""
        assert ProgressStatus.CONTINUE == "continue"
        assert ProgressStatus.END == "end"

    def test_defaults(self):
        """Test fields default to None."""
        progress = Progress(status=ProgressStatus.CONTINUE)

        assert progress.frame is None
        assert progress.bitrate is None
        assert progress.out_time is None
        assert progress.is_end is False

    def test_immutable(self):
        """Test snapshots cannot be modified."""
        progress = Progress(status=ProgressStatus.END, frame=10)

        with pytest.raises(AttributeError):
            progress.frame = 11  # type: ignore[misc]


class TestFeed:
    """Test line-by-line parsing."""

    def test_full_cycle(self):
        """Test every known key of one cycle."""
        parser = ProgressParser()
        snapshots = [parser.feed(line) for line in progress_block(50).splitlines()]

        assert snapshots[:-1] == [None] * (len(snapshots) - 1)
        progress = snapshots[-1]
        assert progress is not None
        assert progress.status == "continue"
        assert progress.frame == 50
        assert progress.fps == 25.0
        assert progress.bitrate == 1024000
        assert progress.total_size == 256000
        assert progress.out_time == pytest.approx(2.0)
        assert progress.dup_frames == 0
        assert progress.drop_frames == 0
        assert progress.speed == 1.5

    def test_cycle_fields_do_not_leak(self):
        """Test a new cycle starts empty."""
        parser = ProgressParser()
        parser.feed("frame=10")
        first = parser.feed("progress=continue")
        second = parser.feed("progress=end")

        assert first is not None and first.frame == 10
        assert second is not None and second.frame is None
        assert second.is_end

    def test_not_available_values(self):
        """Test N/A maps to None."""
        lines = [
            "frame=0",
            "fps=0.00",
            "bitrate=N/A",
            "total_size=N/A",
            "out_time_us=N/A",
            "out_time_ms=N/A",
            "out_time=N/A",
            "speed=N/A",
            "progress=continue",
        ]
        (progress,) = parse_progress_lines(lines)

        assert progress.frame == 0
        assert progress.fps == 0.0
        assert progress.bitrate is None
        assert progress.total_size is None
        assert progress.out_time is None
        assert progress.speed is None

    def test_out_time_microseconds_take_precedence(self):
        """Test out_time_us wins over the formatted timestamp."""
        lines = ["out_time=00:00:01.000000", "out_time_us=2500000", "progress=continue"]
        (progress,) = parse_progress_lines(lines)

        assert progress.out_time == pytest.approx(2.5)

    def test_out_time_formatted_fallback(self):
        """Test the formatted timestamp is used when microseconds are missing."""
        (progress,) = parse_progress_lines(["out_time=01:02:03.500000", "progress=end"])

        assert progress.out_time == pytest.approx(3723.5)

    def test_negative_out_time(self):
        """Test negative timestamps reported before the first packet."""
        (progress,) = parse_progress_lines(["out_time=-00:00:00.040000", "progress=continue"])

        assert progress.out_time == pytest.approx(-0.04)

    def test_whitespace_is_tolerated(self):
        """Test padding around keys and values."""
        (progress,) = parse_progress_lines(["  frame = 42 ", " progress=end\r"])

        assert progress.frame == 42
        assert progress.is_end

    def test_unknown_keys_ignored(self):
        """Test keys the snapshot does not model."""
        parser = ProgressParser()
        parser.feed("stream_0_0_q=23.0")
        parser.feed("stream_1_0_q=-1.0")
        progress = parser.feed("progress=continue")

        assert progress == Progress(status=ProgressStatus.CONTINUE)
        assert parser.skipped_lines == 0

    def test_unknown_progress_value_does_not_close_cycle(self):
        """Test progress=<garbage> is skipped."""
        parser = ProgressParser()
        parser.feed("frame=7")

        assert parser.feed("progress=maybe") is None
        progress = parser.feed("progress=continue")
        assert progress is not None and progress.frame == 7
        assert parser.skipped_lines == 1

    def test_malformed_value_skipped(self):
        """Test values that fail to parse leave the field unset."""
        (progress,) = parse_progress_lines(
            ["frame=abc", "fps=fast", "bitrate=lots", "speed=1.2x", "progress=continue"]
        )

        assert progress.frame is None
        assert progress.fps is None
        assert progress.bitrate is None
        assert progress.speed == pytest.approx(1.2)

    def test_stats_line_is_not_a_frame(self):
        """Test a classic stats line does not masquerade as a frame count."""
        parser = ProgressParser()
        parser.feed("frame=  150 fps= 30 q=-1.0 size=    1024kB time=00:00:05.00")
        progress = parser.feed("progress=continue")

        assert progress is not None
        assert progress.frame is None


class TestParseProgressLines:
    """Test synchronous parsing of complete output."""

    def test_cycles_in_order(self):
        """Test N cycles give N snapshots ending with end."""
        lines = progress_stream([10, 20, 30, 40]).decode().splitlines()
        snapshots = list(parse_progress_lines(lines))

        assert [p.frame for p in snapshots] == [10, 20, 30, 40]
        assert [p.status for p in snapshots[:-1]] == ["continue"] * 3
        assert snapshots[-1].status == "end"

    def test_malformed_lines_between_cycles(self):
        """Test noise between and inside cycles does not change the count."""
        noise = [
            "garbage",
            "=novalue",
            "[mp4 @ 0x55d5] Starting second pass: moving the moov atom",
            "frame=",
            "",
        ]
        lines = []
        for block in (progress_block(1), progress_block(2), progress_block(3, "end")):
            lines.extend(noise)
            block_lines = block.splitlines()
            lines.extend(block_lines[:3] + noise + block_lines[3:])

        snapshots = list(parse_progress_lines(lines))

        assert [p.frame for p in snapshots] == [1, 2, 3]
        assert snapshots[-1].is_end

    def test_trailing_partial_cycle_dropped(self):
        """Test lines after the last marker produce nothing."""
        lines = progress_block(5, "end").splitlines() + ["frame=6", "fps=1.0"]

        assert len(list(parse_progress_lines(lines))) == 1

    def test_lazy(self):
        """Test snapshots are produced before the input is exhausted."""

        def lines():
            yield from progress_block(1).splitlines()
            raise AssertionError("read past the first cycle")

        first = next(parse_progress_lines(lines()))
        assert first.frame == 1


class TestIterLines:
    """Test splitting a byte stream into lines."""

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(self):
        """Test a line spread over several reads is joined."""
        stream = ChunkedStream([b"fra", b"me=1\npro", b"gress=end", b"\n"])

        lines = [line async for line in iter_lines(stream)]

        assert lines == ["frame=1", "progress=end"]

    @pytest.mark.asyncio
    async def test_carriage_returns(self):
        """Test \\r and \\r\\n both end a line, even split across reads."""
        stream = ChunkedStream([b"a\r", b"\nb\rc\r", b"d"])

        lines = [line async for line in iter_lines(stream)]

        assert lines == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_final_line_without_newline(self):
        """Test the last unterminated line is still yielded."""
        stream = ChunkedStream([b"x=1\ny=2"])

        lines = [line async for line in iter_lines(stream)]

        assert lines == ["x=1", "y=2"]

    @pytest.mark.asyncio
    async def test_on_line_callback(self):
        """Test every line reaches the callback."""
        seen: list[str] = []
        stream = ChunkedStream([b"one\ntwo\n"])

        async for _ in iter_lines(stream, on_line=seen.append):
            pass

        assert seen == ["one", "two"]

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self):
        """Test undecodable bytes do not abort reading."""
        stream = ChunkedStream([b"title=\xff\xfe\nprogress=end\n"])

        lines = [line async for line in iter_lines(stream)]

        assert len(lines) == 2
        assert lines[1] == "progress=end"


class TestAsyncParser:
    """Test async iteration over a live stream."""

    @pytest.mark.asyncio
    async def test_snapshots_from_stream(self):
        """Test N cycles arrive in order."""
        data = progress_stream(range(1, 6))
        chunks = [data[i : i + 7] for i in range(0, len(data), 7)]
        parser = ProgressParser(iter_lines(ChunkedStream(chunks)))

        snapshots = await collect(parser)

        assert [p.frame for p in snapshots] == [1, 2, 3, 4, 5]
        assert snapshots[-1].status == "end"
        assert parser.cycles == 5

    @pytest.mark.asyncio
    async def test_snapshot_available_before_stream_ends(self):
        """Test a completed cycle is yielded while the stream stays open."""
        stream = ChunkedStream([progress_block(1).encode()], hold_open=True)
        parser = ProgressParser(iter_lines(stream))

        first = await parser.__anext__()
        assert first.frame == 1

        stream.close()
        assert await collect(parser) == []

    @pytest.mark.asyncio
    async def test_not_restartable(self):
        """Test a drained parser stays drained."""
        parser = ProgressParser(iter_lines(ChunkedStream([progress_stream([1, 2])])))

        assert len(await collect(parser)) == 2
        assert await collect(parser) == []

    @pytest.mark.asyncio
    async def test_without_source(self):
        """Test a feed-only parser iterates to nothing."""
        assert await collect(ProgressParser()) == []
