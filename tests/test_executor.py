"""
Tests for the job factory and the single-flight cache.
"""

import asyncio

import pytest

from ffjob.config import ExecutorConfig
from ffjob.executor import FFmpeg, FFmpegExecutor, SingleFlightCache
from ffjob.job import JobState, SinglePassFFmpegJob, TwoPassFFmpegJob
from ffjob.progress import RecordingProgressListener
from tests.fakes import FakeProcess, FakeRunner

PASS1 = ["-i", "in.mp4", "-pass", "1", "-f", "null", "-"]
PASS2 = ["-i", "in.mp4", "-pass", "2", "out.mp4"]


class TestFFmpegExecutor:
    """Test FFmpegExecutor class."""

    def test_defaults(self):
        """Test an executor builds its own wrapper from config."""
        config = ExecutorConfig(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg")
        executor = FFmpegExecutor(config=config)

        assert executor.ffmpeg.path == "/opt/ffmpeg/bin/ffmpeg"
        assert executor.config is config
        assert executor.working_dir is None

    def test_config_from_wrapper(self):
        """Test the wrapper's config is used when none is given."""
        ffmpeg = FFmpeg(runner=FakeRunner(), config=ExecutorConfig(passlog_prefix="enc"))
        executor = FFmpegExecutor(ffmpeg)

        assert executor.ffmpeg is ffmpeg
        assert executor.config.passlog_prefix == "enc"

    def test_create_job(self, tmp_path):
        """Test single-pass job creation."""
        executor = FFmpegExecutor(
            FFmpeg(runner=FakeRunner()), config=ExecutorConfig(working_dir=tmp_path)
        )
        listener = RecordingProgressListener()

        job = executor.create_job(["-i", "in.mp4", "out.mp4"], listener=listener, name="clip")

        assert isinstance(job, SinglePassFFmpegJob)
        assert job.state == JobState.READY
        assert job.args == ["-i", "in.mp4", "out.mp4"]
        assert job.listener is listener
        assert job.working_dir == tmp_path
        assert job.name == "clip"
        assert job.ffmpeg is executor.ffmpeg

    def test_create_two_pass_job_defaults(self):
        """Test prefix and cleanup policy come from config."""
        config = ExecutorConfig(passlog_prefix="clip42", cleanup_policy="lenient")
        executor = FFmpegExecutor(FFmpeg(runner=FakeRunner()), config=config)

        job = executor.create_two_pass_job(PASS1, PASS2)

        assert isinstance(job, TwoPassFFmpegJob)
        assert job.state == JobState.READY
        assert job.pass1 == PASS1
        assert job.pass2 == PASS2
        assert job.passlog_prefix == "clip42"
        assert job.cleanup_policy == "lenient"

    def test_create_two_pass_job_prefix_override(self):
        """Test an explicit prefix wins over config."""
        executor = FFmpegExecutor(FFmpeg(runner=FakeRunner()))

        job = executor.create_two_pass_job(PASS1, PASS2, passlog_prefix="other")

        assert job.passlog_prefix == "other"
        assert job.cleanup_policy == "strict"

    def test_jobs_share_wrapper_not_state(self):
        """Test jobs from one executor are independent."""
        executor = FFmpegExecutor(FFmpeg(runner=FakeRunner()))

        first = executor.create_job(["-version"])
        second = executor.create_job(["-version"])

        assert first.ffmpeg is second.ffmpeg
        assert first is not second
        assert first.name != second.name

    @pytest.mark.asyncio
    async def test_jobs_are_not_started(self):
        """Test creating a job starts no process."""
        runner = FakeRunner(FakeProcess())
        executor = FFmpegExecutor(FFmpeg(path="ffmpeg", runner=runner))

        job = executor.create_job(["-i", "in.mp4", "out.mp4"])
        await asyncio.sleep(0)
        assert runner.calls == []

        await job.run()
        assert runner.calls == [["ffmpeg", "-i", "in.mp4", "out.mp4"]]


class TestSingleFlightCache:
    """Test SingleFlightCache class."""

    @pytest.mark.asyncio
    async def test_computes_once(self):
        """Test concurrent callers share one computation."""
        cache = SingleFlightCache()
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "value"

        results = await asyncio.gather(*(cache.get("key", compute) for _ in range(5)))

        assert results == ["value"] * 5
        assert calls == 1
        assert "key" in cache

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        """Test different keys compute separately."""
        cache = SingleFlightCache()

        async def make(value):
            return value

        assert await cache.get("a", lambda: make(1)) == 1
        assert await cache.get("b", lambda: make(2)) == 2
        assert await cache.get("a", lambda: make(3)) == 1

    @pytest.mark.asyncio
    async def test_failure_evicted(self):
        """Test a failed computation is retried by the next caller."""
        cache = SingleFlightCache()
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("first attempt fails")
            return "ok"

        with pytest.raises(RuntimeError):
            await cache.get("key", flaky)
        assert "key" not in cache

        assert await cache.get("key", flaky) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_computation(self):
        """Test one caller giving up leaves the value for the others."""
        cache = SingleFlightCache()
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return 42

        impatient = asyncio.create_task(cache.get("key", slow))
        patient = asyncio.create_task(cache.get("key", slow))
        await asyncio.sleep(0)

        impatient.cancel()
        with pytest.raises(asyncio.CancelledError):
            await impatient

        release.set()
        assert await patient == 42
        assert "key" in cache

    @pytest.mark.asyncio
    async def test_clear(self):
        """Test clearing forgets values."""
        cache = SingleFlightCache()

        async def value():
            return 1

        await cache.get("key", value)
        cache.clear()

        assert "key" not in cache
