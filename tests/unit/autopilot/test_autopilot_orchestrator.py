"""Unit tests for the Autopilot orchestrator."""

import asyncio

import pytest

from blogpilot.api.events import EventManager, EventType
from blogpilot.autopilot import (
    Activity,
    Autopilot,
    AutopilotConfig,
    JobResult,
    JobStage,
    NoTopicsError,
)


class GatedPipeline:
    """Pipeline double that blocks each job until the gate is opened."""

    def __init__(self, fail_with: Exception | None = None, open_gate: bool = True) -> None:
        self.gate = asyncio.Event()
        if open_gate:
            self.gate.set()
        self.fail_with = fail_with
        self.configs: list[AutopilotConfig] = []

    @property
    def calls(self) -> int:
        return len(self.configs)

    async def run(self, config, report) -> JobResult:
        self.configs.append(config)
        report(Activity(JobStage.SEARCHING_TOPICS))
        await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return JobResult(run_id="run-1", success=True, title="Glow", article_id=42)


async def settle() -> None:
    """Let spawned tasks reach their first await."""
    for _ in range(3):
        await asyncio.sleep(0)


class ManualTimer:
    """Timer sleep that returns only when the test fires it."""

    def __init__(self) -> None:
        self.intervals: list[float] = []
        self._wakeup: asyncio.Future[None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._wakeup is not None and self._wakeup.cancelled()

    async def sleep(self, seconds: float) -> None:
        self.intervals.append(seconds)
        self._wakeup = asyncio.get_running_loop().create_future()
        await self._wakeup

    async def fire(self) -> None:
        """End the current interval and let the timer act on it."""
        await settle()
        assert self._wakeup is not None and not self._wakeup.done()
        self._wakeup.set_result(None)
        await settle()


@pytest.mark.unit
class TestRunOnce:
    """Tests for Autopilot.run_once."""

    @pytest.mark.asyncio
    async def test_success_updates_stats(self) -> None:
        """A successful job increments total and successful counts."""
        autopilot = Autopilot(GatedPipeline())

        result = await autopilot.run_once()

        stats = autopilot.get_stats()
        assert result is not None
        assert result.success
        assert stats.total_blogs == 1
        assert stats.successful_blogs == 1
        assert stats.failed_blogs == 0
        assert stats.last_run_time != "Never"
        assert stats.current_activity.label == 'Successfully created: "Glow"'

    @pytest.mark.asyncio
    async def test_failure_updates_stats(self) -> None:
        """A failed job is recorded and does not raise."""
        autopilot = Autopilot(GatedPipeline(fail_with=NoTopicsError("No trending topics found")))

        result = await autopilot.run_once()

        stats = autopilot.get_stats()
        assert result is not None
        assert not result.success
        assert result.error == "No trending topics found"
        assert stats.total_blogs == 1
        assert stats.failed_blogs == 1
        assert stats.current_activity.stage == JobStage.FAILED
        assert stats.current_activity.label == "Failed: No trending topics found"

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_type_name(self) -> None:
        """Errors without a message report their type."""
        autopilot = Autopilot(GatedPipeline(fail_with=RuntimeError()))

        result = await autopilot.run_once()

        assert result.error == "RuntimeError"

    @pytest.mark.asyncio
    async def test_skipped_while_job_in_flight(self) -> None:
        """A second run_once during a job returns None without running."""
        pipeline = GatedPipeline(open_gate=False)
        autopilot = Autopilot(pipeline)
        first = asyncio.create_task(autopilot.run_once())
        await settle()

        assert autopilot.job_in_flight
        assert await autopilot.run_once() is None

        pipeline.gate.set()
        await first
        assert pipeline.calls == 1
        assert not autopilot.job_in_flight
        assert autopilot.get_stats().total_blogs == 1

    @pytest.mark.asyncio
    async def test_counters_only_grow(self) -> None:
        """Totals accumulate across successes and failures."""
        pipeline = GatedPipeline()
        autopilot = Autopilot(pipeline)

        await autopilot.run_once()
        pipeline.fail_with = RuntimeError("boom")
        await autopilot.run_once()
        await autopilot.run_once()

        stats = autopilot.get_stats()
        assert stats.total_blogs == 3
        assert stats.successful_blogs == 1
        assert stats.failed_blogs == 2
        assert stats.total_blogs == stats.successful_blogs + stats.failed_blogs

    @pytest.mark.asyncio
    async def test_job_uses_config_snapshot(self) -> None:
        """Config changes during a job do not affect that job."""
        pipeline = GatedPipeline(open_gate=False)
        autopilot = Autopilot(pipeline)
        job = asyncio.create_task(autopilot.run_once())
        await settle()

        autopilot.update_config(max_retries=7)
        pipeline.gate.set()
        await job

        assert pipeline.configs[0].max_retries == 3
        assert autopilot.get_config().max_retries == 7


@pytest.mark.unit
class TestStartStop:
    """Tests for Autopilot.start and Autopilot.stop."""

    @pytest.mark.asyncio
    async def test_start_runs_job_immediately(self) -> None:
        """start sets running and kicks off one job."""
        pipeline = GatedPipeline()
        autopilot = Autopilot(pipeline)
        try:
            autopilot.start()
            await autopilot.wait_idle()

            assert pipeline.calls == 1
            assert autopilot.get_stats().is_running
            assert autopilot.get_config().enabled
        finally:
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_double_start_runs_one_job(self) -> None:
        """Two quick starts never run two jobs at once."""
        pipeline = GatedPipeline(open_gate=False)
        autopilot = Autopilot(pipeline)
        try:
            autopilot.start()
            autopilot.start()
            await settle()

            assert pipeline.calls == 1

            pipeline.gate.set()
            await autopilot.wait_idle()
            assert autopilot.get_stats().total_blogs == 1
        finally:
            pipeline.gate.set()
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_start_merges_overrides(self) -> None:
        """Overrides from a dict and keywords are merged; others are kept."""
        autopilot = Autopilot(
            GatedPipeline(), config=AutopilotConfig(brand_voice_profile="Warm")
        )
        try:
            autopilot.start({"interval_minutes": 30}, max_retries=5)

            config = autopilot.get_config()
            assert config.interval_minutes == 30
            assert config.max_retries == 5
            assert config.brand_voice_profile == "Warm"
            assert config.enabled
        finally:
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        """Stopping twice, or before starting, is harmless."""
        events = EventManager()
        subscriber = events.subscribe(frozenset({EventType.AUTOPILOT_STOPPED}))
        autopilot = Autopilot(GatedPipeline(), events=events)

        autopilot.stop()
        autopilot.start()
        await autopilot.wait_idle()
        autopilot.stop()
        autopilot.stop()

        stats = autopilot.get_stats()
        assert not stats.is_running
        assert stats.current_activity.stage == JobStage.STOPPED
        assert not autopilot.get_config().enabled
        assert subscriber.queue.qsize() == 1
        await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_stop_lets_in_flight_job_finish(self) -> None:
        """Stopping does not interrupt a running job."""
        pipeline = GatedPipeline(open_gate=False)
        autopilot = Autopilot(pipeline)
        autopilot.start()
        await settle()

        autopilot.stop()
        pipeline.gate.set()
        await autopilot.shutdown()

        stats = autopilot.get_stats()
        assert stats.successful_blogs == 1
        assert not stats.is_running

    def test_start_without_loop_raises(self) -> None:
        """start needs a running event loop."""
        autopilot = Autopilot(GatedPipeline())

        with pytest.raises(RuntimeError):
            autopilot.start()

    @pytest.mark.asyncio
    async def test_waiting_label_after_job(self) -> None:
        """After a job the activity switches to waiting while running."""
        autopilot = Autopilot(GatedPipeline(), waiting_delay=0.01)
        try:
            autopilot.start()
            await autopilot.wait_idle()
            await asyncio.sleep(0.05)

            assert autopilot.get_stats().current_activity.stage == JobStage.WAITING
        finally:
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_no_waiting_label_when_run_once_not_running(self) -> None:
        """run_once outside the schedule keeps the outcome label."""
        autopilot = Autopilot(GatedPipeline(), waiting_delay=0.01)

        await autopilot.run_once()
        await asyncio.sleep(0.05)

        assert autopilot.get_stats().current_activity.stage == JobStage.SUCCEEDED


@pytest.mark.unit
class TestTimer:
    """Tests for the recurring timer."""

    @pytest.mark.asyncio
    async def test_ticks_during_job_are_skipped(self) -> None:
        """Ticks that land while a job runs are dropped, not queued."""
        timer = ManualTimer()
        pipeline = GatedPipeline(open_gate=False)
        autopilot = Autopilot(
            pipeline, config=AutopilotConfig(interval_minutes=15), sleep=timer.sleep
        )
        try:
            autopilot.start()
            await settle()
            assert pipeline.calls == 1

            await timer.fire()
            await timer.fire()
            assert pipeline.calls == 1

            pipeline.gate.set()
            await autopilot.wait_idle()
            assert pipeline.calls == 1
            assert autopilot.get_stats().total_blogs == 1
            assert timer.intervals == [900, 900, 900]
        finally:
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_each_tick_after_a_job_starts_another(self) -> None:
        """Once the previous job is done, every tick runs a new job."""
        timer = ManualTimer()
        pipeline = GatedPipeline()
        autopilot = Autopilot(pipeline, sleep=timer.sleep)
        try:
            autopilot.start()
            await settle()
            await autopilot.wait_idle()
            assert pipeline.calls == 1

            await timer.fire()
            await autopilot.wait_idle()
            await timer.fire()
            await autopilot.wait_idle()

            assert pipeline.calls == 3
            stats = autopilot.get_stats()
            assert stats.total_blogs == 3
            assert stats.successful_blogs == 3
            assert timer.intervals == [600, 600, 600]
        finally:
            await autopilot.shutdown()

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_tick(self) -> None:
        """After stop the timer no longer waits and no job follows."""
        timer = ManualTimer()
        pipeline = GatedPipeline()
        autopilot = Autopilot(pipeline, sleep=timer.sleep)
        autopilot.start()
        await settle()

        await autopilot.shutdown()

        assert timer.cancelled
        assert pipeline.calls == 1


@pytest.mark.unit
class TestConfig:
    """Tests for config validation and update_config."""

    def test_values_below_minimum_are_clamped(self) -> None:
        """Out-of-range config values are raised to their minimums."""
        autopilot = Autopilot(
            GatedPipeline(),
            config=AutopilotConfig(interval_minutes=1, max_retries=0),
        )

        config = autopilot.get_config()
        assert config.interval_minutes == 5
        assert config.max_retries == 1

    def test_unknown_retry_strategy_rejected(self) -> None:
        """Unknown retry strategies raise ValueError."""
        autopilot = Autopilot(GatedPipeline())

        with pytest.raises(ValueError, match="linear"):
            autopilot.update_config(retry_strategy="linear")
        assert autopilot.get_config().retry_strategy == "fixed"

    def test_update_returns_merged_copy(self) -> None:
        """update_config merges and returns the new config."""
        autopilot = Autopilot(GatedPipeline())

        config = autopilot.update_config(interval_minutes=60, brand_voice_profile="Calm")

        assert config.interval_minutes == 60
        assert config.brand_voice_profile == "Calm"
        assert config.max_retries == 3

    def test_returned_copies_are_detached(self) -> None:
        """Mutating returned config or stats does not change the autopilot."""
        autopilot = Autopilot(GatedPipeline())

        autopilot.get_config().interval_minutes = 999
        autopilot.get_stats().total_blogs = 999

        assert autopilot.get_config().interval_minutes == 10
        assert autopilot.get_stats().total_blogs == 0

    @pytest.mark.asyncio
    async def test_enabling_starts_and_disabling_stops(self) -> None:
        """Toggling enabled through update_config starts and stops the timer."""
        pipeline = GatedPipeline()
        autopilot = Autopilot(pipeline)
        try:
            autopilot.update_config(enabled=True)
            await autopilot.wait_idle()
            assert autopilot.get_stats().is_running
            assert pipeline.calls == 1

            autopilot.update_config(enabled=False)
            assert not autopilot.get_stats().is_running
        finally:
            await autopilot.shutdown()


@pytest.mark.unit
class TestEvents:
    """Tests for events emitted by the autopilot."""

    @pytest.mark.asyncio
    async def test_job_emits_activity_and_completion(self) -> None:
        """A job emits activity updates and a job_completed event."""
        events = EventManager()
        subscriber = events.subscribe()
        autopilot = Autopilot(GatedPipeline(), events=events)

        await autopilot.run_once()

        received = []
        while not subscriber.queue.empty():
            received.append(subscriber.queue.get_nowait())
        types = [e.event_type for e in received]
        assert types[0] == EventType.ACTIVITY
        assert types[-1] == EventType.JOB_COMPLETED
        assert received[-1].data["article_id"] == 42
        stages = [e.data["stage"] for e in received if e.event_type == EventType.ACTIVITY]
        assert stages == ["creating", "searching_topics", "succeeded"]
