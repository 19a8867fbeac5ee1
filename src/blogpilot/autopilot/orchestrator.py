"""Autopilot - recurring create-and-publish jobs with an at-most-one guard."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from dataclasses import asdict, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from blogpilot.autopilot.models import (
    Activity,
    AutopilotConfig,
    AutopilotStats,
    JobResult,
    JobStage,
)
from blogpilot.images.retry import RETRY_STRATEGIES

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from blogpilot.api.events import EventManager
    from blogpilot.autopilot.pipeline import BlogPipeline

logger = logging.getLogger(__name__)

WAITING_DELAY_SECONDS = 5.0


class Autopilot:
    """Owns the schedule, the config, the stats and the job guard.

    Construct one per application and keep the handle in the composition
    root. All methods must be called from the event loop thread; ``start``
    additionally needs a running loop.

    Example:
        autopilot = Autopilot(pipeline, events=event_manager)
        autopilot.start(interval_minutes=30)
        ...
        await autopilot.shutdown()
    """

    def __init__(
        self,
        pipeline: BlogPipeline,
        events: EventManager | None = None,
        config: AutopilotConfig | None = None,
        waiting_delay: float = WAITING_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the autopilot. Nothing is scheduled until ``start``.

        Args:
            pipeline: Runs the stages of a single job.
            events: Optional event manager for SSE observers.
            config: Initial configuration. ``enabled`` is not acted on here.
            waiting_delay: Seconds after a job before the activity shows
                the waiting label.
            sleep: Waits out one timer interval.
        """
        self.pipeline = pipeline
        self.events = events
        self.waiting_delay = waiting_delay
        self._sleep = sleep
        self._config = self._validated(config or AutopilotConfig())
        self._stats = AutopilotStats()
        self._timer: asyncio.Task[None] | None = None
        self._jobs: set[asyncio.Task[JobResult]] = set()
        self._in_flight = False
        self._waiting_handle: asyncio.TimerHandle | None = None

    @property
    def job_in_flight(self) -> bool:
        """True while a job is executing (distinct from the timer being armed)."""
        return self._in_flight

    def start(self, config_overrides: dict[str, Any] | None = None, **overrides: Any) -> None:
        """Arm the timer and run one job right away.

        Overrides are merged into the config and ``enabled`` is forced on.
        Calling this while already running replaces the existing timer.

        Raises:
            RuntimeError: If there is no running event loop.
        """
        loop = asyncio.get_running_loop()
        changes = {**(config_overrides or {}), **overrides, "enabled": True}
        self._config = self._validated(self._config.merged(**changes))

        self._cancel_timer()
        self._stats.is_running = True
        self._set_activity(Activity(JobStage.STARTING))
        logger.info(
            "Autopilot started (interval=%d min, retries=%d, delay=%ds, strategy=%s)",
            self._config.interval_minutes,
            self._config.max_retries,
            self._config.image_retry_delay_seconds,
            self._config.retry_strategy,
        )
        if self.events:
            self.events.emit_autopilot_started(self._config.to_dict())

        self._spawn_job()
        self._timer = loop.create_task(self._tick(self._config.interval_minutes * 60))

    def stop(self) -> None:
        """Disarm the timer. Safe to call when not running.

        An in-flight job is not interrupted; it still updates the stats.
        """
        was_running = self._stats.is_running
        self._cancel_timer()
        self._cancel_waiting()
        self._config = replace(self._config, enabled=False)
        self._stats.is_running = False
        self._set_activity(Activity(JobStage.STOPPED))
        if was_running:
            logger.info("Autopilot stopped")
            if self.events:
                self.events.emit_autopilot_stopped()

    def update_config(self, **partial: Any) -> AutopilotConfig:
        """Merge fields into the config.

        Enabling without an armed timer starts the autopilot; disabling with
        an armed timer stops it.

        Returns:
            A copy of the merged config.
        """
        self._config = self._validated(self._config.merged(**partial))
        logger.info("Autopilot config updated: %s", ", ".join(sorted(partial)) or "no changes")
        if self._config.enabled and self._timer is None:
            self.start()
        elif not self._config.enabled and self._timer is not None:
            self.stop()
        return self.get_config()

    def get_stats(self) -> AutopilotStats:
        """Return a copy of the current statistics."""
        return replace(self._stats)

    def get_config(self) -> AutopilotConfig:
        """Return a copy of the current config."""
        return copy.deepcopy(self._config)

    async def run_once(self) -> JobResult | None:
        """Run one job unless one is already in flight.

        Returns:
            The job result, or None if the call was skipped.
        """
        if self._in_flight:
            logger.info("Blog creation already in progress, skipping")
            return None
        self._in_flight = True
        return await self._run_claimed()

    async def _run_claimed(self) -> JobResult:
        # Caller has already set the guard
        try:
            config = copy.deepcopy(self._config)
            self._cancel_waiting()
            self._stats.last_run_time = datetime.now(UTC).isoformat()
            self._set_activity(Activity(JobStage.CREATING))
            logger.info("Starting automated blog creation cycle")

            try:
                result = await self.pipeline.run(config, self._set_activity)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.exception("Autopilot blog creation failed: %s", message)
                self._stats.total_blogs += 1
                self._stats.failed_blogs += 1
                self._set_activity(Activity(JobStage.FAILED, message))
                result = JobResult(run_id=None, success=False, error=message)
            else:
                self._stats.total_blogs += 1
                self._stats.successful_blogs += 1
                self._set_activity(Activity(JobStage.SUCCEEDED, result.title or ""))
                logger.info("Published article %s: %s", result.article_id, result.title)

            if self.events:
                self.events.emit_job_completed(asdict(result))
            return result
        finally:
            self._in_flight = False
            if self._stats.is_running:
                self._schedule_waiting()

    async def wait_idle(self) -> None:
        """Wait until every spawned job has finished."""
        while self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop the schedule and wait for in-flight work to finish."""
        timer = self._timer
        self.stop()
        if timer is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        await self.wait_idle()

    async def _tick(self, interval_seconds: float) -> None:
        while True:
            await self._sleep(interval_seconds)
            self._spawn_job()

    def _spawn_job(self) -> None:
        if self._in_flight:
            logger.info("Previous job still running, skipping this cycle")
            return
        self._in_flight = True
        task = asyncio.get_running_loop().create_task(self._run_claimed())
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_waiting(self) -> None:
        self._cancel_waiting()
        loop = asyncio.get_running_loop()
        self._waiting_handle = loop.call_later(self.waiting_delay, self._show_waiting)

    def _cancel_waiting(self) -> None:
        if self._waiting_handle is not None:
            self._waiting_handle.cancel()
            self._waiting_handle = None

    def _show_waiting(self) -> None:
        self._waiting_handle = None
        if self._stats.is_running and not self._in_flight:
            self._set_activity(Activity(JobStage.WAITING))

    def _set_activity(self, activity: Activity) -> None:
        self._stats.current_activity = activity
        logger.debug("Activity: %s", activity.label)
        if self.events:
            self.events.emit_activity(activity.to_dict())

    @staticmethod
    def _validated(config: AutopilotConfig) -> AutopilotConfig:
        if config.retry_strategy not in RETRY_STRATEGIES:
            raise ValueError(
                f"Unknown retry strategy '{config.retry_strategy}'. "
                f"Choose from: {', '.join(RETRY_STRATEGIES)}"
            )
        clamped = config.clamped()
        if clamped != config:
            logger.warning(
                "Autopilot config below minimums, clamped to interval=%d min, "
                "retries=%d, delay=%ds",
                clamped.interval_minutes,
                clamped.max_retries,
                clamped.image_retry_delay_seconds,
            )
        return clamped
