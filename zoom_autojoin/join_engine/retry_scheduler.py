"""
Retry scheduler for the join sequencer using APScheduler.

A session is driven by:
- one tick right away,
- a steady interval job (tick_interval_ms),
- one-shot jobs at fixed offsets from start, for the moments the Zoom page
  usually finishes rendering,
- DOM mutation notifications while the session is running,
- a deadline job at start + hard_timeout_ms that ends the session.

Every exit path (success, deadline, explicit stop) removes all jobs and
closes the mutation feed.
"""

from __future__ import annotations

import asyncio
import inspect
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, List, Optional, Union
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED, JobExecutionEvent
from pydantic import BaseModel, Field, field_validator

from zoom_autojoin.config import settings, get_logger, JoinSettings
from zoom_autojoin.models import (
    JoinProgressEvent,
    JoinResult,
    JoinSession,
    JoinStatus,
    SessionOutcome,
)
from .sequencer import JoinSequencer


logger = get_logger("retry_scheduler")

UTC = ZoneInfo("UTC")

ProgressCallback = Callable[[JoinProgressEvent], Union[None, Awaitable[None]]]
FinishedCallback = Callable[[JoinResult], Union[None, Awaitable[None]]]
StopHook = Callable[[], Union[None, Awaitable[None]]]


class SchedulerConfig(BaseModel):
    """Timing of one auto-join session."""
    tick_interval_ms: int = Field(default=500, gt=0)
    fixed_retry_offsets_ms: List[int] = Field(
        default_factory=lambda: [2000, 3000, 4000, 5000, 8000, 12000, 18000]
    )
    hard_timeout_ms: int = Field(default=30000, gt=0)
    observe_dom_mutations: bool = True

    @field_validator("fixed_retry_offsets_ms")
    @classmethod
    def validate_offsets(cls, v: List[int]) -> List[int]:
        if any(offset < 0 for offset in v):
            raise ValueError("Retry offsets must be non-negative")
        return sorted(set(v))

    @classmethod
    def from_settings(cls, join_settings: Optional[JoinSettings] = None) -> "SchedulerConfig":
        s = join_settings or settings.join
        return cls(
            tick_interval_ms=s.tick_interval_ms,
            fixed_retry_offsets_ms=list(s.fixed_retry_offsets_ms),
            hard_timeout_ms=s.hard_timeout_ms,
            observe_dom_mutations=s.observe_dom_mutations,
        )


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Invoke a sync or async host callback; its errors never reach the engine."""
    if callback is None:
        return
    try:
        outcome = callback(*args)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as e:
        logger.error(f"Host callback {getattr(callback, '__name__', callback)!r} failed: {e}")


class JoinSessionHandle:
    """Handle returned to the host for one running session."""

    def __init__(self, session: JoinSession, scheduler: "RetryScheduler"):
        self.session = session
        self._scheduler = scheduler
        self._done = asyncio.Event()
        self._finished = False
        self._result: Optional[JoinResult] = None
        self._stop_hooks: List[StopHook] = []
        self.job_ids: List[str] = []

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def result(self) -> Optional[JoinResult]:
        return self._result

    def add_stop_hook(self, hook: StopHook) -> None:
        """
        Register cleanup for helpers bound to the page (the tab muter).

        Hooks run once, on an explicit stop or on release().
        """
        self._stop_hooks.append(hook)

    async def wait(self, timeout: Optional[float] = None) -> JoinResult:
        """Wait for the terminal result."""
        await asyncio.wait_for(self._done.wait(), timeout)
        return self._result

    async def stop(self) -> None:
        await self._scheduler.stop(self)

    async def release(self) -> None:
        """Stop the session if still running and run the stop hooks whatever the outcome."""
        await self.stop()
        await self._run_stop_hooks()

    async def _run_stop_hooks(self) -> None:
        hooks, self._stop_hooks = self._stop_hooks, []
        for hook in hooks:
            await _call(hook)


class RetryScheduler:
    """
    Drives a JoinSequencer for a single session.

    Usage pattern:
        scheduler = RetryScheduler(sequencer, mutation_feed=feed, on_finished=report)
        handle = await scheduler.start(session)
        result = await handle.wait()
    """

    def __init__(
        self,
        sequencer: JoinSequencer,
        mutation_feed: Optional[Any] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_finished: Optional[FinishedCallback] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self._sequencer = sequencer
        self._feed = mutation_feed
        self._on_progress = on_progress
        self._on_finished = on_finished
        self._handle: Optional[JoinSessionHandle] = None

        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            timezone=UTC,
        )
        self._scheduler.add_listener(self._on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MISSED)

    @property
    def handle(self) -> Optional[JoinSessionHandle]:
        return self._handle

    def pending_job_ids(self) -> List[str]:
        """Jobs still scheduled for the current session."""
        if self._handle is None:
            return []
        return [job.id for job in self._scheduler.get_jobs() if job.id in self._handle.job_ids]

    async def start(self, session: JoinSession, config: Optional[SchedulerConfig] = None) -> JoinSessionHandle:
        """
        Start driving the session.

        Args:
            session: Fresh session owned by this scheduler from now on.
            config: Timing; defaults come from settings.

        Returns:
            Handle for waiting on or stopping the session.
        """
        if self._handle is not None:
            raise RuntimeError("RetryScheduler drives a single session; create a new one per join")

        config = config or SchedulerConfig.from_settings()
        handle = JoinSessionHandle(session, self)
        self._handle = handle

        if not self._scheduler.running:
            self._scheduler.start()

        anchor = datetime.now(UTC)
        prefix = f"autojoin-{session.session_id}"
        deadline = anchor + timedelta(milliseconds=config.hard_timeout_ms)

        self._add_job(
            handle,
            f"{prefix}-tick",
            self._run_tick,
            IntervalTrigger(
                seconds=config.tick_interval_ms / 1000,
                start_date=anchor,
                timezone=UTC,
            ),
            args=[handle, "interval"],
            coalesce=True,
        )

        for offset in config.fixed_retry_offsets_ms:
            if offset >= config.hard_timeout_ms:
                logger.debug(f"Retry offset {offset}ms is past the deadline; not scheduled")
                continue
            self._add_job(
                handle,
                f"{prefix}-retry-{offset}",
                self._run_tick,
                DateTrigger(run_date=anchor + timedelta(milliseconds=offset), timezone=UTC),
                args=[handle, f"retry+{offset}ms"],
            )

        self._add_job(
            handle,
            f"{prefix}-deadline",
            self._on_deadline,
            DateTrigger(run_date=deadline, timezone=UTC),
            args=[handle],
        )

        logger.info(
            f"Auto-join session {session.session_id} started for meeting "
            f"{session.credential.meeting_id}: tick every {config.tick_interval_ms}ms, "
            f"{len(config.fixed_retry_offsets_ms)} fixed retries, "
            f"timeout {config.hard_timeout_ms}ms"
        )

        if config.observe_dom_mutations and self._feed is not None:
            try:
                await self._feed.subscribe(lambda: self._run_tick(handle, "mutation"))
            except Exception as e:
                logger.warning(f"DOM mutation feed unavailable, relying on timers only: {e}")

        await self._run_tick(handle, "start")
        return handle

    async def stop(self, handle: Optional[JoinSessionHandle] = None) -> None:
        """Cancel the session. Safe to call repeatedly and after it ended."""
        handle = handle or self._handle
        if handle is None or handle.finished:
            return
        logger.info(f"Auto-join session {handle.session_id} stopped by host")
        await self._finish(handle, SessionOutcome.STOPPED)

    def _add_job(self, handle: JoinSessionHandle, job_id: str, func, trigger, args, **kwargs) -> None:
        self._scheduler.add_job(
            func,
            trigger=trigger,
            args=args,
            id=job_id,
            name=job_id,
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=None,
            **kwargs,
        )
        handle.job_ids.append(job_id)

    async def _run_tick(self, handle: JoinSessionHandle, trigger: str) -> None:
        if handle.finished:
            return

        try:
            result = await self._sequencer.tick(handle.session)
        except asyncio.CancelledError:
            if handle.finished:
                logger.debug(f"Tick ({trigger}) cancelled after session {handle.session_id} ended")
                return
            raise

        if result.skipped:
            logger.debug(f"Tick ({trigger}) skipped for session {handle.session_id}")
            return

        for event in result.newly_completed:
            await _call(self._on_progress, event)

        if handle.session.status is JoinStatus.FULLY_JOINED:
            await self._finish(handle, SessionOutcome.SUCCEEDED)

    async def _on_deadline(self, handle: JoinSessionHandle) -> None:
        if handle.finished:
            return
        logger.warning(
            f"Auto-join session {handle.session_id} timed out; "
            f"completed: {[t.value for t in handle.session.ordered_completed()] or 'nothing'}"
        )
        await self._finish(handle, SessionOutcome.TIMED_OUT)

    async def _finish(self, handle: JoinSessionHandle, outcome: SessionOutcome) -> None:
        if handle.finished:
            return
        handle._finished = True

        session = handle.session
        if outcome is SessionOutcome.TIMED_OUT:
            session.status = JoinStatus.TIMED_OUT
            self._sequencer.mark_timed_out()
        elif outcome is SessionOutcome.STOPPED:
            session.status = JoinStatus.STOPPED
            self._sequencer.mark_stopped()
        session.finished_at = datetime.now(settings.tz_info)

        self._remove_jobs(handle)

        if self._feed is not None:
            try:
                await self._feed.close()
            except Exception as e:
                logger.debug(f"Mutation feed close failed: {e}")

        if outcome is SessionOutcome.STOPPED:
            await handle._run_stop_hooks()

        result = JoinResult(
            session_id=session.session_id,
            outcome=outcome,
            completed=session.ordered_completed(),
            started_at=session.started_at,
            finished_at=session.finished_at,
        )
        handle._result = result
        handle._done.set()

        logger.info(
            f"Auto-join session {session.session_id} finished: {outcome.value} "
            f"after {result.elapsed_seconds:.1f}s"
        )
        await _call(self._on_finished, result)

        if self._owns_scheduler:
            # Deferred so the job calling us has returned before executors shut down
            asyncio.get_running_loop().call_soon(self._shutdown_scheduler)

    def _remove_jobs(self, handle: JoinSessionHandle) -> None:
        for job_id in handle.job_ids:
            try:
                self._scheduler.remove_job(job_id)
            except JobLookupError:
                # One-shot jobs that already ran
                pass

    def _shutdown_scheduler(self) -> None:
        loop = getattr(self._scheduler, "_eventloop", None)
        if self._scheduler.running and not (loop and loop.is_closed()):
            self._scheduler.shutdown(wait=False)

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        if event.code == EVENT_JOB_ERROR:
            logger.error(f"Auto-join job {event.job_id} failed: {event.exception}")
        elif event.code == EVENT_JOB_MISSED:
            logger.warning(f"Auto-join job {event.job_id} missed its run time")
