"""
Auto-join entry point.

Wires locator, sequencer, mutation feed, retry scheduler and tab muter for a
page the host has already opened on the meeting URL. Host adapters (the
Playwright launcher, tests) call `start_auto_join`; nothing in here knows
which one did.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.models import JoinSession, MeetingCredential
from .locator import PageActionLocator
from .mutation_feed import PlaywrightMutationFeed
from .retry_scheduler import (
    FinishedCallback,
    JoinSessionHandle,
    ProgressCallback,
    RetryScheduler,
    SchedulerConfig,
)
from .sequencer import JoinSequencer
from .strategies import StrategyTable
from .tab_muter import TabAudioMuter


logger = get_logger("engine")


def _supports_bindings(document: Any) -> bool:
    return callable(getattr(document, "expose_binding", None)) and callable(getattr(document, "on", None))


async def start_auto_join(
    document: Any,
    credential: MeetingCredential,
    config: Optional[SchedulerConfig] = None,
    *,
    on_progress: Optional[ProgressCallback] = None,
    on_finished: Optional[FinishedCallback] = None,
    strategies: Optional[StrategyTable] = None,
    mutation_feed: Optional[Any] = None,
    mute: Optional[bool] = None,
) -> JoinSessionHandle:
    """
    Start auto-joining on an already opened meeting page.

    Args:
        document: Playwright Page (or anything with the same query surface).
        credential: Validated credential, see credentials.validate().
        config: Retry timing; defaults from settings.
        on_progress: Called with a JoinProgressEvent per clicked target.
        on_finished: Called once with the JoinResult.
        strategies: Detection strategy table; defaults plus file overrides.
        mutation_feed: Custom feed; a Playwright feed is created for pages.
        mute: Send the tab mute shortcut; defaults to settings.mute.enabled.

    Returns:
        Handle to wait on or stop the session.
    """
    config = config or SchedulerConfig.from_settings()
    session = JoinSession(credential=credential, started_at=datetime.now(settings.tz_info))

    locator = PageActionLocator(strategies)
    sequencer = JoinSequencer(document, locator)

    if mutation_feed is None and config.observe_dom_mutations and _supports_bindings(document):
        mutation_feed = PlaywrightMutationFeed(
            document,
            binding_name=f"__autojoinMutation_{session.session_id}",
            throttle_ms=settings.join.mutation_throttle_ms,
        )

    scheduler = RetryScheduler(
        sequencer,
        mutation_feed=mutation_feed,
        on_progress=on_progress,
        on_finished=on_finished,
    )

    muter: Optional[TabAudioMuter] = None
    if settings.mute.enabled if mute is None else mute:
        muter = TabAudioMuter(document)

    logger.info(f"Starting auto-join for {credential!r}")
    handle = await scheduler.start(session, config)

    if muter is not None:
        handle.add_stop_hook(muter.stop)
        await muter.start(session)

    return handle
