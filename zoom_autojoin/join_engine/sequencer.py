"""
Join sequencer: one pass over the join targets per tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.models import JoinProgressEvent, JoinSession, JoinStatus, JoinTarget
from .locator import PageActionLocator
from .scripts import CLICK_IF_CONNECTED_JS


logger = get_logger("sequencer")

# Best-effort targets: clicked when present, never waited on.
PRELUDE_TARGETS = (JoinTarget.COOKIE_CONSENT, JoinTarget.TERMS_AGREE)


class SequencerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SequenceStepResult:
    """What a single tick did."""
    attempted: Tuple[JoinTarget, ...] = ()
    newly_completed: Tuple[JoinProgressEvent, ...] = ()
    skipped: bool = False

    @property
    def targets_completed(self) -> Tuple[JoinTarget, ...]:
        return tuple(event.target for event in self.newly_completed)


def _now() -> datetime:
    return datetime.now(settings.tz_info)


class JoinSequencer:
    """
    Runs the ordered click sequence against one document.

    Order per tick: cookie consent, terms agree, Join (until clicked), then
    Join Audio (only once Join is clicked). Every target is clicked at most
    once per session.
    """

    def __init__(
        self,
        document: Any,
        locator: Optional[PageActionLocator] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self._document = document
        self._locator = locator or PageActionLocator()
        self._clock = clock
        self._state = SequencerState.IDLE
        self._in_progress = False

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    def mark_timed_out(self) -> None:
        if self._state in (SequencerState.IDLE, SequencerState.RUNNING):
            self._state = SequencerState.TIMED_OUT

    def mark_stopped(self) -> None:
        if self._state in (SequencerState.IDLE, SequencerState.RUNNING):
            self._state = SequencerState.STOPPED

    async def tick(self, session: JoinSession) -> SequenceStepResult:
        """
        Attempt every outstanding target once.

        Overlapping calls (timer and mutation callbacks interleave at each
        await) and calls after the session ended are no-ops.
        """
        if self._in_progress or session.is_terminal:
            return SequenceStepResult(skipped=True)

        self._in_progress = True
        if self._state is SequencerState.IDLE:
            self._state = SequencerState.RUNNING

        attempted: List[JoinTarget] = []
        completed: List[JoinProgressEvent] = []
        try:
            for target in PRELUDE_TARGETS:
                if not session.is_completed(target):
                    await self._attempt(session, target, attempted, completed)

            if not session.is_completed(JoinTarget.JOIN_BUTTON):
                await self._attempt(session, JoinTarget.JOIN_BUTTON, attempted, completed)

            if (
                session.is_completed(JoinTarget.JOIN_BUTTON)
                and not session.is_completed(JoinTarget.JOIN_AUDIO_BUTTON)
            ):
                await self._attempt(session, JoinTarget.JOIN_AUDIO_BUTTON, attempted, completed)
        finally:
            self._in_progress = False

        if session.status is JoinStatus.FULLY_JOINED:
            self._state = SequencerState.SUCCEEDED

        return SequenceStepResult(attempted=tuple(attempted), newly_completed=tuple(completed))

    async def _attempt(
        self,
        session: JoinSession,
        target: JoinTarget,
        attempted: List[JoinTarget],
        completed: List[JoinProgressEvent],
    ) -> None:
        # Deadline or stop may land while an earlier await was pending
        if session.is_terminal:
            return

        attempted.append(target)
        element = await self._locator.find(target, self._document)
        if element is None:
            return

        if not await self._click(target, element):
            return

        if session.is_terminal:
            logger.warning(f"{target.value} clicked after session {session.session_id} ended; not recorded")
            return

        event = session.mark_completed(target, self._clock())
        if event is not None:
            completed.append(event)
            logger.info(f"Session {session.session_id}: clicked {target.value}")

    async def _click(self, target: JoinTarget, element: Any) -> bool:
        try:
            clicked = await element.evaluate(CLICK_IF_CONNECTED_JS)
        except Exception as e:
            logger.debug(f"Click on {target.value} failed, retrying next tick: {e}")
            return False

        if not clicked:
            logger.debug(f"{target.value} element detached before click, retrying next tick")
            return False
        return True
