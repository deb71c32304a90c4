"""
Data models for auto-join sessions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Set, Tuple


class JoinTarget(str, Enum):
    """UI actions the engine performs on the meeting page, in tick order."""
    COOKIE_CONSENT = "cookie_consent"
    TERMS_AGREE = "terms_agree"
    JOIN_BUTTON = "join_button"
    JOIN_AUDIO_BUTTON = "join_audio_button"


class JoinStatus(str, Enum):
    """Progress of a single join session."""
    PENDING = "pending"
    PARTIALLY_JOINED = "partially_joined"
    FULLY_JOINED = "fully_joined"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"


class SessionOutcome(str, Enum):
    """Terminal signal reported to the host."""
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"


@dataclass(frozen=True)
class MeetingCredential:
    """Normalized meeting ID / passcode / display name triple."""
    meeting_id: str
    passcode: str
    display_name: str

    def __repr__(self) -> str:
        return (
            f"MeetingCredential(meeting_id={self.meeting_id!r}, "
            f"passcode='***', display_name={self.display_name!r})"
        )


@dataclass(frozen=True)
class JoinProgressEvent:
    """Emitted once per target the engine clicked."""
    session_id: str
    target: JoinTarget
    clicked_at: datetime


@dataclass(frozen=True)
class JoinResult:
    """Terminal event emitted when a session ends."""
    session_id: str
    outcome: SessionOutcome
    completed: Tuple[JoinTarget, ...]
    started_at: datetime
    finished_at: datetime

    @property
    def elapsed_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class JoinSession:
    """
    Mutable state for one running join attempt.

    Owned by the RetryScheduler that started it. ``completed`` only grows, and
    a target is added at most once.
    """
    credential: MeetingCredential
    started_at: datetime
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    completed: Set[JoinTarget] = field(default_factory=set)
    status: JoinStatus = JoinStatus.PENDING
    finished_at: Optional[datetime] = None
    events: List[JoinProgressEvent] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JoinStatus.FULLY_JOINED, JoinStatus.TIMED_OUT, JoinStatus.STOPPED)

    def is_completed(self, target: JoinTarget) -> bool:
        return target in self.completed

    def mark_completed(self, target: JoinTarget, clicked_at: datetime) -> Optional[JoinProgressEvent]:
        """Record a successful click. Returns None if the target was already recorded."""
        if target in self.completed:
            return None
        self.completed.add(target)
        event = JoinProgressEvent(session_id=self.session_id, target=target, clicked_at=clicked_at)
        self.events.append(event)

        if JoinTarget.JOIN_BUTTON in self.completed:
            if JoinTarget.JOIN_AUDIO_BUTTON in self.completed:
                self.status = JoinStatus.FULLY_JOINED
            else:
                self.status = JoinStatus.PARTIALLY_JOINED
        return event

    def ordered_completed(self) -> Tuple[JoinTarget, ...]:
        """Completed targets in tick order."""
        return tuple(target for target in JoinTarget if target in self.completed)
