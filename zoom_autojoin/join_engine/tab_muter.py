"""
Best-effort browser tab muting via a synthetic keyboard shortcut.

Runs on its own APScheduler jobs, independent of the join sequence. Whether
the shortcut does anything depends on the browser (Edge honors Ctrl+M when
tab muting is bound to it); failures are only logged.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence, Set
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.core.exceptions import ConfigurationError
from zoom_autojoin.models import JoinSession
from .scripts import DISPATCH_SHORTCUT_JS


logger = get_logger("tab_muter")

UTC = ZoneInfo("UTC")

_MODIFIERS = {
    "control": "ctrlKey",
    "ctrl": "ctrlKey",
    "meta": "metaKey",
    "cmd": "metaKey",
    "command": "metaKey",
    "alt": "altKey",
    "option": "altKey",
    "shift": "shiftKey",
}


@dataclass(frozen=True)
class KeyShortcut:
    """KeyboardEvent init values for a shortcut."""
    key: str
    code: str
    keyCode: int
    ctrlKey: bool = False
    metaKey: bool = False
    altKey: bool = False
    shiftKey: bool = False


def parse_shortcut(value: str) -> KeyShortcut:
    """
    Parse "Control+M" style shortcuts (single letter or digit key).
    """
    parts = [part.strip() for part in value.split("+") if part.strip()]
    if not parts:
        raise ConfigurationError(f"Empty keyboard shortcut: {value!r}")

    *modifiers, key = parts
    flags = {}
    for modifier in modifiers:
        flag = _MODIFIERS.get(modifier.lower())
        if flag is None:
            raise ConfigurationError(f"Unknown modifier {modifier!r} in shortcut {value!r}")
        flags[flag] = True

    if len(key) != 1 or not key.isalnum():
        raise ConfigurationError(f"Shortcut key must be a single letter or digit: {value!r}")

    upper = key.upper()
    code = f"Digit{upper}" if upper.isdigit() else f"Key{upper}"
    return KeyShortcut(key=key.lower(), code=code, keyCode=ord(upper), **flags)


class TabAudioMuter:
    """Sends the mute shortcut once per session, retrying on a fixed schedule."""

    def __init__(
        self,
        document: Any,
        shortcut: Optional[KeyShortcut] = None,
        offsets_ms: Optional[Sequence[int]] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self._document = document
        self._shortcut = shortcut or parse_shortcut(settings.mute.shortcut)
        self._offsets_ms = sorted(offsets_ms if offsets_ms is not None else settings.mute.offsets_ms)
        self._muted: Set[str] = set()
        self._job_ids: List[str] = []
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            timezone=UTC,
        )

    @property
    def shortcut(self) -> KeyShortcut:
        return self._shortcut

    def is_muted(self, session: JoinSession) -> bool:
        return session.session_id in self._muted

    async def mute_once(self, session: JoinSession) -> None:
        """Dispatch the shortcut unless it already went out for this session."""
        if session.session_id in self._muted:
            return
        try:
            await self._document.evaluate(DISPATCH_SHORTCUT_JS, asdict(self._shortcut))
        except Exception as e:
            logger.debug(f"Tab mute shortcut failed for session {session.session_id}: {e}")
            return

        self._muted.add(session.session_id)
        logger.info(f"Tab mute shortcut sent for session {session.session_id}")

    async def start(self, session: JoinSession) -> None:
        """Attempt right away, then at each configured offset."""
        if not self._scheduler.running:
            self._scheduler.start()

        anchor = datetime.now(UTC)
        for offset in self._offsets_ms:
            job_id = f"mute-{session.session_id}-{offset}"
            self._scheduler.add_job(
                self._scheduled_attempt,
                trigger=DateTrigger(run_date=anchor + timedelta(milliseconds=offset), timezone=UTC),
                args=[session, offset == self._offsets_ms[-1]],
                id=job_id,
                name=job_id,
                replace_existing=True,
                misfire_grace_time=None,
            )
            self._job_ids.append(job_id)

        await self.mute_once(session)

    async def stop(self) -> None:
        """Cancel outstanding attempts. Safe to call more than once."""
        for job_id in self._job_ids:
            try:
                self._scheduler.remove_job(job_id)
            except JobLookupError:
                pass
        self._job_ids.clear()

        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    async def _scheduled_attempt(self, session: JoinSession, last: bool) -> None:
        await self.mute_once(session)
        if last:
            self._job_ids.clear()
            if self._owns_scheduler:
                asyncio.get_running_loop().call_soon(self._shutdown_idle)

    def _shutdown_idle(self) -> None:
        if self._scheduler.running and not self._scheduler.get_jobs():
            self._scheduler.shutdown(wait=False)
