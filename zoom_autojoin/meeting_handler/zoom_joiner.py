"""
Playwright host for the auto-join engine.

Opens the Zoom web client join URL in its own browser context and runs the
engine inside that page, which is the one integration that survives the
browser's cross-origin rules (a host page cannot script a zoom.us popup).

- Launches Chromium, or attaches to a running browser over CDP
- One isolated context per meeting, kept open after the join so the bot
  stays in the meeting until `leave()`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Error as PlaywrightError,
)

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.core.exceptions import (
    MeetingAlreadyActiveError,
    MeetingJoinError,
    SessionNotFoundError,
)
from zoom_autojoin.join_engine import (
    JoinSessionHandle,
    SchedulerConfig,
    build_join_url,
    start_auto_join,
)
from zoom_autojoin.join_engine.retry_scheduler import FinishedCallback, ProgressCallback
from zoom_autojoin.models import MeetingCredential


logger = get_logger("zoom_joiner")


@dataclass
class ActiveJoin:
    """Browser resources and engine handle of one meeting."""
    credential: MeetingCredential
    context: BrowserContext
    page: Page
    handle: JoinSessionHandle

    @property
    def session_id(self) -> str:
        return self.handle.session_id


class ZoomAutoJoiner:
    """
    High-level interface for auto-joining Zoom meetings via Playwright.

    Usage pattern:
        joiner = ZoomAutoJoiner()
        await joiner.start()
        active = await joiner.join(credential)
        result = await active.handle.wait()
        await joiner.stop()
    """

    def __init__(self) -> None:
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._attached = False

        # session_id -> active join
        self.sessions: Dict[str, ActiveJoin] = {}
        # Meeting IDs between the duplicate check and session tracking
        self._opening: Set[str] = set()

    @property
    def is_running(self) -> bool:
        """Return True if the browser is currently available."""
        return self._browser is not None

    async def start(self) -> None:
        """
        Start Playwright and launch (or attach to) a Chromium browser.
        """
        if self._browser is not None:
            return

        logger.info("Starting Playwright auto-joiner...")
        self._playwright = await async_playwright().start()

        try:
            if settings.browser.cdp_endpoint:
                self._browser = await self._playwright.chromium.connect_over_cdp(settings.browser.cdp_endpoint)
                self._attached = True
                logger.info(f"Attached to running browser at {settings.browser.cdp_endpoint}")
            else:
                self._browser = await self._playwright.chromium.launch(
                    headless=settings.browser.headless,
                    ignore_default_args=["--enable-automation"],
                    args=[
                        "--use-fake-ui-for-media-stream",  # Auto-accept mic/camera prompts
                        "--disable-blink-features=AutomationControlled",
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--start-maximized",
                        "--disable-infobars",
                    ]
                )
                logger.info("Playwright auto-joiner started.")
        except PlaywrightError as e:
            await self._playwright.stop()
            self._playwright = None
            raise MeetingJoinError(f"Could not start browser: {e}") from e

    async def stop(self) -> None:
        """
        Stop all sessions, close their contexts and the browser.
        """
        logger.info("Stopping Playwright auto-joiner...")

        for session_id in list(self.sessions):
            await self.leave(session_id)

        try:
            if self._browser is not None and not self._attached:
                await self._browser.close()
        finally:
            self._browser = None
            self._attached = False

        try:
            if self._playwright is not None:
                await self._playwright.stop()
        finally:
            self._playwright = None

    async def join(
        self,
        credential: MeetingCredential,
        config: Optional[SchedulerConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_finished: Optional[FinishedCallback] = None,
    ) -> ActiveJoin:
        """
        Open the meeting and start the auto-join engine on it.

        Raises:
            MeetingAlreadyActiveError: A session for this meeting ID is open
                or still being opened.
            MeetingJoinError: The browser or page could not be opened.
        """
        meeting_id = credential.meeting_id
        for active in self.sessions.values():
            if active.credential.meeting_id == meeting_id:
                raise MeetingAlreadyActiveError(
                    f"Meeting {meeting_id} already has session {active.session_id}",
                    details={"session_id": active.session_id},
                )
        if meeting_id in self._opening:
            raise MeetingAlreadyActiveError(f"Meeting {meeting_id} is already being opened")

        # Reserved until the session is tracked or the attempt fails
        self._opening.add(meeting_id)
        try:
            if self._browser is None:
                await self.start()

            join_url = build_join_url(credential)
            logger.info(f"Opening Zoom web client for meeting {meeting_id} as '{credential.display_name}'")

            try:
                context = await self._new_context()
            except PlaywrightError as e:
                raise MeetingJoinError(f"Could not open meeting {meeting_id}: {e}") from e

            try:
                page = await context.new_page()
                await page.goto(
                    join_url,
                    wait_until="domcontentloaded",
                    timeout=settings.browser.navigation_timeout_ms,
                )
                handle = await start_auto_join(
                    page,
                    credential,
                    config,
                    on_progress=on_progress,
                    on_finished=on_finished,
                )
            except PlaywrightError as e:
                await self._close_context(context, meeting_id)
                raise MeetingJoinError(f"Could not open meeting {meeting_id}: {e}") from e
            except BaseException:
                await self._close_context(context, meeting_id)
                raise

            active = ActiveJoin(credential=credential, context=context, page=page, handle=handle)
            self.sessions[active.session_id] = active
            return active
        finally:
            self._opening.discard(meeting_id)

    def get_session(self, session_id: str) -> ActiveJoin:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Unknown session {session_id}") from None

    def list_sessions(self) -> List[ActiveJoin]:
        return list(self.sessions.values())

    async def stop_session(self, session_id: str) -> ActiveJoin:
        """Stop the engine but leave the meeting page open."""
        active = self.get_session(session_id)
        await active.handle.stop()
        return active

    async def leave(self, session_id: str) -> None:
        """Stop the engine and its tab muter, then close the meeting's browser context."""
        active = self.get_session(session_id)
        try:
            await active.handle.release()
            await self._close_context(active.context, active.credential.meeting_id)
        finally:
            self.sessions.pop(session_id, None)
        logger.info(f"Left meeting {active.credential.meeting_id} (session {session_id})")

    async def _new_context(self) -> BrowserContext:
        """Create a new browser context with media permissions and stealth settings."""
        context = await self._browser.new_context(
            user_agent=settings.browser.user_agent,
            viewport={"width": 1280, "height": 720},
            permissions=["microphone", "camera"],
            ignore_https_errors=True
        )

        # Stealth: clear navigator.webdriver
        await context.add_init_script("Object.defineProperty(navigator, 'webdriver', {get: () => undefined})")
        return context

    async def _close_context(self, context: BrowserContext, meeting_id: str) -> None:
        try:
            await context.close()
        except PlaywrightError as e:
            logger.warning(f"Closing context for meeting {meeting_id} failed: {e}")
