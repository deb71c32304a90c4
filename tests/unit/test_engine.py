from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from zoom_autojoin.join_engine import SchedulerConfig, start_auto_join, validate
from zoom_autojoin.join_engine.scripts import DISPATCH_SHORTCUT_JS
from zoom_autojoin.models import JoinStatus, JoinTarget, SessionOutcome


class _FakeButton:
    def __init__(self, text: str) -> None:
        self.text = text
        self.clicks = 0

    async def text_content(self) -> str:
        return self.text

    async def evaluate(self, script: str, arg=None) -> bool:
        self.clicks += 1
        return True


class _FakePage:
    """Query surface of a Playwright page without bindings support."""

    def __init__(self) -> None:
        self.by_selector: Dict[str, _FakeButton] = {}
        self.buttons: List[_FakeButton] = []
        self.scripts: List[str] = []

    async def query_selector(self, selector: str) -> Optional[_FakeButton]:
        return self.by_selector.get(selector)

    async def query_selector_all(self, selector: str) -> List[_FakeButton]:
        return list(self.buttons) if selector == "button" else []

    async def evaluate(self, script: str, arg: Any = None) -> bool:
        self.scripts.append(script)
        return True


def _config() -> SchedulerConfig:
    return SchedulerConfig(
        tick_interval_ms=20,
        fixed_retry_offsets_ms=[50],
        hard_timeout_ms=2000,
        observe_dom_mutations=True,
    )


def test_full_join_on_zoom_markup() -> None:
    async def scenario():
        page = _FakePage()
        cookie = _FakeButton("Accept Cookies")
        join = _FakeButton("Join")
        audio = _FakeButton("Join Audio by Computer")
        page.by_selector['[id="onetrust-accept-btn-handler"]'] = cookie
        page.by_selector["button.preview-join-button"] = join

        events = []
        handle = await start_auto_join(
            page,
            validate("555 123 4567", "abc123", "Test User"),
            _config(),
            on_progress=events.append,
            mute=False,
        )
        assert handle.session.status is JoinStatus.PARTIALLY_JOINED

        # The audio dialog shows up once the meeting view has loaded
        page.buttons.append(audio)
        result = await handle.wait(timeout=5)
        return result, events, (cookie, join, audio)

    result, events, buttons = asyncio.run(scenario())

    assert result.outcome is SessionOutcome.SUCCEEDED
    assert result.completed == (
        JoinTarget.COOKIE_CONSENT,
        JoinTarget.JOIN_BUTTON,
        JoinTarget.JOIN_AUDIO_BUTTON,
    )
    assert [event.target for event in events] == list(result.completed)
    assert all(button.clicks == 1 for button in buttons)


def test_times_out_without_join_button() -> None:
    async def scenario():
        page = _FakePage()
        config = SchedulerConfig(
            tick_interval_ms=20,
            fixed_retry_offsets_ms=[],
            hard_timeout_ms=150,
            observe_dom_mutations=False,
        )
        handle = await start_auto_join(page, validate("123456789", "p"), config, mute=False)
        return await handle.wait(timeout=5)

    result = asyncio.run(scenario())

    assert result.outcome is SessionOutcome.TIMED_OUT
    assert result.completed == ()


def test_mute_shortcut_sent_and_stopped_with_session() -> None:
    async def scenario():
        page = _FakePage()
        handle = await start_auto_join(page, validate("123456789", "p"), _config(), mute=True)
        sent_at_start = page.scripts.count(DISPATCH_SHORTCUT_JS)
        await handle.stop()
        return handle, sent_at_start

    handle, sent_at_start = asyncio.run(scenario())

    assert sent_at_start == 1
    assert handle.result.outcome is SessionOutcome.STOPPED


def test_release_after_success_cancels_pending_mute_attempts() -> None:
    class _UnmutablePage(_FakePage):
        async def evaluate(self, script: str, arg: Any = None) -> bool:
            self.scripts.append(script)
            raise RuntimeError("Execution context was destroyed")

    async def scenario():
        page = _UnmutablePage()
        page.by_selector["button.preview-join-button"] = _FakeButton("Join")
        page.buttons.append(_FakeButton("Join Audio by Computer"))

        handle = await start_auto_join(page, validate("123456789", "p"), _config(), mute=True)
        assert handle.done
        await handle.release()
        # First scheduled mute retry is 1000ms after start
        await asyncio.sleep(1.2)
        return handle, page.scripts.count(DISPATCH_SHORTCUT_JS)

    handle, mute_attempts = asyncio.run(scenario())

    assert handle.result.outcome is SessionOutcome.SUCCEEDED
    assert mute_attempts == 1
