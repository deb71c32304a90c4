from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, List, Tuple

import pytest

from zoom_autojoin.core.exceptions import ConfigurationError
from zoom_autojoin.join_engine.scripts import DISPATCH_SHORTCUT_JS
from zoom_autojoin.join_engine.tab_muter import KeyShortcut, TabAudioMuter, parse_shortcut
from zoom_autojoin.models import JoinSession, MeetingCredential


class _FakeDocument:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.dispatched: List[Tuple[str, Any]] = []

    async def evaluate(self, script: str, arg=None):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("Execution context was destroyed")
        self.dispatched.append((script, arg))
        return True


def _session() -> JoinSession:
    credential = MeetingCredential("5551234567", "abc123", "Test User")
    return JoinSession(credential=credential, started_at=datetime.now(timezone.utc))


def test_parse_control_m() -> None:
    assert parse_shortcut("Control+M") == KeyShortcut(key="m", code="KeyM", keyCode=77, ctrlKey=True)


def test_parse_modifier_aliases_and_digits() -> None:
    shortcut = parse_shortcut("cmd + shift + 5")
    assert shortcut.code == "Digit5"
    assert shortcut.keyCode == 53
    assert shortcut.metaKey and shortcut.shiftKey
    assert not shortcut.ctrlKey


@pytest.mark.parametrize("value", ["", "Hyper+M", "Control+F5", "Control+"])
def test_parse_rejects_unsupported_shortcuts(value: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_shortcut(value)


def test_mute_once_is_idempotent_per_session() -> None:
    document = _FakeDocument()
    muter = TabAudioMuter(document, parse_shortcut("Control+M"), offsets_ms=[])
    first, second = _session(), _session()

    async def scenario():
        await muter.mute_once(first)
        await muter.mute_once(first)
        await muter.mute_once(second)

    asyncio.run(scenario())

    assert len(document.dispatched) == 2
    script, arg = document.dispatched[0]
    assert script == DISPATCH_SHORTCUT_JS
    assert arg == {
        "key": "m",
        "code": "KeyM",
        "keyCode": 77,
        "ctrlKey": True,
        "metaKey": False,
        "altKey": False,
        "shiftKey": False,
    }
    assert muter.is_muted(first) and muter.is_muted(second)


def test_failures_are_swallowed_and_retried() -> None:
    document = _FakeDocument(failures=1)
    muter = TabAudioMuter(document, offsets_ms=[])
    session = _session()

    asyncio.run(muter.mute_once(session))
    assert not muter.is_muted(session)

    asyncio.run(muter.mute_once(session))
    assert muter.is_muted(session)
    assert len(document.dispatched) == 1


def test_start_retries_on_schedule_until_sent() -> None:
    async def scenario():
        document = _FakeDocument(failures=2)
        muter = TabAudioMuter(document, offsets_ms=[20, 40, 60])
        session = _session()
        await muter.start(session)
        await asyncio.sleep(0.2)
        await muter.stop()
        return document, muter.is_muted(session)

    document, muted = asyncio.run(scenario())

    assert muted
    assert len(document.dispatched) == 1


def test_stop_cancels_pending_attempts() -> None:
    async def scenario():
        document = _FakeDocument(failures=1)
        muter = TabAudioMuter(document, offsets_ms=[200, 400])
        session = _session()
        await muter.start(session)
        await muter.stop()
        await muter.stop()
        await asyncio.sleep(0.3)
        return document, muter.is_muted(session)

    document, muted = asyncio.run(scenario())

    assert not muted
    assert document.dispatched == []
