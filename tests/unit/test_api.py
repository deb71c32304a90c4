from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from zoom_autojoin.core.dependencies import set_joiner_instance
from zoom_autojoin.core.exceptions import (
    ConfigurationError,
    MeetingAlreadyActiveError,
    MeetingJoinError,
    SessionNotFoundError,
)
from zoom_autojoin.main import app
from zoom_autojoin.models import JoinSession, JoinStatus, JoinTarget, MeetingCredential


class _FakeJoiner:
    """In-memory stand-in for ZoomAutoJoiner; no browser involved."""

    def __init__(self, fail_open: bool = False) -> None:
        self.fail_open = fail_open
        self.misconfigured = False
        self.sessions: Dict[str, SimpleNamespace] = {}
        self.stopped: List[str] = []
        self.left: List[str] = []

    @property
    def is_running(self) -> bool:
        return bool(self.sessions)

    async def join(self, credential: MeetingCredential) -> SimpleNamespace:
        if self.fail_open:
            raise MeetingJoinError("net::ERR_NAME_NOT_RESOLVED")
        if self.misconfigured:
            raise ConfigurationError("No strategies configured for join_button")
        if any(a.credential.meeting_id == credential.meeting_id for a in self.sessions.values()):
            raise MeetingAlreadyActiveError(f"Meeting {credential.meeting_id} is already being joined")

        session = JoinSession(credential=credential, started_at=datetime.now(timezone.utc))
        handle = SimpleNamespace(session=session, result=None, session_id=session.session_id)
        active = SimpleNamespace(credential=credential, handle=handle, session_id=session.session_id)
        self.sessions[session.session_id] = active
        return active

    def get_session(self, session_id: str) -> SimpleNamespace:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"No auto-join session {session_id}")

    def list_sessions(self) -> List[SimpleNamespace]:
        return list(self.sessions.values())

    async def stop_session(self, session_id: str) -> None:
        self.stopped.append(session_id)
        self.sessions[session_id].handle.session.status = JoinStatus.STOPPED

    async def leave(self, session_id: str) -> None:
        self.left.append(session_id)
        self.sessions.pop(session_id)


@pytest.fixture()
def joiner():
    fake = _FakeJoiner()
    set_joiner_instance(fake)
    yield fake
    set_joiner_instance(None)


@pytest.fixture()
def client(joiner) -> TestClient:
    # No context manager: the startup hook would replace the fake with a real joiner
    return TestClient(app)


def _join(client: TestClient, meeting_id: str = "555 123 4567"):
    return client.post(
        "/api/v1/meetings/auto-join",
        json={"meeting_id": meeting_id, "passcode": "abc123", "display_name": "Test User"},
    )


def test_auto_join_accepts_valid_credential(client: TestClient, joiner: _FakeJoiner) -> None:
    response = _join(client)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meeting_id"] == "5551234567"
    assert body["display_name"] == "Test User"
    assert body["session_id"] in joiner.sessions


def test_auto_join_defaults_display_name(client: TestClient) -> None:
    response = client.post(
        "/api/v1/meetings/auto-join",
        json={"meeting_id": "123456789", "passcode": "p"},
    )

    assert response.status_code == 200
    assert response.json()["display_name"] == "User"


@pytest.mark.parametrize(
    ("meeting_id", "error_code"),
    [("12345678", "invalid_length"), ("12345abc9", "non_numeric_id"), ("   ", "missing_field")],
)
def test_auto_join_rejects_bad_credential(
    client: TestClient, joiner: _FakeJoiner, meeting_id: str, error_code: str
) -> None:
    response = _join(client, meeting_id)

    assert response.status_code == 400
    assert response.json()["detail"]["error_code"] == error_code
    assert joiner.sessions == {}


def test_auto_join_conflicts_on_duplicate_meeting(client: TestClient) -> None:
    assert _join(client).status_code == 200
    assert _join(client, "5551234567").status_code == 409


def test_auto_join_reports_unreachable_meeting_page(client: TestClient, joiner: _FakeJoiner) -> None:
    joiner.fail_open = True

    response = _join(client)

    assert response.status_code == 502
    assert "ERR_NAME_NOT_RESOLVED" in response.json()["detail"]


def test_auto_join_reports_bad_configuration(client: TestClient, joiner: _FakeJoiner) -> None:
    joiner.misconfigured = True

    response = _join(client)

    assert response.status_code == 500
    assert response.json()["detail"] == "No strategies configured for join_button"


def test_session_status_reports_progress(client: TestClient, joiner: _FakeJoiner) -> None:
    session_id = _join(client).json()["session_id"]
    session = joiner.sessions[session_id].handle.session
    session.mark_completed(JoinTarget.JOIN_BUTTON, datetime.now(timezone.utc))

    response = client.get(f"/api/v1/meetings/sessions/{session_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "partially_joined"
    assert body["outcome"] is None
    assert body["completed"] == ["join_button"]
    assert [event["target"] for event in body["events"]] == ["join_button"]


def test_list_sessions(client: TestClient) -> None:
    _join(client, "111111111")
    _join(client, "222222222")

    response = client.get("/api/v1/meetings/sessions")

    assert response.status_code == 200
    assert sorted(s["meeting_id"] for s in response.json()) == ["111111111", "222222222"]


def test_unknown_session_is_404(client: TestClient) -> None:
    assert client.get("/api/v1/meetings/sessions/nope").status_code == 404
    assert client.post("/api/v1/meetings/sessions/nope/stop").status_code == 404
    assert client.delete("/api/v1/meetings/sessions/nope").status_code == 404


def test_stop_and_leave_session(client: TestClient, joiner: _FakeJoiner) -> None:
    session_id = _join(client).json()["session_id"]

    stopped = client.post(f"/api/v1/meetings/sessions/{session_id}/stop")
    assert stopped.status_code == 200
    assert stopped.json()["status"] == "stopped"
    assert joiner.stopped == [session_id]

    left = client.delete(f"/api/v1/meetings/sessions/{session_id}")
    assert left.status_code == 200
    assert left.json() == {"success": True, "session_id": session_id}
    assert joiner.left == [session_id]


def test_health(client: TestClient) -> None:
    _join(client)

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["active_sessions"] == 1
    assert body["browser_running"] is True


def test_uninitialized_joiner_is_500() -> None:
    set_joiner_instance(None)
    response = TestClient(app).get("/api/v1/health")

    assert response.status_code == 500
