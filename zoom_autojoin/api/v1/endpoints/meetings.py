"""
Auto-join endpoints: start a join, inspect and stop sessions.
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict, List

from zoom_autojoin.api.v1.schemas.meeting import (
    AutoJoinRequest,
    AutoJoinResponse,
    SessionStatusResponse,
)
from zoom_autojoin.core.dependencies import get_joiner
from zoom_autojoin.core.exceptions import (
    ConfigurationError,
    CredentialValidationError,
    HTTPBadGateway,
    HTTPBadRequest,
    HTTPConflict,
    HTTPInternalServerError,
    HTTPNotFound,
    MeetingAlreadyActiveError,
    MeetingJoinError,
    SessionNotFoundError,
)
from zoom_autojoin.core.logging import get_logger
from zoom_autojoin.join_engine import validate

router = APIRouter()
logger = get_logger("api.meetings")


def _session_status(active) -> Dict[str, Any]:
    session = active.handle.session
    result = active.handle.result
    return {
        "session_id": session.session_id,
        "meeting_id": session.credential.meeting_id,
        "display_name": session.credential.display_name,
        "status": session.status.value,
        "outcome": result.outcome.value if result else None,
        "completed": [target.value for target in session.ordered_completed()],
        "events": [
            {"target": event.target.value, "clicked_at": event.clicked_at}
            for event in session.events
        ],
        "started_at": session.started_at,
        "finished_at": session.finished_at,
    }


def _lookup(joiner, session_id: str):
    try:
        return joiner.get_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPNotFound(e.message)


@router.post("/auto-join", response_model=AutoJoinResponse, tags=["Meetings"])
async def auto_join(request: AutoJoinRequest, joiner=Depends(get_joiner)) -> Dict[str, Any]:
    """
    Validate the credential, open the meeting and start auto-joining.

    Returns:
        Session id to poll for progress
    """
    try:
        credential = validate(request.meeting_id, request.passcode, request.display_name)
    except CredentialValidationError as e:
        logger.info(f"Rejected auto-join request: {e.message}")
        raise HTTPBadRequest({"message": e.message, "error_code": e.code})

    try:
        active = await joiner.join(credential)
    except MeetingAlreadyActiveError as e:
        raise HTTPConflict(e.message)
    except MeetingJoinError as e:
        logger.error(f"Auto-join failed to open meeting {credential.meeting_id}: {e.message}")
        raise HTTPBadGateway(e.message)
    except ConfigurationError as e:
        logger.error(f"Auto-join misconfigured: {e.message}")
        raise HTTPInternalServerError(e.message)

    return {
        "success": True,
        "session_id": active.session_id,
        "meeting_id": credential.meeting_id,
        "display_name": credential.display_name,
    }


@router.get("/sessions", response_model=List[SessionStatusResponse], tags=["Meetings"])
async def list_sessions(joiner=Depends(get_joiner)) -> List[Dict[str, Any]]:
    """List every tracked auto-join session."""
    return [_session_status(active) for active in joiner.list_sessions()]


@router.get("/sessions/{session_id}", response_model=SessionStatusResponse, tags=["Meetings"])
async def get_session(session_id: str, joiner=Depends(get_joiner)) -> Dict[str, Any]:
    """Progress and terminal outcome of one session."""
    return _session_status(_lookup(joiner, session_id))


@router.post("/sessions/{session_id}/stop", response_model=SessionStatusResponse, tags=["Meetings"])
async def stop_session(session_id: str, joiner=Depends(get_joiner)) -> Dict[str, Any]:
    """Stop clicking; the meeting page stays open."""
    active = _lookup(joiner, session_id)
    await joiner.stop_session(session_id)
    return _session_status(active)


@router.delete("/sessions/{session_id}", tags=["Meetings"])
async def leave_meeting(session_id: str, joiner=Depends(get_joiner)) -> Dict[str, Any]:
    """Stop the session and close the meeting's browser context."""
    _lookup(joiner, session_id)
    await joiner.leave(session_id)
    return {"success": True, "session_id": session_id}
