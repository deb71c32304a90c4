"""
API request/response schemas for auto-join operations.
"""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime


class AutoJoinRequest(BaseModel):
    """Request to open a meeting and auto-join it."""
    meeting_id: str = Field(..., description="Zoom meeting ID (spaces allowed)")
    passcode: str = Field(..., description="Meeting passcode")
    display_name: Optional[str] = Field(default=None, description="Name shown in the meeting")


class AutoJoinResponse(BaseModel):
    """Response for an auto-join request."""
    success: bool
    session_id: Optional[str] = None
    meeting_id: Optional[str] = None
    display_name: Optional[str] = None
    error: Optional[str] = None


class ProgressEventResponse(BaseModel):
    """A target the engine clicked."""
    target: str
    clicked_at: datetime


class SessionStatusResponse(BaseModel):
    """State of one auto-join session."""
    session_id: str
    meeting_id: str
    display_name: str
    status: str
    outcome: Optional[str] = None
    completed: List[str]
    events: List[ProgressEventResponse]
    started_at: datetime
    finished_at: Optional[datetime] = None


class HealthCheckResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    timestamp: datetime
    version: str
    browser_running: bool
    active_sessions: int
