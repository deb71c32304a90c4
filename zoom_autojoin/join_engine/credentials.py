"""
Meeting credential validation and join URL construction.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlencode

from zoom_autojoin.config import settings, get_logger
from zoom_autojoin.core.exceptions import (
    InvalidLengthError,
    MissingFieldError,
    NonNumericIdError,
)
from zoom_autojoin.models import MeetingCredential


logger = get_logger("credentials")

MIN_MEETING_ID_LENGTH = 9
MAX_MEETING_ID_LENGTH = 11

_WHITESPACE = re.compile(r"\s+")
_DIGITS = re.compile(r"^\d+$")


def validate(
    meeting_id: Optional[str],
    passcode: Optional[str],
    display_name: Optional[str] = None,
) -> MeetingCredential:
    """
    Validate and normalize a meeting credential.

    Whitespace anywhere in the meeting ID is dropped ("555 123 4567" is how
    Zoom prints IDs); the passcode and display name are stripped.

    Raises:
        MissingFieldError: meeting ID or passcode empty after normalization.
        InvalidLengthError: meeting ID not 9-11 characters.
        NonNumericIdError: meeting ID contains non-digits.
    """
    clean_id = _WHITESPACE.sub("", meeting_id or "")
    clean_passcode = (passcode or "").strip()

    if not clean_id or not clean_passcode:
        missing = [name for name, value in (("meeting_id", clean_id), ("passcode", clean_passcode)) if not value]
        raise MissingFieldError(
            "Meeting ID and password are required",
            details={"fields": missing},
        )

    if not MIN_MEETING_ID_LENGTH <= len(clean_id) <= MAX_MEETING_ID_LENGTH:
        raise InvalidLengthError(
            f"Meeting ID must be {MIN_MEETING_ID_LENGTH}-{MAX_MEETING_ID_LENGTH} digits",
            details={"length": len(clean_id)},
        )

    if not _DIGITS.match(clean_id):
        raise NonNumericIdError("Meeting ID must contain only numbers")

    name = (display_name or "").strip() or settings.join.default_display_name
    logger.debug(f"Credential accepted for meeting {clean_id} as '{name}'")
    return MeetingCredential(meeting_id=clean_id, passcode=clean_passcode, display_name=name)


def build_join_url(credential: MeetingCredential, base_url: Optional[str] = None) -> str:
    """Web client URL that opens the preview screen with passcode and name pre-filled."""
    base = (base_url or settings.join.join_url_base).rstrip("/")
    query = urlencode({"pwd": credential.passcode, "uname": credential.display_name})
    return f"{base}/{credential.meeting_id}?{query}"
