from __future__ import annotations

import pytest

from zoom_autojoin.config import settings
from zoom_autojoin.core.exceptions import (
    CredentialValidationError,
    InvalidLengthError,
    MissingFieldError,
    NonNumericIdError,
)
from zoom_autojoin.join_engine.credentials import build_join_url, validate
from zoom_autojoin.models import MeetingCredential


def test_validate_accepts_nine_digit_id() -> None:
    credential = validate("123456789", "p")
    assert credential.meeting_id == "123456789"
    assert credential.passcode == "p"


def test_validate_rejects_eight_digits() -> None:
    with pytest.raises(InvalidLengthError) as exc:
        validate("12345678", "p")
    assert exc.value.code == "invalid_length"
    assert exc.value.details == {"length": 8}


def test_validate_rejects_twelve_digits() -> None:
    with pytest.raises(InvalidLengthError):
        validate("123456789012", "p")


def test_validate_rejects_non_numeric_id() -> None:
    with pytest.raises(NonNumericIdError) as exc:
        validate("12345678a", "p")
    assert exc.value.message == "Meeting ID must contain only numbers"


@pytest.mark.parametrize(
    ("meeting_id", "passcode", "missing"),
    [
        ("123456789", "", ["passcode"]),
        ("123456789", "   ", ["passcode"]),
        ("", "p", ["meeting_id"]),
        (None, None, ["meeting_id", "passcode"]),
    ],
)
def test_validate_reports_missing_fields(meeting_id, passcode, missing) -> None:
    with pytest.raises(MissingFieldError) as exc:
        validate(meeting_id, passcode)
    assert exc.value.details["fields"] == missing
    assert isinstance(exc.value, CredentialValidationError)


def test_validate_normalizes_whitespace() -> None:
    credential = validate(" 555 123 4567 ", "  abc123 ", "  Test User ")
    assert credential == MeetingCredential("5551234567", "abc123", "Test User")


def test_missing_check_runs_before_length_check() -> None:
    with pytest.raises(MissingFieldError):
        validate("1", "")


def test_display_name_defaults_to_placeholder() -> None:
    assert validate("123456789", "p").display_name == settings.join.default_display_name
    assert validate("123456789", "p", "   ").display_name == settings.join.default_display_name


def test_credential_repr_hides_passcode() -> None:
    credential = validate("5551234567", "s3cret", "Test User")
    assert "s3cret" not in repr(credential)


def test_build_join_url_encodes_query() -> None:
    credential = validate("5551234567", "abc 123", "Test User")
    url = build_join_url(credential, base_url="https://zoom.us/wc/join/")
    assert url == "https://zoom.us/wc/join/5551234567?pwd=abc+123&uname=Test+User"


def test_build_join_url_uses_configured_base() -> None:
    credential = validate("5551234567", "abc123")
    assert build_join_url(credential).startswith(f"{settings.join.join_url_base}/5551234567?")
