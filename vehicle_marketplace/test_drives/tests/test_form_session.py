"""
Tests for the in-memory scheduling form.
"""

from datetime import datetime
from unittest.mock import MagicMock

from django.utils import timezone

import pytest

from vehicle_marketplace.test_drives.services.form_session import TestDriveFormSession as FormSession

NOW = timezone.make_aware(datetime(2026, 11, 1, 9, 0))


def make_session(draft=None):
    store = MagicMock()
    store.load_draft.return_value = draft
    autosaver = MagicMock()
    session = FormSession("12", store, autosaver=autosaver)
    session.open()
    return session, store, autosaver


class TestFormSession:
    """Hydration, edits and validation of the form."""

    def test_open_without_draft_uses_defaults(self) -> None:
        session, _, _ = make_session()

        assert session.data["meeting_location"] == "seller"
        assert session.data["name"] == ""
        assert not session.is_dirty

    def test_open_hydrates_from_draft(self) -> None:
        """Known draft fields are restored, unknown keys are dropped."""
        session, _, _ = make_session({"name": "Taro Yamada", "bogus": "x"})

        assert session.data["name"] == "Taro Yamada"
        assert "bogus" not in session.data

    def test_update_field_marks_dirty_and_schedules_autosave(self) -> None:
        session, _, autosaver = make_session()

        session.update_field("name", "Taro")

        assert session.is_dirty
        autosaver.schedule.assert_called_once_with("12", session.data)

    def test_changing_date_clears_time(self) -> None:
        """A time picked for one date is cleared when the date changes."""
        session, _, _ = make_session({"preferred_date": "2026-11-05", "preferred_time": "10:00"})

        session.update_field("preferred_date", "2026-11-06")

        assert session.data["preferred_time"] == ""

    def test_same_date_keeps_time(self) -> None:
        session, _, _ = make_session({"preferred_date": "2026-11-05", "preferred_time": "10:00"})

        session.update_field("preferred_date", "2026-11-05")

        assert session.data["preferred_time"] == "10:00"

    def test_unknown_field_raises(self) -> None:
        session, _, _ = make_session()

        with pytest.raises(KeyError):
            session.update_field("favourite_colour", "red")

    def test_blur_sets_and_clears_errors(self) -> None:
        """Errors appear on blur and disappear once fixed."""
        session, _, _ = make_session()

        assert session.blur("name") == "Name is required"
        assert session.errors == {"name": "Name is required"}

        session.update_field("name", "Taro")
        assert session.blur("name") is None
        assert session.errors == {}

    def test_step_gate(self) -> None:
        """Step one blocks until the identity fields are valid."""
        session, _, _ = make_session()

        assert session.validate_step(1, now=NOW) is False
        assert "email" in session.errors

        for field, value in {
            "name": "Taro Yamada",
            "email": "taro@example.jp",
            "phone": "080-1234-5678",
            "license_type": "full",
            "driving_experience": "beginner",
        }.items():
            session.update_field(field, value)

        assert session.validate_step(1, now=NOW) is True
        assert session.errors == {}

    def test_close_cancels_pending_save(self) -> None:
        session, _, autosaver = make_session()
        session.update_field("name", "Taro")

        session.close()

        autosaver.cancel.assert_called_once_with("12")
