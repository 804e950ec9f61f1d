"""
Tests for calendar exports.
"""

from datetime import date, datetime, timezone as dt_timezone
from urllib.parse import parse_qs, urlsplit

import pytest

from vehicle_marketplace.test_drives.choices import TestDriveStatus as Status
from vehicle_marketplace.test_drives.exceptions import IncompleteEventError
from vehicle_marketplace.test_drives.services import calendar_service

from .factories import DriveRequestFactory, build_payload


@pytest.fixture
def confirmed_request():
    """10:00 Tokyo time on 10 November, which is 01:00 UTC."""
    return DriveRequestFactory(
        status=Status.CONFIRMED,
        scheduled_date=date(2026, 11, 10),
        scheduled_time="10:00",
        buyer_data=build_payload(
            preferred_date="2026-11-10",
            meeting_location="custom",
            custom_location="Shibuya Station, South Exit; Hachiko side",
            additional_notes="I would like to try the motorway, and parking.",
        ),
    )


@pytest.mark.django_db
class TestToEvent:
    """Building an event from a request."""

    def test_event_from_confirmed_request(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)

        assert event.uid == f"test-drive-{confirmed_request.pk}@vehicle-marketplace.example"
        assert event.title == "Test Drive - 2021 Toyota Prius"
        assert event.start == datetime(2026, 11, 10, 1, 0, tzinfo=dt_timezone.utc)
        assert event.end == datetime(2026, 11, 10, 2, 0, tzinfo=dt_timezone.utc)
        assert event.location == "Shibuya Station, South Exit; Hachiko side"
        assert event.attendees == ("taro@example.jp", "seller@example.com")
        assert "Buyer: Taro Yamada (080-1234-5678)" in event.description

    def test_named_meeting_place_uses_label(self) -> None:
        request = DriveRequestFactory(status=Status.RESCHEDULED, buyer_data=build_payload(meeting_location="office"))

        assert calendar_service.to_event(request).location == "Marketplace office"

    @pytest.mark.parametrize("status", [Status.SENT, Status.DECLINED, Status.CANCELLED])
    def test_unscheduled_request_has_no_event(self, status) -> None:
        request = DriveRequestFactory(status=status)

        with pytest.raises(IncompleteEventError):
            calendar_service.to_event(request)

    def test_missing_time_has_no_event(self) -> None:
        request = DriveRequestFactory(status=Status.CONFIRMED, scheduled_time="")

        with pytest.raises(IncompleteEventError):
            calendar_service.to_event(request)

    def test_output_is_deterministic(self, confirmed_request) -> None:
        """The same request always exports the same bytes."""
        first = calendar_service.to_file_format(calendar_service.to_event(confirmed_request))
        second = calendar_service.to_file_format(calendar_service.to_event(confirmed_request))

        assert first == second


@pytest.mark.django_db
class TestFileFormat:
    """The iCalendar rendition."""

    def test_structure(self, confirmed_request) -> None:
        data = calendar_service.to_file_format(calendar_service.to_event(confirmed_request))
        text = data.decode("utf-8")

        assert text.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
        assert text.endswith("END:VEVENT\r\nEND:VCALENDAR\r\n")
        assert "DTSTART:20261110T010000Z\r\n" in text
        assert "DTEND:20261110T020000Z\r\n" in text
        assert "TRIGGER:-PT15M\r\n" in text
        assert "ATTENDEE;ROLE=REQ-PARTICIPANT:mailto:taro@example.jp\r\n" in text
        assert "LOCATION:Shibuya Station\\, South Exit\\; Hachiko side\r\n" in text

    def test_lines_are_folded_at_75_octets(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)
        data = calendar_service.to_file_format(event)

        lines = data.split(b"\r\n")
        assert all(len(line) <= 75 for line in lines)
        assert any(line.startswith(b" ") for line in lines)

    def test_round_trip(self, confirmed_request) -> None:
        """Parsing the export gives back the same appointment."""
        event = calendar_service.to_event(confirmed_request)

        parsed = calendar_service.parse_file_format(calendar_service.to_file_format(event))

        assert parsed.start == event.start
        assert parsed.end == event.end
        assert parsed.location == event.location
        assert parsed.attendees == event.attendees
        assert parsed.title == event.title
        assert parsed.description == event.description
        assert parsed.uid == event.uid

    def test_round_trip_with_multibyte_text(self) -> None:
        """Folding never splits a multi-byte character."""
        request = DriveRequestFactory(
            status=Status.CONFIRMED,
            vehicle_title="2019 トヨタ アクア ハイブリッド",
            buyer_data=build_payload(meeting_location="custom", custom_location="渋谷駅 ハチ公口 " * 6),
        )
        event = calendar_service.to_event(request)

        parsed = calendar_service.parse_file_format(calendar_service.to_file_format(event))

        assert parsed.location == event.location
        assert parsed.title == event.title

    def test_missing_times_cannot_be_parsed(self) -> None:
        data = b"BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nSUMMARY:Test Drive\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"

        with pytest.raises(IncompleteEventError):
            calendar_service.parse_file_format(data)


@pytest.mark.django_db
class TestProviderLinks:
    """Deep links into web calendars."""

    def query(self, url):
        return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}

    def test_google(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)

        url = calendar_service.to_provider_link(event, "google")

        assert url.startswith("https://calendar.google.com/calendar/render?")
        params = self.query(url)
        assert params["action"] == "TEMPLATE"
        assert params["dates"] == "20261110T010000Z/20261110T020000Z"
        assert params["location"] == event.location

    def test_outlook(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)

        params = self.query(calendar_service.to_provider_link(event, "outlook"))

        assert params["subject"] == "Test Drive - 2021 Toyota Prius"
        assert params["startdt"] == "2026-11-10T01:00:00+00:00"

    def test_yahoo(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)

        url = calendar_service.to_provider_link(event, calendar_service.CalendarProvider.YAHOO)

        assert url.startswith("https://calendar.yahoo.com/?")
        assert self.query(url)["st"] == "20261110T010000Z"

    def test_unknown_provider(self, confirmed_request) -> None:
        event = calendar_service.to_event(confirmed_request)

        with pytest.raises(ValueError):
            calendar_service.to_provider_link(event, "icloud")
