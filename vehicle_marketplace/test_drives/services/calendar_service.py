"""Calendar exports for confirmed test drives.

Produces an iCalendar (RFC 5545) file and deep links for the big web
calendars. Output depends only on the request, never on the current time.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from urllib.parse import urlencode

from django.conf import settings
from django.db import models

from ..choices import SCHEDULED_STATUSES, MeetingLocation
from ..exceptions import IncompleteEventError
from .request_service import APPOINTMENT_DURATION

ICS_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
MAX_LINE_OCTETS = 75


class CalendarProvider(models.TextChoices):
    GOOGLE = "google", "Google Calendar"
    OUTLOOK = "outlook", "Outlook"
    YAHOO = "yahoo", "Yahoo Calendar"


@dataclass(frozen=True)
class CalendarEvent:
    uid: str
    title: str
    description: str
    start: datetime
    end: datetime
    location: str = ""
    attendees: tuple = field(default_factory=tuple)
    stamp: datetime = None


def meeting_place(buyer_data):
    location = buyer_data.get("meeting_location") or ""
    if location == MeetingLocation.CUSTOM:
        return buyer_data.get("custom_location") or ""
    if location in MeetingLocation.values:
        return MeetingLocation(location).label
    return location


def to_event(request):
    if request.status not in SCHEDULED_STATUSES:
        raise IncompleteEventError(
            f"A test drive that is {request.status} has no appointment to export."
        )
    start = request.scheduled_start()
    if start is None:
        raise IncompleteEventError()

    buyer_data = request.buyer_data or {}
    location = meeting_place(buyer_data)
    description = "\n".join([
        f"Test drive appointment for {request.vehicle_title}",
        "",
        f"Meeting Location: {location}",
        f"Seller: {request.seller_name or request.seller_email}",
        f"Buyer: {buyer_data.get('name', '')} ({buyer_data.get('phone', '')})",
        f"Vehicle: {request.vehicle_title}",
        f"Notes: {buyer_data.get('additional_notes') or 'None'}",
    ])
    start = start.astimezone(dt_timezone.utc)
    return CalendarEvent(
        uid=f"test-drive-{request.pk}@{settings.TEST_DRIVE_CALENDAR_DOMAIN}",
        title=f"Test Drive - {request.vehicle_title}",
        description=description,
        start=start,
        end=start + APPOINTMENT_DURATION,
        location=location,
        attendees=tuple(a for a in (request.buyer_email, request.seller_email) if a),
        stamp=request.timestamp.astimezone(dt_timezone.utc),
    )


def _format(value):
    return value.astimezone(dt_timezone.utc).strftime(ICS_DATE_FORMAT)


def _escape(text):
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _unescape(text):
    out = []
    chars = iter(text)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append("\n" if nxt in ("n", "N") else nxt)
    return "".join(out)


def _fold(line):
    raw = line.encode("utf-8")
    if len(raw) <= MAX_LINE_OCTETS:
        return line
    parts = []
    current = ""
    limit = MAX_LINE_OCTETS
    for ch in line:
        if len((current + ch).encode("utf-8")) > limit:
            parts.append(current)
            current = ""
            # continuation lines start with a space, which counts towards the limit
            limit = MAX_LINE_OCTETS - 1
        current += ch
    parts.append(current)
    return "\r\n ".join(parts)


def to_file_format(event):
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{settings.TEST_DRIVE_CALENDAR_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{event.uid}",
        f"DTSTAMP:{_format(event.stamp or event.start)}",
        f"DTSTART:{_format(event.start)}",
        f"DTEND:{_format(event.end)}",
        f"SUMMARY:{_escape(event.title)}",
        f"DESCRIPTION:{_escape(event.description)}",
    ]
    if event.location:
        lines.append(f"LOCATION:{_escape(event.location)}")
    for attendee in event.attendees:
        lines.append(f"ATTENDEE;ROLE=REQ-PARTICIPANT:mailto:{attendee}")
    lines += [
        "BEGIN:VALARM",
        "TRIGGER:-PT15M",
        "ACTION:DISPLAY",
        "DESCRIPTION:Test Drive Reminder",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return ("\r\n".join(_fold(line) for line in lines) + "\r\n").encode("utf-8")


def _unfold(text):
    lines = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if line[:1] in (" ", "\t") and lines:
            lines[-1] += line[1:]
        elif line:
            lines.append(line)
    return lines


def parse_file_format(data):
    """Read back the first VEVENT of an iCalendar payload."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    props = {}
    attendees = []
    depth = []
    for line in _unfold(data):
        name_part, _, value = line.partition(":")
        name = name_part.split(";", 1)[0].upper()
        if name == "BEGIN":
            depth.append(value.upper())
            continue
        if name == "END":
            if depth:
                depth.pop()
            if value.upper() == "VEVENT":
                break
            continue
        # Skip alarm properties nested in the event
        if not depth or depth[-1] != "VEVENT":
            continue
        if name == "ATTENDEE":
            attendees.append(value[len("mailto:"):] if value.lower().startswith("mailto:") else value)
        else:
            props.setdefault(name, value)

    try:
        start = datetime.strptime(props["DTSTART"], ICS_DATE_FORMAT).replace(tzinfo=dt_timezone.utc)
        end = datetime.strptime(props["DTEND"], ICS_DATE_FORMAT).replace(tzinfo=dt_timezone.utc)
    except (KeyError, ValueError):
        raise IncompleteEventError("The calendar file has no usable start or end time.")
    stamp = props.get("DTSTAMP")
    return CalendarEvent(
        uid=props.get("UID", ""),
        title=_unescape(props.get("SUMMARY", "")),
        description=_unescape(props.get("DESCRIPTION", "")),
        start=start,
        end=end,
        location=_unescape(props.get("LOCATION", "")),
        attendees=tuple(attendees),
        stamp=datetime.strptime(stamp, ICS_DATE_FORMAT).replace(tzinfo=dt_timezone.utc) if stamp else None,
    )


def to_provider_link(event, provider):
    provider = CalendarProvider(provider)
    if provider == CalendarProvider.GOOGLE:
        params = {
            "action": "TEMPLATE",
            "text": event.title,
            "dates": f"{_format(event.start)}/{_format(event.end)}",
            "details": event.description,
            "location": event.location,
        }
        return f"https://calendar.google.com/calendar/render?{urlencode(params)}"
    if provider == CalendarProvider.OUTLOOK:
        params = {
            "path": "/calendar/action/compose",
            "rru": "addevent",
            "subject": event.title,
            "startdt": event.start.astimezone(dt_timezone.utc).isoformat(),
            "enddt": event.end.astimezone(dt_timezone.utc).isoformat(),
            "body": event.description,
            "location": event.location,
        }
        return f"https://outlook.live.com/calendar/0/deeplink/compose?{urlencode(params)}"
    params = {
        "v": "60",
        "title": event.title,
        "st": _format(event.start),
        "et": _format(event.end),
        "desc": event.description,
        "in_loc": event.location,
    }
    return f"https://calendar.yahoo.com/?{urlencode(params)}"
