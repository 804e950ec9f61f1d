"""Field-level rules for a test drive request payload.

Everything here is pure: callers pass the payload (and optionally ``now``)
and get back error messages keyed by field. Nothing raises for malformed
input; an unparseable value is reported as a field error.
"""
import re
from datetime import date, timedelta

import bleach
from django.conf import settings
from django.utils import timezone

from .choices import DrivingExperience, LicenseType, MeetingLocation

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = ("name", "email", "phone", "license_type", "driving_experience",
                   "preferred_date", "meeting_location")
OPTIONAL_FIELDS = ("custom_location", "preferred_time", "emergency_contact_name",
                   "emergency_contact_phone", "additional_notes")
PAYLOAD_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS

STEP_FIELDS = {
    1: ("name", "email", "phone", "license_type", "driving_experience"),
    2: ("preferred_date", "preferred_time", "meeting_location", "custom_location"),
}

DEFAULT_PAYLOAD = {
    "name": "",
    "email": "",
    "phone": "",
    "license_type": "",
    "driving_experience": "",
    "preferred_date": "",
    "preferred_time": "",
    "meeting_location": MeetingLocation.SELLER.value,
    "custom_location": "",
    "emergency_contact_name": "",
    "emergency_contact_phone": "",
    "additional_notes": "",
}

CHOICE_FIELDS = {
    "license_type": (LicenseType, "License type is required"),
    "driving_experience": (DrivingExperience, "Driving experience is required"),
    "meeting_location": (MeetingLocation, "Meeting location is required"),
}


def _text(value):
    if value is None:
        return ""
    return str(value).strip()


def count_digits(value):
    return sum(ch.isdigit() for ch in _text(value))


def is_valid_email(value):
    return bool(EMAIL_RE.match(_text(value)))


def is_valid_phone(value):
    return count_digits(value) >= settings.TEST_DRIVE_MIN_PHONE_DIGITS


def parse_date(value):
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(_text(value))
    except ValueError:
        return None


def booking_window(now=None):
    """First and last bookable dates for a request made at ``now``."""
    now = timezone.localtime(now or timezone.now())
    lead = timedelta(hours=settings.TEST_DRIVE_MIN_LEAD_HOURS)
    horizon = timedelta(days=settings.TEST_DRIVE_MAX_ADVANCE_DAYS)
    return (now + lead).date() + timedelta(days=1), (now + horizon).date()


def validate_booking_date(value, now=None):
    if not _text(value):
        return "Preferred date is required"
    chosen = parse_date(value)
    if chosen is None:
        return "Please enter a valid date"
    earliest, latest = booking_window(now)
    if chosen < earliest:
        return f"Test drives must be booked at least {settings.TEST_DRIVE_MIN_LEAD_HOURS} hours in advance"
    if chosen > latest:
        return f"Test drives can be booked at most {settings.TEST_DRIVE_MAX_ADVANCE_DAYS} days ahead"
    return None


def validate_field(field, value, context=None, now=None):
    """Return the error message for one field, or None.

    ``context`` is the rest of the payload, needed for the paired
    date/time rule and the custom location rule.
    """
    context = context or {}

    if field == "name":
        if not _text(value):
            return "Name is required"
    elif field == "email":
        if not _text(value):
            return "Email is required"
        if not is_valid_email(value):
            return "Please enter a valid email address"
    elif field == "phone":
        if not _text(value):
            return "Phone number is required"
        if not is_valid_phone(value):
            return "Please enter a valid phone number"
    elif field in CHOICE_FIELDS:
        choices, required_message = CHOICE_FIELDS[field]
        if not _text(value):
            return required_message
        if _text(value) not in choices.values:
            return f"Must be one of: {', '.join(choices.values)}"
    elif field == "preferred_date":
        return validate_booking_date(value, now=now)
    elif field == "preferred_time":
        if _text(context.get("preferred_date")) and not _text(value):
            return "Preferred time is required"
    elif field == "custom_location":
        if _text(context.get("meeting_location")) == MeetingLocation.CUSTOM and not _text(value):
            return "Please specify the custom location"
    elif field == "emergency_contact_phone":
        if _text(value) and not is_valid_phone(value):
            return "Please enter a valid emergency contact phone"
    return None


def validate_fields(payload, fields, now=None):
    payload = payload or {}
    errors = {}
    for field in fields:
        error = validate_field(field, payload.get(field), context=payload, now=now)
        if error:
            errors[field] = error
    return errors


def validate_all(payload, now=None):
    return validate_fields(payload, PAYLOAD_FIELDS, now=now)


def validate_step(payload, step, now=None):
    if step not in STEP_FIELDS:
        raise ValueError(f"Unknown form step: {step}")
    return validate_fields(payload, STEP_FIELDS[step], now=now)


def normalize_payload(payload):
    """Owned, cleaned copy of a payload as stored on a request."""
    cleaned = {}
    for field in PAYLOAD_FIELDS:
        cleaned[field] = bleach.clean(_text(payload.get(field)), tags=[], strip=True)
    cleaned["email"] = cleaned["email"].lower()
    if cleaned["meeting_location"] != MeetingLocation.CUSTOM:
        cleaned["custom_location"] = ""
    return cleaned
