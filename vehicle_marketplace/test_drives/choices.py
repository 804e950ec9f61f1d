from django.db import models


class TestDriveStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SENDING = "sending", "Sending"
    SENT = "sent", "Sent"
    CONFIRMED = "confirmed", "Confirmed"
    RESCHEDULED = "rescheduled", "Rescheduled"
    DECLINED = "declined", "Declined"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class TestDriveAction(models.TextChoices):
    SUBMIT = "submit", "Submit"
    PERSIST_OK = "persist_ok", "Persisted"
    PERSIST_ERROR = "persist_error", "Persist error"
    CONFIRM = "confirm", "Confirm"
    RESCHEDULE = "reschedule", "Reschedule"
    DECLINE = "decline", "Decline"
    COMPLETE = "complete", "Mark done"
    CANCEL = "cancel", "Cancel"


class LicenseType(models.TextChoices):
    FULL = "full", "Full"
    PROVISIONAL = "provisional", "Provisional"
    INTERNATIONAL = "international", "International"


class DrivingExperience(models.TextChoices):
    BEGINNER = "beginner", "Beginner"
    INTERMEDIATE = "intermediate", "Intermediate"
    EXPERIENCED = "experienced", "Experienced"


class MeetingLocation(models.TextChoices):
    SELLER = "seller", "Seller's location"
    OFFICE = "office", "Marketplace office"
    PUBLIC = "public", "Public meeting place"
    CUSTOM = "custom", "Custom location"


# (from, action) -> to. Anything not listed is an illegal transition.
TRANSITIONS = {
    (TestDriveStatus.DRAFT, TestDriveAction.SUBMIT): TestDriveStatus.SENDING,
    (TestDriveStatus.SENDING, TestDriveAction.PERSIST_OK): TestDriveStatus.SENT,
    (TestDriveStatus.SENDING, TestDriveAction.PERSIST_ERROR): TestDriveStatus.FAILED,
    (TestDriveStatus.SENT, TestDriveAction.CONFIRM): TestDriveStatus.CONFIRMED,
    (TestDriveStatus.SENT, TestDriveAction.RESCHEDULE): TestDriveStatus.RESCHEDULED,
    (TestDriveStatus.SENT, TestDriveAction.DECLINE): TestDriveStatus.DECLINED,
    (TestDriveStatus.CONFIRMED, TestDriveAction.COMPLETE): TestDriveStatus.COMPLETED,
    (TestDriveStatus.RESCHEDULED, TestDriveAction.COMPLETE): TestDriveStatus.COMPLETED,
    (TestDriveStatus.SENT, TestDriveAction.CANCEL): TestDriveStatus.CANCELLED,
    (TestDriveStatus.CONFIRMED, TestDriveAction.CANCEL): TestDriveStatus.CANCELLED,
    (TestDriveStatus.RESCHEDULED, TestDriveAction.CANCEL): TestDriveStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset({
    TestDriveStatus.FAILED,
    TestDriveStatus.COMPLETED,
    TestDriveStatus.CANCELLED,
    TestDriveStatus.DECLINED,
})

SELLER_ACTIONS = frozenset({
    TestDriveAction.CONFIRM,
    TestDriveAction.RESCHEDULE,
    TestDriveAction.DECLINE,
})

# Actions a caller may request through apply_transition; the rest belong to create().
PUBLIC_ACTIONS = SELLER_ACTIONS | {TestDriveAction.COMPLETE, TestDriveAction.CANCEL}

RESPONDED_STATUSES = frozenset({
    TestDriveStatus.CONFIRMED,
    TestDriveStatus.RESCHEDULED,
    TestDriveStatus.DECLINED,
})

# Statuses with an appointment that can be exported to a calendar.
SCHEDULED_STATUSES = frozenset({
    TestDriveStatus.CONFIRMED,
    TestDriveStatus.RESCHEDULED,
    TestDriveStatus.COMPLETED,
})


def next_status(current, action):
    """Return the target status, or None when the table has no such edge."""
    return TRANSITIONS.get((TestDriveStatus(current), TestDriveAction(action)))
