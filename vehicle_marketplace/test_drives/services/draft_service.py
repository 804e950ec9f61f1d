import hashlib
import json
import logging

from django.db import DatabaseError, transaction

from ..models import TestDriveDraft

logger = logging.getLogger(__name__)


def owner_key_for(request, create=False):
    """Scope drafts to the signed-in user, or to the anonymous session.

    A guest without a session has no drafts; returns None unless ``create``
    asks for a session to be started.
    """
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return f"user-{user.pk}"
    session = request.session
    if not session.session_key:
        if not create:
            return None
        # An empty session is never persisted by the middleware
        session["test_drive_drafts"] = True
        session.save()
    return f"session-{session.session_key}"


def payload_checksum(payload):
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class DraftStore:
    """
    Best-effort persistence of in-progress test drive forms for one owner.
    Failures are logged and swallowed; drafts are never the system of record.
    """

    def __init__(self, owner_key):
        self.owner_key = owner_key

    def _drafts(self, vehicle_id):
        return TestDriveDraft.objects.filter(vehicle_id=str(vehicle_id), owner_key=self.owner_key)

    def save_draft(self, vehicle_id, payload):
        """Returns True when a write happened, False for no-ops and failures."""
        payload = dict(payload or {})
        checksum = payload_checksum(payload)
        try:
            stored = self._drafts(vehicle_id).values_list("checksum", flat=True).first()
            if stored == checksum:
                return False
            # Savepoint keeps a failed write from poisoning the caller's transaction
            with transaction.atomic():
                TestDriveDraft.objects.update_or_create(
                    vehicle_id=str(vehicle_id),
                    owner_key=self.owner_key,
                    defaults={"payload": payload, "checksum": checksum},
                )
        except DatabaseError:
            logger.exception("Failed to save draft for vehicle %s (%s)", vehicle_id, self.owner_key)
            return False
        logger.debug("Saved draft for vehicle %s (%s)", vehicle_id, self.owner_key)
        return True

    def load_draft(self, vehicle_id):
        try:
            draft = self._drafts(vehicle_id).first()
        except DatabaseError:
            logger.exception("Failed to load draft for vehicle %s (%s)", vehicle_id, self.owner_key)
            return None
        return dict(draft.payload) if draft else None

    def clear_draft(self, vehicle_id):
        try:
            with transaction.atomic():
                self._drafts(vehicle_id).delete()
        except DatabaseError:
            logger.exception("Failed to clear draft for vehicle %s (%s)", vehicle_id, self.owner_key)
