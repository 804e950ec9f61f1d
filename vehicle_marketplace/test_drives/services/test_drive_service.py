import logging

from django.utils import timezone

from vehicle_marketplace.notifications.utils import send_user_notification

from .. import validators
from ..choices import SELLER_ACTIONS, TestDriveAction
from ..exceptions import InvalidTransitionError, TestDriveValidationError
from .request_service import RequestStore

logger = logging.getLogger(__name__)

RESPONSE_MESSAGES = {
    TestDriveAction.CONFIRM: "Your test drive of {title} has been confirmed.",
    TestDriveAction.RESCHEDULE: "The seller proposed a new time for your test drive of {title}.",
    TestDriveAction.DECLINE: "Your test drive request for {title} was declined.",
    TestDriveAction.CANCEL: "The test drive of {title} has been cancelled.",
    TestDriveAction.COMPLETE: "The test drive of {title} has been marked as completed.",
}


class TestDriveOrchestrator:
    """
    Sequences the buyer submission flow and the seller response flow
    over the injected request store, draft store and notifier.
    """

    def __init__(self, request_store=None, draft_store=None, notifier=send_user_notification):
        self.request_store = request_store or RequestStore()
        self.draft_store = draft_store
        self.notifier = notifier

    def submit(self, payload, vehicle, buyer=None, now=None):
        errors = validators.validate_all(payload, now=now)
        if errors:
            # Draft stays in place so the buyer can fix and retry
            raise TestDriveValidationError(errors)

        request = self.request_store.create(payload, vehicle, buyer=buyer, now=now)

        if self.draft_store is not None:
            self.draft_store.clear_draft(vehicle.id)

        self.notifier(
            request.seller_email,
            f"New test drive request for {request.vehicle_title} from {request.buyer_data.get('name', '')}.",
            data={"test_drive_id": request.pk, "vehicle_id": request.vehicle_id, "status": request.status},
        )
        return request

    def respond(self, request_id, action, message="", reschedule_proposal=None, actor_email=None, now=None):
        request = self.request_store.apply_transition(
            request_id,
            action,
            message=message,
            reschedule_proposal=reschedule_proposal,
            actor_email=actor_email,
            now=now,
        )
        self._notify_counter_party(request, TestDriveAction(action), actor_email)
        return request

    def cancel(self, request_id, actor_email=None, message="", now=None):
        return self.respond(request_id, TestDriveAction.CANCEL, message=message, actor_email=actor_email, now=now)

    def complete_past_appointments(self, now=None):
        now = now or timezone.now()
        completed = []
        for request in self.request_store.due_for_completion(now):
            try:
                completed.append(self.respond(request.pk, TestDriveAction.COMPLETE, now=now))
            except InvalidTransitionError:
                # Cancelled by a party since the sweep started
                logger.warning("Skipping completion of test drive %s", request.pk)
        if completed:
            logger.info("Marked %s test drive(s) as completed", len(completed))
        return completed

    def _notify_counter_party(self, request, action, actor_email):
        data = {
            "test_drive_id": request.pk,
            "vehicle_id": request.vehicle_id,
            "status": request.status,
            "response_message": request.response_message,
        }
        if request.reschedule_proposal:
            data["reschedule_proposal"] = request.reschedule_proposal
        message = RESPONSE_MESSAGES[action].format(title=request.vehicle_title)

        if action in SELLER_ACTIONS or action == TestDriveAction.COMPLETE:
            recipients = [request.buyer_email]
        elif actor_email and actor_email.strip().lower() == request.buyer_email.lower():
            recipients = [request.seller_email]
        elif actor_email:
            recipients = [request.buyer_email]
        else:
            recipients = [request.buyer_email, request.seller_email]

        for recipient in recipients:
            self.notifier(recipient, message, data=data)
