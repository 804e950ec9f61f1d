import logging
from datetime import timedelta

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from .. import validators
from ..choices import (
    PUBLIC_ACTIONS,
    RESPONDED_STATUSES,
    SELLER_ACTIONS,
    TERMINAL_STATUSES,
    TestDriveAction,
    TestDriveStatus,
    next_status,
)
from ..exceptions import InvalidTransitionError, NotFoundError, RequestStoreError, TestDriveValidationError
from ..models import TestDriveRequest

logger = logging.getLogger(__name__)

APPOINTMENT_DURATION = timedelta(hours=1)


def _same_email(a, b):
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


class RequestStore:
    """System of record for test drive requests."""

    @staticmethod
    def create(payload, vehicle, buyer=None, now=None):
        errors = validators.validate_all(payload, now=now)
        if errors:
            raise TestDriveValidationError(errors)

        buyer_data = validators.normalize_payload(payload)
        try:
            request = TestDriveRequest.objects.create(
                vehicle_id=str(vehicle.id),
                vehicle_title=vehicle.title,
                vehicle_price=vehicle.price,
                seller_email=vehicle.seller_email,
                seller_name=vehicle.seller_name,
                buyer=buyer if buyer is not None and buyer.is_authenticated else None,
                buyer_email=buyer_data["email"],
                buyer_data=buyer_data,
                status=next_status(TestDriveStatus.DRAFT, TestDriveAction.SUBMIT),
                timestamp=now or timezone.now(),
                scheduled_date=validators.parse_date(buyer_data["preferred_date"]),
                scheduled_time=buyer_data["preferred_time"],
            )
        except DatabaseError as exc:
            logger.exception("Failed to store test drive request for vehicle %s", vehicle.id)
            raise RequestStoreError() from exc

        try:
            with transaction.atomic():
                RequestStore._advance(request, TestDriveAction.PERSIST_OK)
                request.save(update_fields=["status", "version", "updated_at"])
        except DatabaseError as exc:
            logger.exception("Failed to finalize test drive request %s", request.pk)
            RequestStore._mark_failed(request)
            raise RequestStoreError() from exc

        logger.info("Test drive request %s created for vehicle %s", request.pk, request.vehicle_id)
        return request

    @staticmethod
    def _mark_failed(request):
        request.status = TestDriveStatus.SENDING
        RequestStore._advance(request, TestDriveAction.PERSIST_ERROR)
        try:
            TestDriveRequest.objects.filter(pk=request.pk).update(status=request.status, version=request.version)
        except DatabaseError:
            logger.exception("Could not mark test drive request %s as failed", request.pk)

    @staticmethod
    def _advance(request, action):
        target = next_status(request.status, action)
        if target is None:
            raise InvalidTransitionError(request.status, action)
        request.status = target
        request.version += 1
        return target

    @staticmethod
    def get(request_id):
        try:
            return TestDriveRequest.objects.get(pk=request_id)
        except (TestDriveRequest.DoesNotExist, ValueError, TypeError):
            raise NotFoundError()

    @staticmethod
    def get_by_seller(seller_email):
        return TestDriveRequest.objects.filter(seller_email__iexact=seller_email).order_by("id")

    @staticmethod
    def get_by_status(seller_email, status):
        return RequestStore.get_by_seller(seller_email).filter(status=TestDriveStatus(status))

    @staticmethod
    def get_for_buyer(buyer_email):
        return TestDriveRequest.objects.filter(buyer_email__iexact=buyer_email).order_by("id")

    @staticmethod
    def get_by_vehicle(vehicle_id):
        return TestDriveRequest.objects.filter(vehicle_id=str(vehicle_id)).order_by("id")

    @staticmethod
    def sort_by_timestamp(requests, ascending=False):
        return sorted(requests, key=lambda r: (r.timestamp, r.pk), reverse=not ascending)

    @staticmethod
    def for_party(email):
        return TestDriveRequest.objects.filter(
            Q(seller_email__iexact=email) | Q(buyer_email__iexact=email)
        ).order_by("id")

    @staticmethod
    def upcoming(requests, now=None):
        """Confirmed appointments still ahead of ``now``, soonest first."""
        now = now or timezone.now()
        slots = [
            (request.scheduled_start(), request)
            for request in requests
            if request.status == TestDriveStatus.CONFIRMED
        ]
        slots = [(start, request) for start, request in slots if start is not None and start > now]
        return [request for _, request in sorted(slots, key=lambda s: (s[0], s[1].pk))]

    @staticmethod
    def past(requests, now=None):
        """Requests of any status whose slot has started, latest first."""
        now = now or timezone.now()
        slots = [(request.scheduled_start(), request) for request in requests]
        slots = [(start, request) for start, request in slots if start is not None and start <= now]
        return [request for _, request in sorted(slots, key=lambda s: (s[0], s[1].pk), reverse=True)]

    @staticmethod
    def get_upcoming(email, now=None):
        return RequestStore.upcoming(RequestStore.for_party(email), now=now)

    @staticmethod
    def get_past(email, now=None):
        return RequestStore.past(RequestStore.for_party(email), now=now)

    @staticmethod
    @transaction.atomic
    def apply_transition(request_id, action, message="", reschedule_proposal=None, actor_email=None, now=None):
        try:
            action = TestDriveAction(action)
        except ValueError:
            raise ValidationError({"action": f"Unknown action '{action}'."})
        if action not in PUBLIC_ACTIONS:
            raise ValidationError({"action": f"'{action}' cannot be requested directly."})

        # Lock row so a concurrent response from the other party loses cleanly
        try:
            request = TestDriveRequest.objects.select_for_update().get(pk=request_id)
        except (TestDriveRequest.DoesNotExist, ValueError, TypeError):
            raise NotFoundError()

        if request.status in TERMINAL_STATUSES or next_status(request.status, action) is None:
            raise InvalidTransitionError(request.status, action)

        now = now or timezone.now()
        message = (message or "").strip()
        RequestStore._check_actor(request, action, actor_email)

        proposal = None
        if action == TestDriveAction.RESCHEDULE:
            proposal = RequestStore._clean_proposal(reschedule_proposal, now)
        elif action == TestDriveAction.DECLINE and not message:
            raise ValidationError({"message": "A message is required when declining a test drive."})
        elif action == TestDriveAction.COMPLETE:
            start = request.scheduled_start()
            if start is None or start + APPOINTMENT_DURATION > now:
                raise InvalidTransitionError(
                    request.status, action, detail="The appointment has not taken place yet."
                )

        previous = request.status
        RequestStore._advance(request, action)

        if request.status in RESPONDED_STATUSES:
            request.responded_at = now
            request.response_message = message
        else:
            request.responded_at = None
            if message:
                request.response_message = message

        if proposal is not None:
            request.reschedule_proposal = proposal
            request.scheduled_date = validators.parse_date(proposal["date"])
            request.scheduled_time = proposal["time"]
        else:
            request.reschedule_proposal = None

        request.save()
        logger.info("Test drive request %s: %s -> %s (%s)", request.pk, previous, request.status, action)
        return request

    @staticmethod
    def _check_actor(request, action, actor_email):
        if actor_email is None:
            return
        if action in SELLER_ACTIONS and not _same_email(actor_email, request.seller_email):
            raise PermissionDenied("Only the seller can respond to this test drive request.")
        if action == TestDriveAction.CANCEL and not (
            _same_email(actor_email, request.seller_email) or _same_email(actor_email, request.buyer_email)
        ):
            raise PermissionDenied("Only the buyer or the seller can cancel this test drive request.")

    @staticmethod
    def _clean_proposal(proposal, now):
        proposal = proposal or {}
        new_date = str(proposal.get("date") or "").strip()
        new_time = str(proposal.get("time") or "").strip()
        errors = {}
        date_error = validators.validate_booking_date(new_date, now=now)
        if date_error:
            errors["date"] = date_error
        if not new_time:
            errors["time"] = "A new time is required when rescheduling."
        if errors:
            raise ValidationError({"reschedule_proposal": errors})
        return {"date": new_date, "time": new_time}

    @staticmethod
    def due_for_completion(now=None):
        """Confirmed or rescheduled requests whose slot has ended."""
        now = now or timezone.now()
        candidates = TestDriveRequest.objects.filter(
            status__in=[TestDriveStatus.CONFIRMED, TestDriveStatus.RESCHEDULED],
            scheduled_date__lte=timezone.localtime(now).date(),
        ).order_by("id")
        due = []
        for request in candidates:
            start = request.scheduled_start()
            if start is not None and start + APPOINTMENT_DURATION <= now:
                due.append(request)
        return due
