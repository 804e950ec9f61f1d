from django.http import HttpResponse
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse, OpenApiExample
from rest_framework import mixins, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from vehicle_marketplace.inventory.services.vehicle_service import VehicleService
from vehicle_marketplace.users.permissions.drf_permissions import IsAdmin, IsSeller

from .. import validators
from ..choices import TestDriveStatus
from ..models import TestDriveRequest
from ..services import calendar_service
from ..services.draft_service import DraftStore, owner_key_for
from ..services.request_service import RequestStore
from ..services.test_drive_service import TestDriveOrchestrator
from .serializers import (
    DraftSerializer,
    FieldValidationSerializer,
    TestDriveCancelSerializer,
    TestDriveRequestSerializer,
    TestDriveResponseSerializer,
    TestDriveSubmitSerializer,
)


@extend_schema_view(
    list=extend_schema(
        tags=["Test Drives"],
        summary="List test drive requests",
        description="Sellers see requests for their vehicles, buyers see the requests they sent, admins see all.",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                required=False,
                enum=TestDriveStatus.values,
                description="Sellers only: restrict to one status.",
            ),
            OpenApiParameter(
                name="when",
                type=str,
                required=False,
                enum=["upcoming", "past"],
                description="`upcoming`: confirmed slots still ahead, soonest first. `past`: slots already started, latest first.",
            ),
        ],
        responses={200: TestDriveRequestSerializer(many=True)},
    ),
    retrieve=extend_schema(
        tags=["Test Drives"],
        summary="Retrieve a test drive request",
        responses={200: TestDriveRequestSerializer},
    ),
    create=extend_schema(
        tags=["Test Drives"],
        summary="Submit a test drive request",
        description="Validates the scheduling form, creates the request and clears the buyer's draft for the vehicle.",
        request=TestDriveSubmitSerializer,
        examples=[
            OpenApiExample(
                "Example Request",
                value={
                    "vehicle_id": "12",
                    "name": "Taro Yamada",
                    "email": "taro@example.jp",
                    "phone": "080-1234-5678",
                    "license_type": "full",
                    "driving_experience": "intermediate",
                    "preferred_date": "2026-11-02",
                    "preferred_time": "10:00",
                    "meeting_location": "seller",
                },
            ),
        ],
        responses={
            201: OpenApiResponse(response=TestDriveRequestSerializer, description="Request sent to the seller"),
            400: OpenApiResponse(description="Field errors keyed by field name"),
            404: OpenApiResponse(description="Vehicle not found"),
            503: OpenApiResponse(description="Request could not be stored, retry"),
        },
    ),
)
class TestDriveRequestViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, GenericViewSet):
    serializer_class = TestDriveRequestSerializer

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user

        if IsAdmin().has_permission(self.request, self):
            queryset = TestDriveRequest.objects.all()
        elif self.action != "list":
            return RequestStore.for_party(user.email)
        elif IsSeller().has_permission(self.request, self):
            status_value = self.request.query_params.get("status")
            if status_value:
                try:
                    queryset = RequestStore.get_by_status(user.email, status_value)
                except ValueError:
                    raise ValidationError({"status": f"Unknown status '{status_value}'."})
            else:
                queryset = RequestStore.get_by_seller(user.email)
        else:
            queryset = RequestStore.get_for_buyer(user.email)

        if self.action == "list":
            return self.filter_by_when(queryset)
        return queryset

    def filter_by_when(self, queryset):
        when = self.request.query_params.get("when")
        if not when:
            return queryset
        if when == "upcoming":
            return RequestStore.upcoming(queryset)
        if when == "past":
            return RequestStore.past(queryset)
        raise ValidationError({"when": f"Unknown filter '{when}', use 'upcoming' or 'past'."})

    def get_orchestrator(self):
        owner_key = owner_key_for(self.request)
        return TestDriveOrchestrator(draft_store=DraftStore(owner_key) if owner_key else None)

    def create(self, request, *args, **kwargs):
        serializer = TestDriveSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payload = dict(serializer.validated_data)
        vehicle = VehicleService.get_vehicle_data(payload.pop("vehicle_id"))

        test_drive = self.get_orchestrator().submit(payload, vehicle, buyer=request.user)

        return Response(TestDriveRequestSerializer(test_drive).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Test Drives"],
        summary="Respond to a test drive request",
        description=(
            "Seller-only. Confirm, propose a new slot (`reschedule` with `reschedule_proposal`), "
            "or decline (message required). Returns 409 if the request no longer accepts the action; "
            "re-fetch the request before trying again."
        ),
        request=TestDriveResponseSerializer,
        examples=[
            OpenApiExample("Confirm", value={"action": "confirm", "message": "See you there."}),
            OpenApiExample(
                "Reschedule",
                value={"action": "reschedule", "message": "", "reschedule_proposal": {"date": "2026-11-04", "time": "14:00"}},
            ),
        ],
        responses={
            200: TestDriveRequestSerializer,
            400: OpenApiResponse(description="Missing message or invalid reschedule proposal"),
            403: OpenApiResponse(description="Only the seller can respond"),
            409: OpenApiResponse(description="Request already responded to or closed"),
        },
    )
    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        test_drive = self.get_object()
        serializer = TestDriveResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = self.get_orchestrator().respond(
            test_drive.pk,
            serializer.validated_data["action"],
            message=serializer.validated_data["message"],
            reschedule_proposal=serializer.validated_data.get("reschedule_proposal"),
            actor_email=request.user.email,
        )
        return Response(TestDriveRequestSerializer(updated).data)

    @extend_schema(
        tags=["Test Drives"],
        summary="Cancel a test drive request",
        description="Either party may cancel a sent, confirmed or rescheduled request.",
        request=TestDriveCancelSerializer,
        responses={
            200: TestDriveRequestSerializer,
            403: OpenApiResponse(description="Not a party to this request"),
            409: OpenApiResponse(description="Request already closed"),
        },
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        test_drive = self.get_object()
        serializer = TestDriveCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = self.get_orchestrator().cancel(
            test_drive.pk,
            actor_email=request.user.email,
            message=serializer.validated_data["message"],
        )
        return Response(TestDriveRequestSerializer(updated).data)

    @extend_schema(
        tags=["Test Drives"],
        summary="Export the appointment to a calendar",
        description="`provider=ics` (default) downloads an iCalendar file; google, outlook and yahoo return a deep link.",
        parameters=[
            OpenApiParameter(
                name="provider",
                type=str,
                required=False,
                enum=["ics"] + calendar_service.CalendarProvider.values,
            ),
        ],
        responses={
            200: OpenApiResponse(description="iCalendar file or {provider, url}"),
            422: OpenApiResponse(description="Request has no confirmed appointment"),
        },
    )
    @action(detail=True, methods=["get"])
    def calendar(self, request, pk=None):
        test_drive = self.get_object()
        provider = request.query_params.get("provider", "ics")
        event = calendar_service.to_event(test_drive)

        if provider == "ics":
            response = HttpResponse(calendar_service.to_file_format(event), content_type="text/calendar; charset=utf-8")
            response["Content-Disposition"] = f'attachment; filename="test-drive-{test_drive.pk}.ics"'
            return response

        if provider not in calendar_service.CalendarProvider.values:
            raise ValidationError({"provider": f"Unknown calendar provider '{provider}'."})
        return Response({"provider": provider, "url": calendar_service.to_provider_link(event, provider)})


class FieldValidationView(APIView):
    permission_classes = [permissions.AllowAny]

    @extend_schema(
        tags=["Test Drives"],
        summary="Validate one form field or one form step",
        request=FieldValidationSerializer,
        responses={200: OpenApiResponse(description="{field, error} or {step, errors}")},
    )
    def post(self, request):
        serializer = FieldValidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        context = dict(data["context"])

        if "field" in data:
            error = validators.validate_field(data["field"], data["value"], context=context)
            return Response({"field": data["field"], "error": error})

        errors = validators.validate_step(context, data["step"])
        return Response({"step": data["step"], "errors": errors, "is_valid": not errors})


class DraftView(APIView):
    permission_classes = [permissions.AllowAny]

    def get_store(self, request, create=False):
        owner_key = owner_key_for(request, create=create)
        return DraftStore(owner_key) if owner_key else None

    @extend_schema(
        tags=["Test Drives"],
        summary="Load the scheduling form draft for a vehicle",
        responses={200: OpenApiResponse(description="{vehicle_id, payload, has_draft}")},
    )
    def get(self, request, vehicle_id):
        store = self.get_store(request)
        draft = store.load_draft(vehicle_id) if store else None
        payload = dict(validators.DEFAULT_PAYLOAD)
        payload.update(draft or {})
        return Response({"vehicle_id": vehicle_id, "payload": payload, "has_draft": draft is not None})

    @extend_schema(
        tags=["Test Drives"],
        summary="Save the scheduling form draft for a vehicle",
        description="Last write wins. Saving an unchanged payload is a no-op (`saved: false`).",
        request=DraftSerializer,
        responses={200: OpenApiResponse(description="{vehicle_id, saved}")},
    )
    def put(self, request, vehicle_id):
        serializer = DraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        saved = self.get_store(request, create=True).save_draft(vehicle_id, serializer.validated_data["payload"])
        return Response({"vehicle_id": vehicle_id, "saved": saved})

    @extend_schema(
        tags=["Test Drives"],
        summary="Discard the scheduling form draft for a vehicle",
        responses={204: None},
    )
    def delete(self, request, vehicle_id):
        store = self.get_store(request)
        if store:
            store.clear_draft(vehicle_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
