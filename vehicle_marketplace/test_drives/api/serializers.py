import bleach
from rest_framework import serializers

from ..choices import SELLER_ACTIONS, TestDriveAction
from ..models import TestDriveRequest
from ..validators import PAYLOAD_FIELDS


class TestDrivePayloadSerializer(serializers.Serializer):
    """Shape of the scheduling form. Business rules run in the validators module."""
    name = serializers.CharField(allow_blank=True, required=False, max_length=255)
    email = serializers.CharField(allow_blank=True, required=False, max_length=254)
    phone = serializers.CharField(allow_blank=True, required=False, max_length=32)
    license_type = serializers.CharField(allow_blank=True, required=False, max_length=20)
    driving_experience = serializers.CharField(allow_blank=True, required=False, max_length=20)
    preferred_date = serializers.CharField(allow_blank=True, required=False, max_length=10)
    preferred_time = serializers.CharField(allow_blank=True, required=False, max_length=5)
    meeting_location = serializers.CharField(allow_blank=True, required=False, max_length=20)
    custom_location = serializers.CharField(allow_blank=True, required=False, max_length=255)
    emergency_contact_name = serializers.CharField(allow_blank=True, required=False, max_length=255)
    emergency_contact_phone = serializers.CharField(allow_blank=True, required=False, max_length=32)
    additional_notes = serializers.CharField(allow_blank=True, required=False, max_length=2000)


class TestDriveSubmitSerializer(TestDrivePayloadSerializer):
    vehicle_id = serializers.CharField(max_length=64)


class TestDriveRequestSerializer(serializers.ModelSerializer):
    is_terminal = serializers.BooleanField(read_only=True)

    class Meta:
        model = TestDriveRequest
        fields = [
            "id",
            "vehicle_id", "vehicle_title", "vehicle_price",
            "seller_email", "seller_name",
            "buyer_email", "buyer_data",
            "status", "is_terminal",
            "timestamp", "updated_at", "version",
            "responded_at", "response_message", "reschedule_proposal",
            "scheduled_date", "scheduled_time",
        ]
        read_only_fields = fields


class RescheduleProposalSerializer(serializers.Serializer):
    date = serializers.CharField(max_length=10)
    time = serializers.CharField(max_length=5)


class TestDriveResponseSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[(a.value, a.label) for a in TestDriveAction if a in SELLER_ACTIONS])
    message = serializers.CharField(allow_blank=True, required=False, default="", max_length=2000)
    reschedule_proposal = RescheduleProposalSerializer(required=False, allow_null=True)

    def validate_message(self, value):
        """Strip markup from the seller's message."""
        return bleach.clean(value.strip(), tags=[], strip=True)


class TestDriveCancelSerializer(serializers.Serializer):
    message = serializers.CharField(allow_blank=True, required=False, default="", max_length=2000)

    def validate_message(self, value):
        return bleach.clean(value.strip(), tags=[], strip=True)


class FieldValidationSerializer(serializers.Serializer):
    field = serializers.ChoiceField(choices=PAYLOAD_FIELDS, required=False)
    step = serializers.ChoiceField(choices=[1, 2], required=False)
    value = serializers.CharField(allow_blank=True, required=False, default="")
    context = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, default=dict)

    def validate(self, attrs):
        if "field" not in attrs and "step" not in attrs:
            raise serializers.ValidationError("Provide either a field or a step to validate.")
        return attrs


class DraftSerializer(serializers.Serializer):
    payload = serializers.DictField(child=serializers.CharField(allow_blank=True))

    def validate_payload(self, value):
        unknown = set(value) - set(PAYLOAD_FIELDS)
        if unknown:
            raise serializers.ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}.")
        return value
