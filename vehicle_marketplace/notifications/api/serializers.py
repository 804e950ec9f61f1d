from rest_framework import serializers
from ..models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'recipient_email', 'message', 'data', 'is_read', 'created_at']
        read_only_fields = fields


class MarkReadSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, min_value=1)
