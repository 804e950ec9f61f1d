from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema_view, extend_schema, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response

from ..models import Notification
from .serializers import NotificationSerializer, MarkReadSerializer


@extend_schema_view(
    list=extend_schema(
        tags=["Notifications"],
        summary="List my notifications",
        description="Notifications addressed to the signed-in user's email, newest first.",
        parameters=[
            OpenApiParameter(
                name="unread",
                description="true to return unread notifications only",
                required=False,
                type=str,
                enum=["true", "false"],
            )
        ],
    ),
    retrieve=extend_schema(tags=["Notifications"], summary="Retrieve a notification"),
)
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def mine(self):
        return Notification.objects.for_email(self.request.user.email)

    def get_queryset(self):
        qs = self.mine()
        if self.request.query_params.get("unread") == "true":
            qs = qs.unread()
        return qs

    @extend_schema(
        tags=["Notifications"],
        summary="Mark one or all notifications as read",
        description="Pass `id` to mark a single notification, or omit it to mark everything read.",
        request=MarkReadSerializer,
        responses={200: OpenApiResponse(description="{status, updated}")},
    )
    @action(detail=False, methods=["post"])
    def mark_read(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        notification_id = serializer.validated_data.get("id")

        if notification_id:
            notification = get_object_or_404(self.mine(), id=notification_id)
            updated = int(not notification.is_read)
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        else:
            updated = self.mine().unread().update(is_read=True)

        return Response({"status": "ok", "updated": updated})

    @extend_schema(
        tags=["Notifications"],
        summary="Count unread notifications",
        responses={200: OpenApiResponse(description="{unread}")},
    )
    @action(detail=False, methods=["get"])
    def unread_count(self, request):
        return Response({"unread": self.mine().unread().count()})
