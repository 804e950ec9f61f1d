from django.contrib import admin
from .models import Notification

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "recipient_email", "message", "is_read", "created_at")
    search_fields = ("recipient_email", "message")
    list_filter = ("is_read",)
