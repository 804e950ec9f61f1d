from django.contrib import admin

from .models import TestDriveRequest, TestDriveDraft


@admin.register(TestDriveRequest)
class TestDriveRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "vehicle_title", "seller_email", "buyer_email", "status", "scheduled_date", "scheduled_time", "timestamp")
    search_fields = ("vehicle_title", "seller_email", "buyer_email")
    list_filter = ("status",)
    readonly_fields = ("timestamp", "updated_at", "version", "buyer_data", "responded_at")


@admin.register(TestDriveDraft)
class TestDriveDraftAdmin(admin.ModelAdmin):
    list_display = ("id", "vehicle_id", "owner_key", "updated_at")
    search_fields = ("vehicle_id", "owner_key")
