from datetime import datetime, time

from django.conf import settings
from django.db import models
from django.utils import timezone

from .choices import TERMINAL_STATUSES, TestDriveStatus


class TestDriveRequest(models.Model):
    # Vehicle and seller are point-in-time snapshots, not foreign keys
    vehicle_id = models.CharField(max_length=64, db_index=True)
    vehicle_title = models.CharField(max_length=255)
    vehicle_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    seller_email = models.EmailField(db_index=True)
    seller_name = models.CharField(max_length=255, blank=True)

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='test_drive_requests',
    )
    buyer_email = models.EmailField(db_index=True)
    buyer_data = models.JSONField(default=dict)

    status = models.CharField(max_length=20, choices=TestDriveStatus.choices, default=TestDriveStatus.SENDING, db_index=True)
    timestamp = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)
    version = models.PositiveIntegerField(default=1)

    # Set only by a seller response
    responded_at = models.DateTimeField(null=True, blank=True)
    response_message = models.TextField(blank=True)
    reschedule_proposal = models.JSONField(null=True, blank=True)

    # Effective appointment slot, replaced when the seller reschedules
    scheduled_date = models.DateField(null=True, blank=True)
    scheduled_time = models.CharField(max_length=5, blank=True)

    class Meta:
        ordering = ['id']
        verbose_name = "Test Drive Request"
        verbose_name_plural = "Test Drive Requests"
        indexes = [
            models.Index(fields=['seller_email', 'status']),
        ]

    def __str__(self):
        return f"Test drive #{self.pk} for {self.vehicle_title} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def scheduled_start(self):
        """Aware datetime of the appointment in the marketplace time zone, or None."""
        if not self.scheduled_date or not self.scheduled_time:
            return None
        try:
            slot = time.fromisoformat(self.scheduled_time)
        except ValueError:
            return None
        naive = datetime.combine(self.scheduled_date, slot)
        return timezone.make_aware(naive, timezone.get_default_timezone())


class TestDriveDraft(models.Model):
    vehicle_id = models.CharField(max_length=64)
    owner_key = models.CharField(max_length=128, help_text="user-<pk> or session-<key>")
    payload = models.JSONField(default=dict)
    checksum = models.CharField(max_length=64)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Test Drive Draft"
        verbose_name_plural = "Test Drive Drafts"
        constraints = [
            models.UniqueConstraint(fields=['vehicle_id', 'owner_key'], name='unique_draft_per_vehicle_owner'),
        ]

    def __str__(self):
        return f"Draft for vehicle {self.vehicle_id} ({self.owner_key})"
