from django.db import models
from django.contrib.auth import get_user_model

User = get_user_model()


class NotificationQuerySet(models.QuerySet):
    def for_email(self, email):
        return self.filter(recipient_email__iexact=email)

    def unread(self):
        return self.filter(is_read=False)


class Notification(models.Model):
    # Guests book without an account, so the address is the key
    recipient_email = models.EmailField(db_index=True)
    recipient = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications')
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient_email', 'is_read']),
        ]

    def __str__(self):
        return f"{self.recipient_email}: {self.message[:50]}"
