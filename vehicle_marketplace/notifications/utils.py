import logging

from django.contrib.auth import get_user_model

from .models import Notification

logger = logging.getLogger(__name__)
User = get_user_model()


def send_user_notification(recipient_email, message, data=None):
    """
    Record an in-app notification for the given address.
    :param recipient_email: str, linked to an account when one exists
    :param message: str
    :param data: dict optional structured payload
    """
    recipient = User.objects.filter(email__iexact=recipient_email).first()
    n = Notification.objects.create(
        recipient_email=recipient_email,
        recipient=recipient,
        message=message,
        data=data or {},
    )
    logger.info("Notification %s recorded for %s", n.id, recipient_email)
    return n
