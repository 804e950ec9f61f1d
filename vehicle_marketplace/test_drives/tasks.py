import logging

from celery import shared_task

from .services.test_drive_service import TestDriveOrchestrator

logger = logging.getLogger(__name__)


@shared_task
def complete_past_test_drives():
    completed = TestDriveOrchestrator().complete_past_appointments()
    logger.debug("Completion sweep finished, %s request(s) updated", len(completed))
    return [request.pk for request in completed]
