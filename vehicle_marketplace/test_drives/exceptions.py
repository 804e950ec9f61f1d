from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError


class TestDriveValidationError(ValidationError):
    """Field-keyed errors for a test drive payload. The user fixes and resubmits."""

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__(self.errors)


class InvalidTransitionError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This request was already responded to or no longer accepts this action."
    default_code = "invalid_transition"

    def __init__(self, current_status=None, action=None, detail=None):
        self.current_status = current_status
        self.action = action
        if detail is None and current_status is not None:
            detail = f"Cannot {action} a test drive request that is {current_status}."
        super().__init__(detail)


class NotFoundError(NotFound):
    default_detail = "This test drive request no longer exists."
    default_code = "test_drive_not_found"


class IncompleteEventError(APIException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "The appointment is missing a confirmed date or time."
    default_code = "incomplete_event"


class RequestStoreError(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Could not save the test drive request. Please try again."
    default_code = "request_store_unavailable"
