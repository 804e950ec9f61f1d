"""
Tests for the test drive admin pages.
"""

from django.urls import reverse
from rest_framework import status

import pytest

from vehicle_marketplace.users.tests.factories import UserFactory

from .factories import DriveDraftFactory, DriveRequestFactory


@pytest.mark.django_db
class TestAdminPages:
    """Changelists render for staff."""

    @pytest.fixture
    def staff_client(self, client):
        client.force_login(UserFactory(email="admin@example.com", is_staff=True, is_superuser=True))
        return client

    @pytest.mark.parametrize("name", ["testdriverequest", "testdrivedraft"])
    def test_changelist(self, staff_client, name) -> None:
        DriveRequestFactory()
        DriveDraftFactory()

        response = staff_client.get(reverse(f"admin:test_drives_{name}_changelist"), {"q": "example"})

        assert response.status_code == status.HTTP_200_OK
