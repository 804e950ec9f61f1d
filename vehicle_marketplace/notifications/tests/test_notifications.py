"""
Tests for in-app notifications.
"""

from django.urls import reverse
from rest_framework import status

import pytest

from vehicle_marketplace.notifications.models import Notification
from vehicle_marketplace.notifications.utils import send_user_notification
from vehicle_marketplace.users.tests.factories import UserFactory


@pytest.mark.django_db
class TestSendUserNotification:
    """Recording notifications by email address."""

    def test_links_existing_account(self) -> None:
        user = UserFactory(email="seller@example.com")

        notification = send_user_notification("Seller@Example.com", "New request", data={"test_drive_id": 1})

        assert notification.recipient == user
        assert notification.data == {"test_drive_id": 1}
        assert notification.is_read is False

    def test_address_without_account(self) -> None:
        """Guests who booked without an account still get a record."""
        notification = send_user_notification("guest@example.com", "Confirmed")

        assert notification.recipient is None
        assert notification.recipient_email == "guest@example.com"
        assert notification.data == {}


@pytest.mark.django_db
class TestNotificationEndpoints:
    """GET /api/notifications/ and friends."""

    @pytest.fixture
    def user(self):
        return UserFactory(email="taro@example.jp")

    def test_lists_only_own_notifications(self, api_client, user) -> None:
        mine = send_user_notification("taro@example.jp", "Confirmed")
        send_user_notification("someone@example.com", "Declined")
        api_client.force_authenticate(user=user)

        response = api_client.get(reverse("notifications-list"))

        assert [n["id"] for n in response.data] == [mine.pk]

    def test_unread_filter_and_count(self, api_client, user) -> None:
        read = send_user_notification("taro@example.jp", "Old news")
        Notification.objects.filter(pk=read.pk).update(is_read=True)
        unread = send_user_notification("taro@example.jp", "Confirmed")
        api_client.force_authenticate(user=user)

        listed = api_client.get(reverse("notifications-list"), {"unread": "true"})
        count = api_client.get(reverse("notifications-unread-count"))

        assert [n["id"] for n in listed.data] == [unread.pk]
        assert count.data == {"unread": 1}

    def test_mark_one_read(self, api_client, user) -> None:
        first = send_user_notification("taro@example.jp", "One")
        second = send_user_notification("taro@example.jp", "Two")
        api_client.force_authenticate(user=user)

        response = api_client.post(reverse("notifications-mark-read"), {"id": first.pk}, format="json")

        assert response.status_code == status.HTTP_200_OK
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.is_read and not second.is_read

    def test_mark_all_read(self, api_client, user) -> None:
        send_user_notification("taro@example.jp", "One")
        send_user_notification("taro@example.jp", "Two")
        api_client.force_authenticate(user=user)

        api_client.post(reverse("notifications-mark-read"), {}, format="json")

        assert not Notification.objects.filter(is_read=False).exists()

    def test_cannot_mark_someone_elses(self, api_client, user) -> None:
        other = send_user_notification("someone@example.com", "Declined")
        api_client.force_authenticate(user=user)

        response = api_client.post(reverse("notifications-mark-read"), {"id": other.pk}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND
