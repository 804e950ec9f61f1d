"""
Tests for accounts and profiles.
"""

import pytest

from vehicle_marketplace.users.models import User

from .factories import UserFactory


@pytest.mark.django_db
class TestUserManager:

    def test_email_is_lowercased(self) -> None:
        user = User.objects.create_user("Hanako.Sato@Example.COM", password="testpass123")

        assert user.email == "hanako.sato@example.com"
        assert user.check_password("testpass123")
        assert not user.is_staff

    def test_email_is_required(self) -> None:
        with pytest.raises(ValueError):
            User.objects.create_user("", password="testpass123")

    def test_superuser_flags(self) -> None:
        admin = User.objects.create_superuser("admin@example.com", password="testpass123")

        assert admin.is_staff and admin.is_superuser

    def test_superuser_cannot_drop_staff(self) -> None:
        with pytest.raises(ValueError):
            User.objects.create_superuser("admin@example.com", password="x", is_staff=False)


@pytest.mark.django_db
class TestProfile:

    def test_profile_created_with_user(self) -> None:
        user = UserFactory()

        assert user.profile.get_full_name() == user.email

    def test_display_name_uses_profile(self) -> None:
        user = UserFactory(name=("Hanako", "Sato"))

        assert user.get_display_name() == "Hanako Sato"
