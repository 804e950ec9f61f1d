"""
Pytest configuration for Django app tests.
"""

import pytest
from rest_framework.test import APIClient
from rolepermissions.roles import assign_role

from vehicle_marketplace.inventory.models import Car
from vehicle_marketplace.inventory.services.vehicle_service import VehicleData, VehicleService
from vehicle_marketplace.inventory.tests.factories import CarFactory
from vehicle_marketplace.users.models import User
from vehicle_marketplace.users.tests.factories import UserFactory


@pytest.fixture
def seller() -> User:
    """A seller account with a named profile."""
    user = UserFactory(email="seller@example.com", name=("Hanako", "Sato"))
    assign_role(user, "seller")
    return user


@pytest.fixture
def buyer() -> User:
    """The buyer from the Taro Yamada scenarios."""
    user = UserFactory(email="taro@example.jp", name=("Taro", "Yamada"))
    assign_role(user, "buyer")
    return user


@pytest.fixture
def car(seller: User) -> Car:
    """A listing posted by the seller."""
    return CarFactory(posted_by=seller)


@pytest.fixture
def vehicle(car: Car) -> VehicleData:
    """Snapshot of the listing as handed to the test drive flow."""
    return VehicleService.to_vehicle_data(car)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()
