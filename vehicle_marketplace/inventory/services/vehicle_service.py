from dataclasses import dataclass
from decimal import Decimal

from django.http import Http404
from django.shortcuts import get_object_or_404

from ..models import Car


@dataclass(frozen=True)
class VehicleData:
    """Snapshot of a listing handed to the test drive flow at submission time."""

    id: str
    title: str
    price: Decimal
    seller_email: str
    seller_name: str


class VehicleService:

    @staticmethod
    def get_vehicle_data(vehicle_id):
        try:
            car = get_object_or_404(Car.objects.select_related("posted_by__profile"), id=vehicle_id)
        except (ValueError, TypeError):
            raise Http404(f"No vehicle with id {vehicle_id!r}")
        return VehicleService.to_vehicle_data(car)

    @staticmethod
    def to_vehicle_data(car):
        seller = car.posted_by
        return VehicleData(
            id=str(car.pk),
            title=car.title,
            price=car.price,
            seller_email=seller.email,
            seller_name=seller.get_display_name(),
        )
