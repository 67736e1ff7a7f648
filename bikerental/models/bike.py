"""
Bike
-------------------------

Represents a bike in the rental fleet. A bike carries two flags:

- ``is_available`` is owned by the rental manager. It is false exactly when an
  active booking holds the bike.
- ``in_circulation`` is owned by the operators. Bikes are never deleted, they are
  taken out of circulation instead.
"""
from decimal import Decimal
from typing import Dict, Any, Optional

from shapely.geometry import Point
from tortoise import Model, fields

from bikerental.models.util import to_point, serialize_location


class Bike(Model):
    id = fields.IntField(pk=True)
    model = fields.CharField(max_length=128)
    brand = fields.CharField(max_length=128, null=True)

    price_per_hour: Decimal = fields.DecimalField(max_digits=8, decimal_places=2)
    """The hourly rate the bike is billed at."""

    is_available = fields.BooleanField(default=True)
    in_circulation = fields.BooleanField(default=True)

    latitude = fields.FloatField(null=True)
    longitude = fields.FloatField(null=True)
    battery_level = fields.IntField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    @property
    def location(self) -> Optional[Point]:
        return to_point(self.latitude, self.longitude)

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}" if self.brand else self.model

    def summary(self) -> Dict[str, Any]:
        """The handful of fields shown next to a booking."""
        return {
            "id": self.id,
            "model": self.model,
            "brand": self.brand,
            "price_per_hour": self.price_per_hour,
        }

    def serialize(self, router=None, *, include_location=True) -> Dict[str, Any]:
        """
        Serializes the bike into a format that can be turned into JSON.

        :param router: The app router, used to link to the bike.
        :param include_location: Whether to include the last known location.
        """
        data = {
            **self.summary(),
            "is_available": self.is_available,
            "in_circulation": self.in_circulation,
            "battery_level": self.battery_level,
        }

        if router is not None:
            data["url"] = router["bike"].url_for(id=str(self.id)).path

        if include_location:
            data["location"] = serialize_location(self.location)

        return data

    def __str__(self):
        return f"[{self.id}] {self.display_name}"
