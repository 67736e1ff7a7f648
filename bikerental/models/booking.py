"""
Booking
---------------------------

A booking is created when a bike is rented and moves, exactly once, from
``active`` to either ``completed`` or ``cancelled``.

While a booking is active a :class:`BookingClaim` exists for it. The claim has a
unique user and a unique bike, which lets the database refuse a second active
booking for either of them.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, Optional

from shapely.geometry import Point
from tortoise import Model, fields

from bikerental.models.bike import Bike
from bikerental.models.fields import EnumField
from bikerental.models.util import BookingStatus, to_point, serialize_location


class Booking(Model):
    id = fields.IntField(pk=True)
    user_id = fields.CharField(max_length=64, index=True)
    bike = fields.ForeignKeyField("models.Bike", related_name="bookings")

    start_time: datetime = fields.DatetimeField()
    end_time: Optional[datetime] = fields.DatetimeField(null=True)
    status: BookingStatus = EnumField(BookingStatus, default=BookingStatus.ACTIVE)

    total_cost: Optional[Decimal] = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    """Only set once the booking is completed."""

    notes = fields.TextField(null=True)

    start_latitude = fields.FloatField(null=True)
    start_longitude = fields.FloatField(null=True)
    end_latitude = fields.FloatField(null=True)
    end_longitude = fields.FloatField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    @property
    def is_active(self) -> bool:
        return self.status is BookingStatus.ACTIVE and self.end_time is None

    @property
    def start_location(self) -> Optional[Point]:
        return to_point(self.start_latitude, self.start_longitude)

    @property
    def end_location(self) -> Optional[Point]:
        return to_point(self.end_latitude, self.end_longitude)

    def serialize(self, router=None) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "bike_id": self.bike_id,
            "start_time": self.start_time,
            "status": self.status,
            "is_active": self.is_active,
            "notes": self.notes,
        }

        if isinstance(self.bike, Bike):
            data["bike"] = self.bike.summary()

        if router is not None:
            data["url"] = router["rental"].url_for(id=str(self.id)).path
            data["bike_url"] = router["bike"].url_for(id=str(self.bike_id)).path
            data["user_url"] = router["user"].url_for(id=str(self.user_id)).path

        if self.status is BookingStatus.COMPLETED:
            data["end_time"] = self.end_time
            data["total_cost"] = self.total_cost

        if self.start_location is not None:
            data["start_location"] = serialize_location(self.start_location)
        if self.end_location is not None:
            data["end_location"] = serialize_location(self.end_location)

        return data

    def __str__(self):
        return f"[{self.id}] {self.status.value} booking of bike {self.bike_id} by {self.user_id}"


class BookingClaim(Model):
    """Exists exactly while its booking is active."""

    id = fields.IntField(pk=True)
    booking = fields.OneToOneField("models.Booking", related_name="claim")
    user_id = fields.CharField(max_length=64, unique=True)
    bike = fields.OneToOneField("models.Bike", related_name="claim")
