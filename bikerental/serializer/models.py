"""
Model Serializers
-----------------

Defines serializers for the various models in the system.

Money is always sent as a string with two decimal places.
"""
from decimal import ROUND_HALF_UP

from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import Integer, Boolean, String, Email, Nested, DateTime, Url, Decimal

from bikerental.models.user import UserType
from bikerental.models.util import BookingStatus
from bikerental.serializer.geojson import LocationFeature
from .fields import EnumField


def Money(**kwargs):
    return Decimal(places=2, as_string=True, rounding=ROUND_HALF_UP, **kwargs)


class BikeSummarySchema(Schema):
    """The fields of a bike shown along with its bookings."""
    id = Integer(required=True)
    model = String(required=True)
    brand = String(allow_none=True)
    price_per_hour = Money(required=True)


class BikeSchema(BikeSummarySchema):
    """The schema corresponding to the :class:`~bikerental.models.bike.Bike` model."""
    is_available = Boolean()
    in_circulation = Boolean()
    battery_level = Integer(allow_none=True)
    location = Nested(LocationFeature(), allow_none=True)
    url = Url(relative=True)


class UserSchema(Schema):
    """The schema corresponding to the :class:`~bikerental.models.user.User` model."""

    id = String()
    name = String(required=True)
    email = Email(required=True)
    type = EnumField(UserType)


class BookingSchema(Schema):
    """The schema corresponding to the :class:`~bikerental.models.booking.Booking` model."""
    id = Integer(required=True)
    url = Url(relative=True)

    user_id = String()
    user_url = Url(relative=True)

    bike = Nested(BikeSummarySchema())
    bike_id = Integer()
    bike_url = Url(relative=True)

    start_time = DateTime(required=True)
    end_time = DateTime()
    status = EnumField(BookingStatus, required=True)
    is_active = Boolean(required=True)

    total_cost = Money()
    notes = String(allow_none=True)

    start_location = Nested(LocationFeature())
    end_location = Nested(LocationFeature())

    @validates_schema
    def assert_end_time_with_cost(self, data, **kwargs):
        """
        Asserts that when a booking is complete both the cost and end time are included.
        """
        if "total_cost" in data and "end_time" not in data:
            raise ValidationError("If the total cost is included, you must also include the end time.")
        elif "total_cost" not in data and "end_time" in data:
            raise ValidationError("If the end time is included, you must also include the total cost.")

    @validates_schema
    def assert_url_included_with_foreign_key(self, data, **kwargs):
        """
        Asserts that when a user_id or bike_id is sent that a user_url or bike_url is sent with it.
        """
        if "user_id" in data and "user_url" not in data:
            raise ValidationError("User ID was included, but User URL was not.")
        if "bike_id" in data and "bike_url" not in data:
            raise ValidationError("Bike ID was included, but Bike URL was not.")


class ActiveRentalSchema(BookingSchema):
    """An active booking, along with what it would cost if it were returned now."""
    current_duration_hours = Money(required=True)
    estimated_cost = Money(required=True)

    @validates_schema
    def assert_not_settled(self, data, **kwargs):
        if "total_cost" in data:
            raise ValidationError("Rental should have one of either total_cost or estimated_cost.")


class RentalSummarySchema(Schema):
    """The bill of a returned bike."""
    duration_hours = Money(required=True)
    billed_hours = Money(required=True)
    total_cost = Money(required=True)
    bike_model = String(required=True)


class AvailabilitySchema(Schema):
    bike_id = Integer(required=True)
    is_available = Boolean(required=True)
    has_active_booking = Boolean(required=True)
    battery_level = Integer(allow_none=True)
    location = Nested(LocationFeature(), allow_none=True)


class StatsSchema(Schema):
    total_bookings = Integer(required=True)
    completed_bookings = Integer(required=True)
    cancelled_bookings = Integer(required=True)
    active_bookings = Integer(required=True)
    total_spent = Money(required=True)
    total_ride_time_hours = Money(required=True)
    average_booking_cost = Money(required=True)


class PaginationSchema(Schema):
    total = Integer()
    limit = Integer(required=True)
    offset = Integer(required=True)
