"""
Request Serializers
-------------------

The bodies and query strings the api accepts.
"""
from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import Bool, String, Integer, Float, Decimal, DateTime
from marshmallow.validate import Range, Length

from bikerental.models.util import BookingStatus
from bikerental.serializer.fields import EnumField

MAX_NOTE_LENGTH = 250


def Latitude(**kwargs):
    return Float(validate=Range(-90, 90), **kwargs)


def Longitude(**kwargs):
    return Float(validate=Range(-180, 180), **kwargs)


def assert_pair(data, latitude, longitude):
    if (latitude in data) != (longitude in data):
        raise ValidationError(f"{latitude} and {longitude} must be supplied together.")


class RentRequestSchema(Schema):
    """The schema of the rent request."""
    bike_id = Integer(required=True, strict=True, validate=Range(min=1), metadata={"description": "The bike to rent."})
    start_latitude = Latitude()
    start_longitude = Longitude()
    notes = String(validate=Length(max=MAX_NOTE_LENGTH))

    @validates_schema
    def assert_location(self, data, **kwargs):
        assert_pair(data, "start_latitude", "start_longitude")


class ReturnRequestSchema(Schema):
    """The schema of the return request."""
    end_latitude = Latitude(metadata={"description": "Where the bike was left."})
    end_longitude = Longitude()
    notes = String(validate=Length(max=MAX_NOTE_LENGTH))

    @validates_schema
    def assert_location(self, data, **kwargs):
        assert_pair(data, "end_latitude", "end_longitude")


class CancelRequestSchema(Schema):
    reason = String(validate=Length(max=MAX_NOTE_LENGTH))


class BikeModifySchema(Schema):
    """The fields of a bike an admin may change."""
    model = String(validate=Length(min=1, max=128))
    brand = String(allow_none=True, validate=Length(max=128))
    price_per_hour = Decimal(places=2, validate=Range(min=0, min_inclusive=False))
    latitude = Latitude()
    longitude = Longitude()
    battery_level = Integer(allow_none=True, validate=Range(0, 100))
    in_circulation = Bool()

    @validates_schema
    def assert_location(self, data, **kwargs):
        assert_pair(data, "latitude", "longitude")


class BikeCreateSchema(BikeModifySchema):
    """The schema of the bike register request."""
    model = String(required=True, validate=Length(min=1, max=128))
    price_per_hour = Decimal(required=True, places=2, validate=Range(min=0, min_inclusive=False))

    class Meta:
        exclude = ("in_circulation",)


class PageQuerySchema(Schema):
    limit = Integer(load_default=20, validate=Range(1, 100))
    offset = Integer(load_default=0, validate=Range(min=0))


class BookingQuerySchema(PageQuerySchema):
    """Filters the bookings of a user."""
    status = EnumField(BookingStatus)
    start_date = DateTime()
    end_date = DateTime()


class BikeQuerySchema(PageQuerySchema):
    """Filters the bike list."""
    available = Bool()
    brand = String()
    limit = Integer(validate=Range(1, 100))
