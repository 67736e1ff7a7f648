"""
GeoJSON Schema
--------------

Locations travel through the api as GeoJSON point features: where a bike
was last left, and where a rental started and ended. Coordinates are in
GeoJSON order, longitude first.
"""
from enum import Enum

from marshmallow import Schema, validates, ValidationError
from marshmallow.fields import Dict, List, Float, Nested

from bikerental.serializer.fields import EnumField


class GeoJSONType(str, Enum):
    FEATURE = "Feature"
    POINT = "Point"


class PointGeometry(Schema):
    type = EnumField(GeoJSONType, required=True)
    coordinates = List(Float(), required=True)

    @validates("type")
    def assert_point(self, value, **kwargs):
        if value is not GeoJSONType.POINT:
            raise ValidationError("Locations are points.")

    @validates("coordinates")
    def assert_position(self, value, **kwargs):
        if len(value) != 2:
            raise ValidationError("A position is a longitude and a latitude.")
        longitude, latitude = value
        if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
            raise ValidationError(f"({longitude}, {latitude}) is not on the map.")


class LocationFeature(Schema):
    """A point feature, with optional properties."""
    type = EnumField(GeoJSONType, required=True)
    geometry = Nested(PointGeometry, required=True)
    properties = Dict()

    @validates("type")
    def assert_feature(self, value, **kwargs):
        if value is not GeoJSONType.FEATURE:
            raise ValidationError(f"Supplied schema is type {value.value}, not {GeoJSONType.FEATURE.value}.")
