from enum import Enum
from typing import Dict, Optional

from shapely.geometry import Point, mapping

from bikerental.serializer.geojson import GeoJSONType


class BookingStatus(str, Enum):
    """We subclass string to make json serialization work."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @staticmethod
    def terminal_states():
        """The states that a booking never leaves."""
        return BookingStatus.COMPLETED, BookingStatus.CANCELLED


def to_point(latitude: Optional[float], longitude: Optional[float]) -> Optional[Point]:
    """Builds a point from a coordinate pair, or None if either half is missing."""
    if latitude is None or longitude is None:
        return None
    return Point(longitude, latitude)


def serialize_location(location: Optional[Point]) -> Optional[Dict]:
    """Serializes a location as a GeoJSON feature."""
    if location is None:
        return None

    return {
        "type": GeoJSONType.FEATURE,
        "geometry": mapping(location),
    }
