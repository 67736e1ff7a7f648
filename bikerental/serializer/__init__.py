"""
.. autoclasstree:: bikerental.serializer

The serializer package houses all the schemas for the input/output in the system.
The serializers are used to generate and validate any raw data (such as JSON)
going in and out of the system.

.. note:: The :func:`repr` value on marshmallow fields is not very useful,
    so it is recommended that you look at the code directly.
"""

from .fields import EnumField, Many
from .geojson import GeoJSONType, LocationFeature
from .jsend import JSendSchema, JSendStatus
from .decorators import expects, expects_query, returns
