"""
Fields
-------

Extra marshmallow fields for the types the api sends back and forth.
"""

from enum import Enum
from typing import Optional, Type, Union

from marshmallow import fields, ValidationError


class EnumField(fields.Field):
    """
    Sends a string :class:`~enum.Enum` by its value, so that a
    :class:`~bikerental.models.util.BookingStatus` reads as ``"active"``.

    :param enum_type: The enum to accept the values of.
    """

    def __init__(self, enum_type: Type[Enum], *args, **kwargs):
        if not issubclass(enum_type, Enum):
            raise TypeError(f"Expected enum type, got {enum_type} instead")
        super().__init__(*args, **kwargs)
        self._enum_type = enum_type

    @property
    def choices(self):
        return [member.value for member in self._enum_type]

    def _serialize(self, value: Union[Enum, str], attr, obj, **kwargs) -> Optional[str]:
        if value is None:
            return None
        try:
            return self._enum_type(value).value
        except ValueError:
            return None

    def _deserialize(self, value: str, attr, data, **kwargs) -> Enum:
        try:
            return self._enum_type(value)
        except ValueError:
            raise ValidationError(f"Must be one of {', '.join(self.choices)}.")

    def _jsonschema_type_mapping(self):
        return {'type': 'string', 'enum': self.choices}


def Many(schema):
    """A list of nested schemas."""
    return fields.List(fields.Nested(schema))
