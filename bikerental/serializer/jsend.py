"""
JSend Schema
------------

Every response the api sends is wrapped in a `JSend`_ envelope:

- ``success`` carries the requested ``data``,
- ``fail`` is the caller's fault, and its ``data`` holds a ``message`` saying what to fix,
- ``error`` is the server's fault, and carries a top level ``message``.

Rental failures also say what ``kind`` of failure they are in their ``data``,
such as ``conflict`` or ``not_found``.

.. _`JSend`: https://github.com/omniti-labs/jsend
"""

from enum import Enum

from marshmallow import Schema, fields, validates_schema, ValidationError
from marshmallow.fields import Field

from .fields import EnumField


class JSendStatus(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    ERROR = "error"


class JSendSchema(Schema):
    status = EnumField(JSendStatus, required=True)
    data = fields.Dict(allow_none=True)
    message = fields.String()
    code = fields.Integer()

    @validates_schema
    def assert_envelope(self, data, **kwargs):
        status = data["status"]

        if status is not JSendStatus.ERROR and "data" not in data:
            raise ValidationError(f"A {status.value} response must include data.")
        if status is JSendStatus.FAIL and "message" not in (data["data"] or {}):
            raise ValidationError("A failure must tell the user what went wrong.")
        if status is JSendStatus.ERROR and "message" not in data:
            raise ValidationError("An error response must include a message.")

    @staticmethod
    def of(**kwargs):
        """
        Creates a JSendSchema whose data must match the given fields or schemas.

        >>> schema = JSendSchema.of(rental=BookingSchema(), summary=RentalSummarySchema())
        >>> validated_data = schema.load(await response.json())
        """

        DataSchema = Schema.from_dict({
            name: value if isinstance(value, Field) else fields.Nested(value)
            for name, value in kwargs.items()
        }, name="DataSchema")

        class TypedJSendSchema(JSendSchema):
            data = fields.Nested(DataSchema)

        return TypedJSendSchema()
