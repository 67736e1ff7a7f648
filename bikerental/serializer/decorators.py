"""
Decorators
----------

The routes read and write JSON through these decorators. :func:`expects`
validates the body, :func:`expects_query` the query string, and
:func:`returns` dumps whatever the route returns. A request that does not
validate never reaches the route, and gets a JSend ``fail`` saying why.

.. note:: ``@expects(None)`` and ``@returns(None)`` do nothing, and are
    only there to make a route definition read completely.
"""

from functools import wraps
from http import HTTPStatus
from json import JSONDecodeError
from typing import Optional, Tuple, Union

from aiohttp import web
from aiohttp.web_urldispatcher import View
from marshmallow import Schema, ValidationError
from marshmallow_jsonschema import JSONSchema

from bikerental.serializer.jsend import JSendSchema, JSendStatus


def bad_request(message: str, **data) -> web.Response:
    """A JSend fail with a 400."""
    return web.json_response(JSendSchema().dump({
        "status": JSendStatus.FAIL,
        "data": {"message": message, **data}
    }), status=HTTPStatus.BAD_REQUEST)


def expects(schema: Optional[Schema], into="data", *, optional=False):
    """
    Validates the JSON body of the request against the schema, and stores
    the loaded data on the request under ``into``.

    .. code:: python

        @expects(RentRequestSchema())
        async def post(self):
            bike_id = self.request["data"]["bike_id"]

    :param schema: The schema to validate.
    :param into: The key to store the validated data in.
    :param optional: Treat a request without a body as an empty object.
    """

    if schema is None:
        return lambda route: route

    if not isinstance(schema, Schema):
        raise TypeError(f"{schema!r} is not a schema.")

    json_schema = JSONSchema().dump(schema)["definitions"][type(schema).__name__]

    def decorator(route):

        @wraps(route)
        async def validated_route(self: View, **kwargs):
            request = self.request

            if optional and not request.body_exists:
                request[into] = schema.load({})
                return await route(self, **kwargs)

            if not request.body_exists or request.content_type != "application/json":
                return bad_request(
                    f"This route ({request.method}: {request.rel_url}) only accepts JSON.", schema=json_schema
                )

            try:
                request[into] = schema.load(await request.json())
            except JSONDecodeError as error:
                return bad_request("Could not parse supplied JSON.", errors=error.args)
            except ValidationError as error:
                return bad_request("The request did not validate properly.", errors=error.messages, schema=json_schema)

            return await route(self, **kwargs)

        return validated_route

    return decorator


def expects_query(schema: Schema, into="query"):
    """
    Validates the query string of the request against the schema, and
    stores the loaded data on the request under ``into``.
    """

    if not isinstance(schema, Schema):
        raise TypeError(f"{schema!r} is not a schema.")

    def decorator(route):

        @wraps(route)
        async def validated_route(self: View, **kwargs):
            try:
                self.request[into] = schema.load(dict(self.request.query))
            except ValidationError as error:
                return bad_request("The query string did not validate properly.", errors=error.messages)

            return await route(self, **kwargs)

        return validated_route

    return decorator


def returns(
    schema: Optional[Schema] = None, return_code: HTTPStatus = HTTPStatus.OK,
    **named_schema: Union[Schema, Tuple[Schema, HTTPStatus]]
):
    """
    Dumps what the route returns with the schema, so that routes can return
    plain dictionaries.

    .. code:: python

        @returns(JSendSchema.of(bike=BikeSchema()))
        async def get(self):
            return {"status": JSendStatus.SUCCESS, "data": {"bike": bike.serialize()}}

    A route with more than one kind of response names its schemas, and returns
    the name along with the data:

    .. code:: python

        @returns(created=(JSendSchema.of(user=UserSchema()), HTTPStatus.CREATED),
                 email_taken=(JSendSchema(), HTTPStatus.CONFLICT))
        async def post(self):
            return "created", {...}

    :param schema: The schema that the output data must conform to.
    :param return_code: The code to return.
    :param named_schema: Names, each with a schema or a schema and a return code.
    """

    if schema is None and not named_schema:
        return lambda route: route

    schemas = {name: value if isinstance(value, tuple) else (value, return_code) for name, value in named_schema.items()}
    schemas[None] = (schema, return_code)

    def decorator(route):

        @wraps(route)
        async def dumped_route(self: View, **kwargs):
            if schema is not None:
                name, response_data = None, await route(self, **kwargs)
            else:
                name, response_data = await route(self, **kwargs)

            try:
                matched_schema, status = schemas[name]
                return web.json_response(matched_schema.dump(response_data), status=status)
            except (ValidationError, KeyError) as error:
                return web.json_response(JSendSchema().dump({
                    "status": JSendStatus.ERROR,
                    "data": error.messages if isinstance(error, ValidationError) else {"errors": error.args},
                    "message": "We tried to send you data back, but it came out wrong.",
                }), status=HTTPStatus.INTERNAL_SERVER_ERROR)

        return dumped_route

    return decorator
