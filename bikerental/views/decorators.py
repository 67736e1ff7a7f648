"""
Decorators
-------------------------

:func:`match_getter` fetches the objects a route works on, such as the bike in
``/bikes/{id}`` or the user behind the Authorization header, and passes them
to the handler. A route whose object does not exist responds with a 404.
"""
from enum import Enum
from functools import wraps
from inspect import isawaitable
from typing import Union, Any, Dict, Tuple, List

from aiohttp import web
from aiohttp.web_request import Request
from aiohttp.web_urldispatcher import View
from apispec.ext.marshmallow import OpenAPIConverter, resolver

from bikerental.serializer import JSendStatus, JSendSchema
from bikerental.service.verify_token import TokenVerificationError

converter = OpenAPIConverter("3.0.2", resolver, None)


class Optional:
    """Marks a match map entry, or an injected parameter, as allowed to be missing."""

    def __init__(self, value):
        self.value = value


class GetFrom(Enum):
    AUTH_HEADER = "Authorization"


def flatten(error: Exception) -> List[str]:
    """Collects the messages of an error and the errors nested in it."""
    messages = []
    for arg in error.args:
        messages += flatten(arg) if isinstance(arg, Exception) else [arg]
    return messages


def _url_parameter(request: Request, name: str, kind: type):
    """:raises ValueError: If the parameter cannot be converted."""
    value = request.match_info.get(name)
    try:
        return kind(value)
    except (ValueError, TypeError):
        raise ValueError(f'Could not convert url parameter "{value}" to expected type {kind.__name__}.')


def _token_identity(request: Request) -> str:
    """:raises ValueError: If the Authorization header is malformed or the token invalid."""
    header = request.headers["Authorization"]
    if not header.startswith("Bearer "):
        raise ValueError("Malformed Authorization header (expected Bearer $TOKEN).")
    try:
        return request.app["token_verifier"].verify_token(header[len("Bearer "):])
    except TokenVerificationError as error:
        raise ValueError(error.message)


def resolve_match_map(request: Request, match_map) -> Dict[str, Any]:
    """
    Resolves the arguments for a getter from the request.

    :raises ValueError: With one argument per entry that could not be resolved.
    """
    resolved = {}
    errors = []

    for key, source in match_map.items():
        optional = isinstance(source, Optional)
        if optional:
            source = source.value

        if isinstance(source, str):
            source = (source, int)

        if isinstance(source, tuple):
            if optional and source[0] not in request.match_info:
                continue
            resolve = lambda: _url_parameter(request, *source)
        elif source is GetFrom.AUTH_HEADER:
            if "Authorization" not in request.headers:
                if not optional:
                    errors.append(ValueError("Missing Authorization header."))
                continue
            resolve = lambda: _token_identity(request)
        else:
            raise TypeError(f"match_getter incorrectly configured (doesn't support {type(source)})")

        try:
            resolved[key] = resolve()
        except ValueError as error:
            errors.append(error)

    if errors:
        raise ValueError(*errors)
    return resolved


def _fail(exception, message: str, **data):
    body = JSendSchema().dumps({"status": JSendStatus.FAIL, "data": {"message": message, **data}})
    return exception(text=body, content_type='application/json')


def match_getter(getter_function, *injection_parameters: Union[str, Optional],
                 **match_map: Union[str, GetFrom, Optional, Tuple[str, type]]):
    """
    Fetches an item with the getter and passes it to the route, or 404's if it doesn't exist.

    .. code-block:: python

        @match_getter(get_bike, 'bike', bike_id='id')
        async def get(self, bike: Bike):
            return web.json_response(data=bike.serialize())

    :param getter_function: The function to fetch the item with. It may be a coroutine.
    :param injection_parameters: The names to pass the item as. When the getter returns a
        tuple, each of its items is passed under its own name.
    :param match_map: Maps the arguments of the getter to a url parameter (a name, or a name
        and a type), or to the identity in the Authorization header.
    """

    def attach_instance(route):

        @wraps(route)
        async def route_with_instance(self: View, **kwargs):
            try:
                params = resolve_match_map(self.request, match_map)
            except ValueError as error:
                raise _fail(web.HTTPBadRequest, "Errors with your request.", errors=flatten(error))

            item = getter_function(**params)
            if isawaitable(item):
                item = await item

            if len(injection_parameters) > 1 and isinstance(item, tuple) and len(item) == len(injection_parameters):
                fetched = dict(zip(injection_parameters, item))
            else:
                fetched = {injection_parameters[0]: item}

            missing = [name for name, value in fetched.items() if value is None and not isinstance(name, Optional)]
            if missing:
                raise _fail(
                    web.HTTPNotFound, f'Could not find {", ".join(missing)} with the given params.', params=params
                )

            injected = {name.value if isinstance(name, Optional) else name: value for name, value in fetched.items()}
            return await route(self, **kwargs, **injected)

        document_responses(route_with_instance, route)
        return route_with_instance

    return attach_instance


def document_responses(new_func, original_function):
    """Carries the apispec documentation over to the wrapped route, adding the 400 and 404 responses."""
    new_func.__apispec__ = getattr(original_function, "__apispec__", {"schemas": [], "responses": {}, "parameters": []})
    new_func.__schemas__ = getattr(original_function, "__schemas__", [])

    json_schema = converter.schema2jsonschema(JSendSchema(only=("status", "data")))
    responses = new_func.__apispec__["responses"]

    responses["404"] = {
        "description": "resource_missing",
        "content": {"application/json": {"schema": json_schema}}
    }
    responses.setdefault("400", {
        "description": "request_errors",
        "content": {"application/json": {"schema": json_schema}}
    })
