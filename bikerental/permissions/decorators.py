"""
Decorators
----------
"""

from functools import wraps
from http import HTTPStatus

from aiohttp import web
from aiohttp.web_urldispatcher import View

from bikerental import logger
from bikerental.permissions.permission import RoutePermissionError, Permission
from bikerental.serializer import JSendSchema, JSendStatus


def requires(permission: Permission):
    """
    A decorator that only lets a request through to the route if the permission is met.
    The permission gets the same arguments as the route, so it should come after any
    :func:`~bikerental.views.decorators.match_getter` it depends on.

    .. code:: python

        @match_getter(get_user, 'user', user_id=('id', str))
        @requires(UserMatchesToken() | UserIsAdmin())
        async def get(self, user: User):
            ...
    """

    if not isinstance(permission, Permission):
        raise TypeError(f"{permission!r} is not a permission.")

    def decorator(route):

        @wraps(route)
        async def checked_route(self: View, **kwargs):
            try:
                await permission(self, **kwargs)
            except RoutePermissionError as error:
                logger.debug("%s %s refused: %s", self.request.method, self.request.rel_url, error)
                return web.json_response(JSendSchema().dump({
                    "status": JSendStatus.FAIL,
                    "data": {
                        "message": f"You cannot do that because {error}.",
                        "reasons": error.serialize()
                    }
                }), status=HTTPStatus.UNAUTHORIZED)

            return await route(self, **kwargs)

        checked_route.permission = permission
        return checked_route

    return decorator
