from aiohttp.web_urldispatcher import View

from bikerental.models import User
from bikerental.permissions.permission import RoutePermissionError, Permission
from bikerental.service.access.users import get_user
from bikerental.service.verify_token import verify_token, TokenVerificationError


async def token_user(view: View, user: User = None):
    """Gets the user the token on the request belongs to."""
    token = view.request.get("token")
    if token is None:
        return None
    if user is not None and user.id == token:
        return user
    return await get_user(user_id=token)


class UserIsAdmin(Permission):
    """Asserts that the holder of the token is an admin."""

    async def __call__(self, view: View, user: User = None, **kwargs):
        if "token" not in view.request:
            raise RoutePermissionError("No admin token was included in the Authorization header.")

        # an admin may be fetching someone else's details
        caller = await token_user(view, user)

        if caller is None or not caller.is_admin:
            raise RoutePermissionError("The supplied token doesn't have admin rights.")


class UserMatchesToken(Permission):
    """Asserts that the given user matches the token."""

    async def __call__(self, view: View, user: User = None, **kwargs):
        if "token" not in view.request:
            raise RoutePermissionError("No token was included in the Authorization header.")
        else:
            token = view.request["token"]

        if user is None or not user.id == token:
            raise RoutePermissionError("The supplied token doesn't have access to this resource.")


class ValidToken(Permission):
    """Asserts that the request has a valid token."""

    async def __call__(self, view: View, **kwargs):
        try:
            token = verify_token(view.request)
        except TokenVerificationError as error:
            raise RoutePermissionError(error.message)
        else:
            view.request["token"] = token
