"""
User Related Views
-------------------------

Handles the user profiles, and the rentals of each user.
"""
from http import HTTPStatus

from aiohttp import web
from aiohttp_apispec import docs
from marshmallow.fields import Nested

from bikerental.models import User
from bikerental.permissions import UserMatchesToken, UserIsAdmin, requires, ValidToken
from bikerental.pricing import round2
from bikerental.serializer import JSendSchema, JSendStatus
from bikerental.serializer.decorators import expects, expects_query, returns
from bikerental.serializer.fields import Many
from bikerental.serializer.misc import BookingQuerySchema
from bikerental.serializer.models import UserSchema, BookingSchema, ActiveRentalSchema, StatsSchema, \
    PaginationSchema
from bikerental.service.access.bookings import get_user_bookings, get_user_stats
from bikerental.service.access.users import get_users, get_user, create_user, UserExistsError, update_user
from bikerental.views.base import BaseView
from bikerental.views.decorators import match_getter, GetFrom

USER_IDENTIFIER_REGEX = "(?!me)[^{}/]+"


class UsersView(BaseView):
    """
    Gets or adds to the list of users.
    """
    url = "/users"
    name = "users"
    with_user = match_getter(get_user, 'user', user_id=GetFrom.AUTH_HEADER)

    @with_user
    @docs(summary="Get All Users")
    @requires(UserIsAdmin())
    @expects(None)
    @returns(JSendSchema.of(users=Many(UserSchema())))
    async def get(self, user):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"users": [user.serialize() for user in await get_users()]}
        }

    @docs(summary="Create A User")
    @requires(ValidToken())
    @expects(UserSchema(only=('name', 'email')))
    @returns(
        email_taken=(JSendSchema(), HTTPStatus.CONFLICT),
        created=(JSendSchema.of(user=UserSchema()), HTTPStatus.CREATED),
    )
    async def post(self):
        """
        Anyone who has authenticated with the provider can create their profile.
        This must be done before renting, but only has to be done once. Posting
        again updates the profile.
        """
        try:
            user = await create_user(self.request["token"], **self.request["data"])
        except UserExistsError as error:
            user = await get_user(user_id=self.request["token"])
            if user is None:
                return "email_taken", {
                    "status": JSendStatus.FAIL,
                    "data": {
                        "message": "A user with that email already exists.",
                        "errors": error.errors
                    }
                }
            user = await update_user(user, **self.request["data"])

        return "created", {
            "status": JSendStatus.SUCCESS,
            "data": {"user": user.serialize()}
        }


class UserView(BaseView):
    """
    Gets a single user.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}"
    name = "user"
    with_user = match_getter(get_user, 'user', user_id=('id', str))

    @with_user
    @docs(summary="Get A User")
    @requires(UserMatchesToken() | UserIsAdmin())
    @expects(None)
    @returns(JSendSchema.of(user=UserSchema()))
    async def get(self, user: User):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"user": user.serialize()}
        }


class UserRentalsView(BaseView):
    """
    Gets a page of the user's rentals.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/rentals"
    name = "user_rentals"
    with_user = match_getter(get_user, 'user', user_id=('id', str))

    @with_user
    @docs(summary="Get All Rentals For User")
    @requires(UserMatchesToken() | UserIsAdmin())
    @expects_query(BookingQuerySchema())
    @returns(JSendSchema.of(rentals=Many(BookingSchema()), pagination=PaginationSchema()))
    async def get(self, user: User):
        query = self.request["query"]
        rentals, total = await get_user_bookings(user.id, **query)
        return {
            "status": JSendStatus.SUCCESS,
            "data": {
                "rentals": [rental.serialize(self.request.app.router) for rental in rentals],
                "pagination": {"total": total, "limit": query["limit"], "offset": query["offset"]}
            }
        }


class UserCurrentRentalView(BaseView):
    """
    Gets the user's current rental, with what it has cost so far.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/rentals/current"
    name = "user_current_rental"
    with_user = match_getter(get_user, 'user', user_id=('id', str))

    @with_user
    @docs(summary="Get Current Rental For User")
    @requires(UserMatchesToken() | UserIsAdmin())
    @returns(JSendSchema.of(rental=Nested(ActiveRentalSchema(), allow_none=True)))
    async def get(self, user: User):
        """Having no current rental is not an error, the rental is then null."""
        rental, projection = await self.rental_manager.active_rental(user.id, with_estimate=True)

        if rental is None:
            return {
                "status": JSendStatus.SUCCESS,
                "data": {"rental": None}
            }

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": {
                **rental.serialize(self.request.app.router),
                "current_duration_hours": round2(projection.duration_hours),
                "estimated_cost": projection.total_cost,
            }}
        }


class UserStatsView(BaseView):
    """
    Sums up the user's riding history.
    """
    url = f"/users/{{id:{USER_IDENTIFIER_REGEX}}}/stats"
    name = "user_stats"
    with_user = match_getter(get_user, 'user', user_id=('id', str))

    @with_user
    @docs(summary="Get Statistics For User")
    @requires(UserMatchesToken() | UserIsAdmin())
    @returns(JSendSchema.of(stats=StatsSchema()))
    async def get(self, user: User):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"stats": await get_user_stats(user.id)}
        }


class MeView(BaseView):
    """
    Redirects to the currently authenticated user.
    """

    url = "/users/me{tail:.*}"
    name = "me"

    async def get(self):
        return await self._me_handler()

    async def post(self):
        return await self._me_handler()

    async def put(self):
        return await self._me_handler()

    async def patch(self):
        return await self._me_handler()

    async def delete(self):
        return await self._me_handler()

    @requires(ValidToken())
    async def _me_handler(self):
        """
        Accepts all types of request and forwards them on to the user with the token.
        """
        user = await get_user(user_id=self.request["token"])

        if user is None:
            response_schema = JSendSchema()
            create_user_url = str(self.request.app.router['users'].url_for())
            return web.json_response(response_schema.dump({
                "status": JSendStatus.FAIL,
                "data": {
                    "message": "User does not exist. Please use your token to create a user and try again.",
                    "url": create_user_url,
                    "method": "POST"
                }
            }), status=HTTPStatus.BAD_REQUEST)

        concrete_url = MeView._get_concrete_user_url(self.request.path, self.request.match_info.get("tail", ""), user)
        raise web.HTTPTemporaryRedirect(concrete_url)

    @staticmethod
    def _get_concrete_user_url(path, tail, user) -> str:
        """
        Given a relative "me" url, and a user, rewrites the url to a concrete user.

        :param path: The current path of the "me" url.
        :param tail: The tail section of the url (after the "me")
        :param user: The user to rewrite to.
        """
        url_without_tail = path[:len(path) - len(tail)]
        return url_without_tail[:-len("me")] + str(user.id) + tail
