"""
Rental Related Views
---------------------------

Handles starting, looking up, and ending rentals.

A rental is started by posting the bike to ``/rentals``. It is ended with
``PATCH /rentals/{id}/complete``, which bills it, or ``PATCH /rentals/{id}/cancel``,
which waives the fee.
"""
from http import HTTPStatus

from aiohttp_apispec import docs

from bikerental.models import User
from bikerental.permissions import requires, UserIsAdmin
from bikerental.pricing import round2
from bikerental.serializer import JSendSchema, JSendStatus
from bikerental.serializer.decorators import expects, expects_query, returns
from bikerental.serializer.fields import Many
from bikerental.serializer.misc import RentRequestSchema, ReturnRequestSchema, CancelRequestSchema, BookingQuerySchema
from bikerental.serializer.models import BookingSchema, RentalSummarySchema
from bikerental.service.access.bookings import get_booking, get_bookings
from bikerental.service.access.users import get_user
from bikerental.views.base import BaseView
from bikerental.views.decorators import match_getter, GetFrom

RENTAL_IDENTIFIER_REGEX = r"\d+"


class RentalsView(BaseView):
    """
    Gets a list of all rentals, or starts a new one.
    """
    url = "/rentals"
    name = "rentals"
    with_user = match_getter(get_user, 'user', user_id=GetFrom.AUTH_HEADER)

    @with_user
    @docs(summary="Get All Rentals")
    @requires(UserIsAdmin())
    @expects_query(BookingQuerySchema(only=("status", "limit", "offset")))
    @returns(JSendSchema.of(rentals=Many(BookingSchema())))
    async def get(self, user: User):
        query = self.request["query"]
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rentals": [
                rental.serialize(self.request.app.router)
                for rental in await get_bookings(**query)
            ]}
        }

    @with_user
    @docs(summary="Start A Rental")
    @expects(RentRequestSchema())
    @returns(JSendSchema.of(rental=BookingSchema()), HTTPStatus.CREATED)
    async def post(self, user: User):
        """
        Rents a bike for the user with the token. The bike is reserved until
        the rental is completed or cancelled.
        """
        data = self.request["data"]
        rental = await self.rental_manager.rent(
            user.id, data["bike_id"],
            start_latitude=data.get("start_latitude"),
            start_longitude=data.get("start_longitude"),
            notes=data.get("notes"),
        )
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }


class RentalView(BaseView):
    """
    Gets a single rental.
    """
    url = f"/rentals/{{id:{RENTAL_IDENTIFIER_REGEX}}}"
    name = "rental"
    with_user = match_getter(get_user, 'user', user_id=GetFrom.AUTH_HEADER)

    @with_user
    @docs(summary="Get A Rental")
    @returns(JSendSchema.of(rental=BookingSchema()))
    async def get(self, user: User):
        rental = await get_booking(int(self.request.match_info["id"]), user.id, is_admin=user.is_admin)
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }


class RentalCompleteView(BaseView):
    """
    Returns the bike of a rental and bills it.
    """
    url = f"/rentals/{{id:{RENTAL_IDENTIFIER_REGEX}}}/complete"
    name = "rental_complete"
    with_user = match_getter(get_user, 'user', user_id=GetFrom.AUTH_HEADER)

    @with_user
    @docs(summary="Complete A Rental")
    @expects(ReturnRequestSchema(), optional=True)
    @returns(JSendSchema.of(rental=BookingSchema(), summary=RentalSummarySchema()))
    async def patch(self, user: User):
        """
        Only the user who started a rental may complete it. The first hour
        is always charged in full.
        """
        data = self.request["data"]
        rental, receipt = await self.rental_manager.return_bike(
            int(self.request.match_info["id"]), user.id,
            end_latitude=data.get("end_latitude"),
            end_longitude=data.get("end_longitude"),
            notes=data.get("notes"),
        )
        return {
            "status": JSendStatus.SUCCESS,
            "data": {
                "rental": rental.serialize(self.request.app.router),
                "summary": {
                    "duration_hours": round2(receipt.duration_hours),
                    "billed_hours": round2(receipt.billed_hours),
                    "total_cost": receipt.total_cost,
                    "bike_model": rental.bike.model,
                }
            }
        }


class RentalCancelView(BaseView):
    """
    Cancels a rental without charging for it.
    """
    url = f"/rentals/{{id:{RENTAL_IDENTIFIER_REGEX}}}/cancel"
    name = "rental_cancel"
    with_user = match_getter(get_user, 'user', user_id=GetFrom.AUTH_HEADER)

    @with_user
    @docs(summary="Cancel A Rental")
    @expects(CancelRequestSchema(), optional=True)
    @returns(JSendSchema.of(rental=BookingSchema()))
    async def patch(self, user: User):
        """The user who started a rental and the admins may cancel it."""
        rental = await self.rental_manager.cancel(
            int(self.request.match_info["id"]), user.id,
            reason=self.request["data"].get("reason"),
            is_admin=user.is_admin,
        )
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }
