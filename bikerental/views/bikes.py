"""
Bike Related Views
-------------------------

Handles all the bike CRUD. Only the admins may add or change bikes. Bikes
are never deleted, deleting one takes it out of circulation.
"""
from http import HTTPStatus

from aiohttp import web
from aiohttp_apispec import docs

from bikerental.models import Bike, User
from bikerental.permissions import requires, UserIsAdmin
from bikerental.serializer import JSendSchema, JSendStatus
from bikerental.serializer.decorators import expects, expects_query, returns
from bikerental.serializer.fields import Many
from bikerental.serializer.misc import BikeCreateSchema, BikeModifySchema, BikeQuerySchema, BookingQuerySchema
from bikerental.serializer.models import BikeSchema, AvailabilitySchema, BookingSchema
from bikerental.service.access.bikes import get_bikes, get_bike, create_bike, update_bike, retire_bike, \
    check_availability
from bikerental.service.access.bookings import get_bookings
from bikerental.service.access.users import get_user
from bikerental.views.base import BaseView
from bikerental.views.decorators import match_getter, GetFrom

BIKE_IDENTIFIER_REGEX = r"\d+"


class BikesView(BaseView):
    """
    Gets the bikes, or adds a new bike.
    """
    url = "/bikes"
    name = "bikes"
    with_admin = match_getter(get_user, "user", user_id=GetFrom.AUTH_HEADER)

    @docs(summary="Get All Bikes")
    @expects_query(BikeQuerySchema())
    @returns(JSendSchema.of(bikes=Many(BikeSchema())))
    async def get(self):
        """
        Renters only see the bikes they could rent right now. Admins see
        the whole fleet, and may filter it by availability.
        """
        query = dict(self.request["query"])
        if not await self.caller_is_admin():
            query["available"] = True
            query["in_circulation"] = True

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"bikes": [bike.serialize(self.request.app.router) for bike in await get_bikes(**query)]}
        }

    @with_admin
    @docs(summary="Add A Bike")
    @requires(UserIsAdmin())
    @expects(BikeCreateSchema())
    @returns(JSendSchema.of(bike=BikeSchema()), HTTPStatus.CREATED)
    async def post(self, user: User):
        bike = await create_bike(**self.request["data"])
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"bike": bike.serialize(self.request.app.router)}
        }


class BikeView(BaseView):
    """
    Gets, updates or retires a single bike.
    """
    url = f"/bikes/{{id:{BIKE_IDENTIFIER_REGEX}}}"
    name = "bike"
    with_bike = match_getter(get_bike, "bike", bike_id="id")
    with_admin = match_getter(get_user, "user", user_id=GetFrom.AUTH_HEADER)

    @with_bike
    @docs(summary="Get A Bike")
    @returns(JSendSchema.of(bike=BikeSchema()))
    async def get(self, bike: Bike):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"bike": bike.serialize(self.request.app.router)}
        }

    @with_bike
    @with_admin
    @docs(summary="Update A Bike")
    @requires(UserIsAdmin())
    @expects(BikeModifySchema())
    @returns(JSendSchema.of(bike=BikeSchema()))
    async def patch(self, bike: Bike, user: User):
        """
        Changes the details of a bike. A bike may not leave circulation
        while it is rented.
        """
        bike = await update_bike(bike, **self.request["data"])
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"bike": bike.serialize(self.request.app.router)}
        }

    @with_bike
    @with_admin
    @docs(summary="Retire A Bike")
    @requires(UserIsAdmin())
    async def delete(self, bike: Bike, user: User):
        """A bike may not be retired while it is rented."""
        await retire_bike(bike)
        raise web.HTTPNoContent


class BikeAvailabilityView(BaseView):
    """
    Checks whether a bike can be rented right now.
    """
    url = f"/bikes/{{id:{BIKE_IDENTIFIER_REGEX}}}/availability"
    name = "bike_availability"

    @docs(summary="Check Bike Availability")
    @returns(JSendSchema.of(availability=AvailabilitySchema()))
    async def get(self):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"availability": await check_availability(int(self.request.match_info["id"]))}
        }


class BikeRentalsView(BaseView):
    """
    Gets the rentals of a bike.
    """
    url = f"/bikes/{{id:{BIKE_IDENTIFIER_REGEX}}}/rentals"
    name = "bike_rentals"
    with_bike = match_getter(get_bike, "bike", bike_id="id")
    with_admin = match_getter(get_user, "user", user_id=GetFrom.AUTH_HEADER)

    @with_bike
    @with_admin
    @docs(summary="Get All Rentals For Bike")
    @requires(UserIsAdmin())
    @expects_query(BookingQuerySchema(only=("status", "limit", "offset")))
    @returns(JSendSchema.of(rentals=Many(BookingSchema())))
    async def get(self, bike: Bike, user: User):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rentals": [
                rental.serialize(self.request.app.router)
                for rental in await get_bookings(bike_id=bike.id, **self.request["query"])
            ]}
        }
