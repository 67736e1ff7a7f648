"""
Bikes
-----

Handles the CRUD for a bike, and the bike directory the rental manager
reserves bikes through.

The availability flag belongs to the rental manager. The CRUD here may change
anything else about a bike, but never ``is_available``, and it refuses to take
a bike out of circulation while somebody is riding it.
"""
from decimal import Decimal
from typing import Optional, List, Dict, Any

from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from bikerental import logger
from bikerental.models import Bike, Booking
from bikerental.models.util import BookingStatus, serialize_location
from bikerental.service.errors import NotFoundError, ConflictError, AvailabilityError

MODIFIABLE_FIELDS = ("model", "brand", "price_per_hour", "latitude", "longitude", "battery_level", "in_circulation")
"""The fields the operators may change on a bike."""


async def get_bikes(*, available: bool = None, brand: str = None, in_circulation: bool = None,
                    limit: int = None, offset: int = 0) -> List[Bike]:
    """
    Gets the bikes in the system.

    :param available: Only bikes whose availability matches.
    :param brand: Only bikes of a brand.
    :param in_circulation: Only bikes that are (or are not) in circulation.
    """
    query = Bike.all()

    if available is not None:
        query = query.filter(is_available=available)
    if brand is not None:
        query = query.filter(brand__iexact=brand)
    if in_circulation is not None:
        query = query.filter(in_circulation=in_circulation)

    query = query.order_by("id").offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return await query


async def get_bike(*, bike_id: int) -> Optional[Bike]:
    """Gets a bike from the system."""
    return await Bike.filter(id=bike_id).first()


async def create_bike(*, model: str, price_per_hour: Decimal, brand: str = None,
                      latitude: float = None, longitude: float = None, battery_level: int = None) -> Bike:
    """Adds a bike to the fleet. New bikes are available and in circulation."""
    async with in_transaction():
        bike = await Bike.create(
            model=model, brand=brand, price_per_hour=price_per_hour,
            latitude=latitude, longitude=longitude, battery_level=battery_level
        )

    logger.info("Bike %s added to the fleet", bike)
    return bike


async def has_active_booking(bike_id: int) -> bool:
    """Checks whether an active booking holds the bike."""
    return await Booking.filter(
        bike_id=bike_id, status=BookingStatus.ACTIVE, end_time__isnull=True
    ).exists()


async def update_bike(bike: Bike, **changes) -> Bike:
    """
    Changes the details of a bike.

    :raises ConflictError: If the bike would leave circulation during a rental.
    :raises ValueError: If one of the changes may not be made through here.
    """
    disallowed = set(changes) - set(MODIFIABLE_FIELDS)
    if disallowed:
        raise ValueError(f"Cannot change {', '.join(sorted(disallowed))} on a bike.")

    if changes.get("in_circulation") is False and await has_active_booking(bike.id):
        raise ConflictError("bike has an active booking")

    if changes:
        async with in_transaction():
            await Bike.filter(id=bike.id).update(**changes)
        await bike.refresh_from_db()

    return bike


async def retire_bike(bike: Bike) -> Bike:
    """
    Takes a bike out of circulation. Bikes are never deleted.

    :raises ConflictError: If the bike has an active booking.
    """
    bike = await update_bike(bike, in_circulation=False)
    logger.info("Bike %s taken out of circulation", bike)
    return bike


async def set_availability(bike_id: int, value: bool, *, expected: bool = None) -> bool:
    """
    Writes the availability of a bike.

    :param expected: When given, the write only happens if the stored value matches it.
    :return: Whether the row was written.
    :raises AvailabilityError: If the write failed.
    """
    query = Bike.filter(id=bike_id)
    if expected is not None:
        query = query.filter(is_available=expected)

    try:
        async with in_transaction():
            updated = await query.update(is_available=value)
    except BaseORMException as error:
        raise AvailabilityError(f"could not set availability of bike {bike_id}") from error

    return updated > 0


async def set_location(bike_id: int, latitude: float, longitude: float):
    """Records where a bike was last left."""
    async with in_transaction():
        await Bike.filter(id=bike_id).update(latitude=latitude, longitude=longitude)


async def check_availability(bike_id: int) -> Dict[str, Any]:
    """
    Reports whether a bike can be rented right now.

    :raises NotFoundError: If the bike does not exist.
    """
    bike = await get_bike(bike_id=bike_id)
    if bike is None:
        raise NotFoundError("bike")

    active = await has_active_booking(bike.id)
    return {
        "bike_id": bike.id,
        "is_available": bike.is_available and bike.in_circulation and not active,
        "has_active_booking": active,
        "battery_level": bike.battery_level,
        "location": serialize_location(bike.location),
    }


class BikeDirectory:
    """
    The bikes, as seen by the rental manager.
    """

    async def get_by_id(self, bike_id: int) -> Bike:
        """:raises NotFoundError: If there is no such bike."""
        bike = await get_bike(bike_id=bike_id)
        if bike is None:
            raise NotFoundError("bike")
        return bike

    async def set_availability(self, bike_id: int, value: bool, *, expected: bool = None) -> bool:
        return await set_availability(bike_id, value, expected=expected)

    async def set_location(self, bike_id: int, latitude: float, longitude: float):
        await set_location(bike_id, latitude, longitude)

    async def has_active_booking(self, bike_id: int) -> bool:
        return await has_active_booking(bike_id)
