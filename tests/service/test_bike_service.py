from decimal import Decimal

import pytest

from bikerental.models import Bike
from bikerental.service.access.bikes import get_bikes, get_bike, create_bike, update_bike, retire_bike, \
    set_availability, set_location, check_availability, has_active_booking, BikeDirectory
from bikerental.service.errors import ConflictError, NotFoundError


async def test_get_bikes(random_bike):
    """Assert that getting bikes returns all bikes."""
    bikes = await get_bikes()
    assert len(bikes) == 1
    assert bikes[0] == random_bike


async def test_get_bikes_filtered(random_bike_factory):
    """Assert that the bikes can be filtered by availability, brand and circulation."""
    free = await random_bike_factory(brand="Gazelle")
    taken = await random_bike_factory(brand="Gazelle", is_available=False)
    retired = await random_bike_factory(brand="Brompton", in_circulation=False)

    assert await get_bikes(available=True, in_circulation=True) == [free]
    assert await get_bikes(available=False) == [taken]
    assert await get_bikes(in_circulation=False) == [retired]
    assert await get_bikes(brand="gazelle") == [free, taken]


async def test_get_bikes_paged(random_bike_factory):
    bikes = [await random_bike_factory() for _ in range(5)]
    assert await get_bikes(limit=2, offset=1) == bikes[1:3]


async def test_get_bike(random_bike: Bike):
    """Assert that getting a bike returns it."""
    bike = await get_bike(bike_id=random_bike.id)
    assert bike.id == random_bike.id


async def test_get_bad_bike(database):
    """Assert that getting a bad bike returns None"""
    assert await get_bike(bike_id=-1) is None


async def test_create_bike(database):
    """Assert that a new bike is available and in circulation."""
    bike = await create_bike(model="Roadster", brand="Gazelle", price_per_hour=Decimal("4.50"))
    bike = await Bike.get(id=bike.id)
    assert bike.is_available
    assert bike.in_circulation
    assert bike.price_per_hour == Decimal("4.50")
    assert bike.location is None


async def test_update_bike(random_bike):
    bike = await update_bike(random_bike, price_per_hour=Decimal("3.00"), battery_level=12)
    assert bike.price_per_hour == Decimal("3.00")
    assert (await Bike.get(id=random_bike.id)).battery_level == 12


async def test_update_bike_availability(random_bike):
    """Assert that the availability of a bike cannot be changed by hand."""
    with pytest.raises(ValueError):
        await update_bike(random_bike, is_available=False)
    assert (await Bike.get(id=random_bike.id)).is_available


async def test_retire_bike(random_bike):
    bike = await retire_bike(random_bike)
    assert not bike.in_circulation
    assert await Bike.filter(id=random_bike.id).exists()


async def test_retire_rented_bike(random_rental, random_bike):
    """Assert that a bike cannot leave circulation while it is rented."""
    with pytest.raises(ConflictError) as error:
        await retire_bike(random_bike)
    assert error.value.reason == "bike has an active booking"
    assert (await Bike.get(id=random_bike.id)).in_circulation


async def test_set_availability(random_bike):
    assert await set_availability(random_bike.id, False)
    assert not (await Bike.get(id=random_bike.id)).is_available


async def test_set_availability_conditional(random_bike):
    """Assert that a conditional write only goes through if the flag has the expected value."""
    assert await set_availability(random_bike.id, False, expected=True)
    assert not await set_availability(random_bike.id, False, expected=True)
    assert await set_availability(random_bike.id, True, expected=False)


async def test_set_availability_missing_bike(database):
    assert not await set_availability(1234, True)


async def test_set_location(random_bike):
    await set_location(random_bike.id, 10.0, 20.0)
    bike = await Bike.get(id=random_bike.id)
    assert (bike.latitude, bike.longitude) == (10.0, 20.0)
    assert bike.location.x == 20.0


async def test_has_active_booking(random_rental, random_bike, random_bike_factory):
    other_bike = await random_bike_factory()
    assert await has_active_booking(random_bike.id)
    assert not await has_active_booking(other_bike.id)


async def test_check_availability(random_bike):
    availability = await check_availability(random_bike.id)
    assert availability["bike_id"] == random_bike.id
    assert availability["is_available"]
    assert not availability["has_active_booking"]
    assert availability["location"]["geometry"]["type"] == "Point"


async def test_check_availability_rented(random_rental, random_bike):
    availability = await check_availability(random_bike.id)
    assert not availability["is_available"]
    assert availability["has_active_booking"]


async def test_check_availability_missing_bike(database):
    with pytest.raises(NotFoundError):
        await check_availability(1234)


async def test_directory_missing_bike(database):
    """Assert that the directory reports missing bikes as not found."""
    with pytest.raises(NotFoundError) as error:
        await BikeDirectory().get_by_id(1234)
    assert error.value.message == "bike not found"
