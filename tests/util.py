import asyncio
from datetime import datetime, timedelta, timezone

from bikerental.service.access.bikes import BikeDirectory
from bikerental.service.errors import AvailabilityError


class Clock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = None):
        self.now = now if now is not None else datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def auth(user) -> dict:
    """The headers the given user sends."""
    return {"Authorization": f"Bearer {user.id}"}


class BrokenDirectory(BikeDirectory):
    """Fails to write the availability of any bike."""

    async def set_availability(self, bike_id, value, *, expected=None):
        raise AvailabilityError(f"could not set availability of bike {bike_id}")


class OutrunDirectory(BikeDirectory):
    """Behaves as if another request reserved the bike first."""

    async def set_availability(self, bike_id, value, *, expected=None):
        if expected is True:
            return False
        return await super().set_availability(bike_id, value, expected=expected)


class StuckDirectory(BikeDirectory):
    """Reserves bikes, but cannot release them."""

    async def set_availability(self, bike_id, value, *, expected=None):
        if value is True:
            raise AvailabilityError(f"could not set availability of bike {bike_id}")
        return await super().set_availability(bike_id, value, expected=expected)


class SlowDirectory(BikeDirectory):
    """Holds every availability write until the gate opens."""

    def __init__(self):
        self.waiting = asyncio.Event()
        self.gate = asyncio.Event()
        self.written = asyncio.Event()

    async def set_availability(self, bike_id, value, *, expected=None):
        self.waiting.set()
        await self.gate.wait()
        result = await super().set_availability(bike_id, value, expected=expected)
        self.written.set()
        return result
