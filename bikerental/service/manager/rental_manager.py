"""
Rental Manager
--------------

This module is what handles all the rentals in the system.

Responsibilities
================

This object handles everything needed for bike rentals.

- starting a rental, reserving the bike
- returning a bike, settling the cost
- cancelling a rental
- getting the active rental of a user, with the cost so far

The manager keeps no state of its own. The bike directory and the booking
ledger are the only things it reads and writes, so any number of servers may
share a database. A rental holds a bike exclusively: the ledger refuses a second
claim on a user or a bike, and the bike is reserved with a conditional write.

Starting a rental is a small saga. The booking is written first, then the bike
is reserved. If the reservation does not go through, the booking is cancelled
again before the error is raised. Returning and cancelling release the bike on
a best-effort basis: once the booking is settled, a failed release is logged,
counted, and left for the :class:`~bikerental.service.background.reconciler.AvailabilityReconciler`.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple, Union

from tortoise.exceptions import BaseORMException

from bikerental import logger
from bikerental.events import EventHub, EventList
from bikerental.models import Bike, Booking
from bikerental.models.util import BookingStatus
from bikerental.pricing import bill, Bill
from bikerental.service.access.bikes import BikeDirectory
from bikerental.service.access.bookings import BookingLedger
from bikerental.service.errors import ConflictError, ForbiddenError, ServiceError, AvailabilityError
from bikerental.service.policy import can_act
from bikerental.service.rebuildable import Rebuildable


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def append_note(notes: Optional[str], line: str) -> str:
    """Adds a line to the notes of a booking."""
    return f"{notes or ''}\n{line}".strip()


class RentalEvent(EventList):

    @staticmethod
    def rental_started(booking: Booking):
        """A new rental was started."""

    @staticmethod
    def rental_returned(booking: Booking, receipt: Bill):
        """A rental was completed and billed."""

    @staticmethod
    def rental_cancelled(booking: Booking):
        """A rental was cancelled."""

    @staticmethod
    def availability_release_failed(booking: Booking, bike_id: int):
        """A bike could not be made available after its rental ended."""


class RentalManager(Rebuildable):
    """
    Handles the lifecycle of the rental in the system.

    Also publishes events on its hub, so that other modules can stay up to date with the system.

    :param directory: Where the bikes are kept.
    :param ledger: Where the bookings are kept.
    :param clock: Returns the current (timezone aware) time.
    """

    def __init__(self, directory: BikeDirectory = None, ledger: BookingLedger = None, *,
                 clock: Callable[[], datetime] = None):
        self.directory = directory if directory is not None else BikeDirectory()
        self.ledger = ledger if ledger is not None else BookingLedger()
        self.clock = clock if clock is not None else utcnow
        self.hub = EventHub(RentalEvent)

        self.release_failures = 0
        """The number of bikes that could not be released since start up."""

    async def rent(self, user_id: str, bike_id: int, *, start_latitude: float = None,
                   start_longitude: float = None, notes: str = None) -> Booking:
        """
        Starts a rental of a bike for a user.

        :raises ConflictError: If the user is riding already, or the bike is not free.
        :raises NotFoundError: If the bike does not exist.
        :raises ServiceError: If the bike could not be reserved.
        """
        if await self.ledger.find_active_by_user(user_id) is not None:
            raise ConflictError("active rental exists")

        bike = await self.directory.get_by_id(bike_id)

        if not bike.is_available or not bike.in_circulation:
            raise ConflictError("bike unavailable")

        # the flag may be stale, the ledger is not
        if await self.directory.has_active_booking(bike.id):
            raise ConflictError("bike already rented")

        booking = await self.ledger.insert(
            user_id=user_id, bike_id=bike.id, start_time=self.clock(), notes=notes,
            start_latitude=start_latitude, start_longitude=start_longitude,
        )

        # once the booking exists, the rent runs to its end even if the caller goes away
        return await asyncio.shield(self._reserve(booking, bike))

    async def _reserve(self, booking: Booking, bike: Bike) -> Booking:
        """
        Takes the bike of a new booking out of the fleet, or cancels the booking.

        :raises ConflictError: If another rental reserved the bike first.
        :raises ServiceError: If the bike could not be reserved.
        """
        try:
            reserved = await self.directory.set_availability(bike.id, False, expected=True)
        except AvailabilityError as error:
            logger.error("Could not reserve bike %s for booking %s, rolling back: %s", bike.id, booking.id, error)
            await self._roll_back(booking)
            raise ServiceError("reservation failed") from error

        if not reserved:
            logger.warning("Bike %s was taken before booking %s reserved it, rolling back", bike.id, booking.id)
            await self._roll_back(booking)
            raise ConflictError("bike already rented")

        bike.is_available = False
        booking.bike = bike

        logger.info("Booking %s started, user %s took bike %s", booking.id, booking.user_id, bike.id)
        self.hub.emit(RentalEvent.rental_started, booking)
        return booking

    async def return_bike(self, booking_id: int, user_id: str, *, end_latitude: float = None,
                          end_longitude: float = None, notes: str = None) -> Tuple[Booking, Bill]:
        """
        Completes a rental and bills it.

        :return: The completed booking and its bill.
        :raises NotFoundError: If the booking does not exist.
        :raises ForbiddenError: If the user did not make the booking.
        :raises ConflictError: If the booking is no longer active.
        """
        booking = await self.ledger.find_by_id(booking_id)
        if not can_act(user_id, booking):
            raise ForbiddenError()
        self._assert_active(booking)

        end_time = self.clock()
        receipt = bill(booking.start_time, end_time, booking.bike.price_per_hour)

        changes = {
            "status": BookingStatus.COMPLETED,
            "end_time": end_time,
            "total_cost": receipt.total_cost,
        }
        if notes:
            changes["notes"] = append_note(booking.notes, f"Return: {notes}")
        if end_latitude is not None and end_longitude is not None:
            changes["end_latitude"] = end_latitude
            changes["end_longitude"] = end_longitude

        completed = await self._transition(booking, changes)
        logger.info("Booking %s completed, %s hours billed at %s", completed.id, receipt.billed_hours, receipt.total_cost)

        await self._release(completed)
        if end_latitude is not None and end_longitude is not None:
            await self._move(completed, end_latitude, end_longitude)

        self.hub.emit(RentalEvent.rental_returned, completed, receipt)
        return completed, receipt

    async def cancel(self, booking_id: int, user_id: str, *, reason: str = None, is_admin=False) -> Booking:
        """
        Cancels a rental, effective immediately, waiving the rental fee.

        :raises NotFoundError: If the booking does not exist.
        :raises ForbiddenError: If the user did not make the booking and is not an admin.
        :raises ConflictError: If the booking is no longer active.
        """
        booking = await self.ledger.find_by_id(booking_id)
        if not can_act(user_id, booking, is_admin=is_admin):
            raise ForbiddenError()
        self._assert_active(booking)

        line = f"Cancelled: {reason}" if reason else "Cancelled by user"
        cancelled = await self._transition(booking, {
            "status": BookingStatus.CANCELLED,
            "notes": append_note(booking.notes, line),
        })
        logger.info("Booking %s cancelled by %s", cancelled.id, user_id)

        await self._release(cancelled)

        self.hub.emit(RentalEvent.rental_cancelled, cancelled)
        return cancelled

    async def active_rental(self, user_id: str, *, with_estimate=False) -> Union[Optional[Booking], Tuple]:
        """
        Gets the active rental for a given user, or None.

        :param with_estimate: Also return a bill for the rental so far. The bill is
            a projection, nothing is charged.
        """
        booking = await self.ledger.find_active_by_user(user_id)
        if not with_estimate:
            return booking
        if booking is None:
            return None, None
        return booking, bill(booking.start_time, self.clock(), booking.bike.price_per_hour)

    async def has_active_booking(self, bike_id: int) -> bool:
        """Checks if an active booking holds the given bike."""
        return await self.directory.has_active_booking(bike_id)

    async def _rebuild(self):
        """Nothing is kept in memory, so only the state of the ledger is reported."""
        active = await Booking.filter(status=BookingStatus.ACTIVE, end_time__isnull=True).count()
        logger.info("Rental manager started with %s active bookings", active)

    @staticmethod
    def _assert_active(booking: Booking):
        """:raises ConflictError: If the booking has left the active state."""
        if booking.status is not BookingStatus.ACTIVE:
            raise ConflictError(f"booking is {booking.status.value}")
        if booking.end_time is not None:
            raise ConflictError("already completed")

    async def _transition(self, booking: Booking, changes) -> Booking:
        """
        Moves an active booking to a terminal status.

        :raises ConflictError: If another request moved it first.
        """
        updated = await self.ledger.update_by_id(booking.id, expected_status=BookingStatus.ACTIVE, **changes)
        if updated is None:
            current = await self.ledger.find_by_id(booking.id)
            self._assert_active(current)
            raise ConflictError("booking is no longer active")
        return updated

    async def _roll_back(self, booking: Booking):
        """Cancels a booking whose bike could not be reserved."""
        try:
            await self.ledger.update_by_id(
                booking.id, expected_status=BookingStatus.ACTIVE,
                status=BookingStatus.CANCELLED,
                notes=append_note(booking.notes, "Cancelled: reservation failed"),
            )
        except BaseORMException as error:
            logger.critical("Could not roll back booking %s: %s", booking.id, error)
            raise ServiceError("reservation failed") from error

    async def _release(self, booking: Booking):
        """Makes the bike of a finished booking available again, without failing the caller."""
        try:
            released = await self.directory.set_availability(booking.bike_id, True)
        except AvailabilityError as error:
            logger.warning("Could not release bike %s after booking %s: %s", booking.bike_id, booking.id, error)
            released = False
        else:
            if not released:
                logger.warning("Bike %s of booking %s vanished before it was released", booking.bike_id, booking.id)

        if not released:
            self.release_failures += 1
            self.hub.emit(RentalEvent.availability_release_failed, booking, booking.bike_id)

    async def _move(self, booking: Booking, latitude: float, longitude: float):
        """Records where the bike of a booking was left."""
        try:
            await self.directory.set_location(booking.bike_id, latitude, longitude)
        except BaseORMException as error:
            logger.warning("Could not move bike %s after booking %s: %s", booking.bike_id, booking.id, error)
