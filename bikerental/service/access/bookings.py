"""
Bookings
--------

Reads and writes the booking ledger.

Every write runs inside a transaction. Opening a booking also creates its
:class:`~bikerental.models.BookingClaim`, and moving it to a terminal status
deletes the claim, so the uniqueness of the claims is what stops a user or a
bike from holding two active bookings.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Tuple, Dict, Any

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from bikerental.models import Booking, BookingClaim
from bikerental.models.util import BookingStatus
from bikerental.pricing import round2, elapsed_hours
from bikerental.service.errors import ConflictError, NotFoundError, ForbiddenError
from bikerental.service.policy import can_act


async def get_booking_by_id(booking_id: int) -> Optional[Booking]:
    """Gets a booking, along with its bike."""
    return await Booking.filter(id=booking_id).first().prefetch_related("bike")


async def get_booking(booking_id: int, user_id: str, *, is_admin=False) -> Booking:
    """
    Gets a booking on behalf of a user.

    :raises NotFoundError: If the booking does not exist.
    :raises ForbiddenError: If the user did not make the booking and is not an admin.
    """
    booking = await get_booking_by_id(booking_id)
    if booking is None:
        raise NotFoundError("booking")
    if not can_act(user_id, booking, is_admin=is_admin):
        raise ForbiddenError()
    return booking


async def get_active_booking(user_id: str) -> Optional[Booking]:
    """Gets the booking the user is currently riding on, if any."""
    return await Booking.filter(
        user_id=user_id, status=BookingStatus.ACTIVE, end_time__isnull=True
    ).first().prefetch_related("bike")


async def get_user_bookings(user_id: str, *, status: BookingStatus = None, start_date: datetime = None,
                            end_date: datetime = None, limit=20, offset=0) -> Tuple[List[Booking], int]:
    """
    Gets a page of a user's bookings, newest first.

    :return: The page, and the number of bookings matching the filters.
    """
    query = Booking.filter(user_id=user_id)

    if status is not None:
        query = query.filter(status=status)
    if start_date is not None:
        query = query.filter(start_time__gte=start_date)
    if end_date is not None:
        query = query.filter(start_time__lte=end_date)

    total = await query.count()
    bookings = await query.order_by("-start_time", "-id").offset(offset).limit(limit).prefetch_related("bike")
    return bookings, total


async def get_bookings(*, status: BookingStatus = None, bike_id: int = None, limit=20, offset=0) -> List[Booking]:
    """Gets a page of all the bookings, newest first."""
    query = Booking.all()

    if status is not None:
        query = query.filter(status=status)
    if bike_id is not None:
        query = query.filter(bike_id=bike_id)

    return await query.order_by("-start_time", "-id").offset(offset).limit(limit).prefetch_related("bike")


async def get_user_stats(user_id: str) -> Dict[str, Any]:
    """Sums up a user's riding history."""
    bookings = await Booking.filter(user_id=user_id)
    completed = [b for b in bookings if b.status is BookingStatus.COMPLETED]

    total_spent = sum((b.total_cost for b in completed if b.total_cost is not None), Decimal(0))
    ride_time = sum((elapsed_hours(b.start_time, b.end_time) for b in completed if b.end_time), Decimal(0))

    return {
        "total_bookings": len(bookings),
        "completed_bookings": len(completed),
        "cancelled_bookings": sum(1 for b in bookings if b.status is BookingStatus.CANCELLED),
        "active_bookings": sum(1 for b in bookings if b.is_active),
        "total_spent": round2(total_spent),
        "total_ride_time_hours": round2(ride_time),
        "average_booking_cost": round2(total_spent / len(completed)) if completed else round2(0),
    }


async def insert_booking(*, user_id: str, bike_id: int, start_time: datetime, notes: str = None,
                         start_latitude: float = None, start_longitude: float = None) -> Booking:
    """
    Opens an active booking and claims the user and bike for it.

    :raises ConflictError: If the user or the bike already has an active booking.
    """
    try:
        async with in_transaction():
            booking = await Booking.create(
                user_id=user_id, bike_id=bike_id, start_time=start_time, status=BookingStatus.ACTIVE,
                notes=notes, start_latitude=start_latitude, start_longitude=start_longitude
            )
            await BookingClaim.create(booking=booking, user_id=user_id, bike_id=bike_id)
    except IntegrityError as error:
        if await BookingClaim.filter(user_id=user_id).exists():
            raise ConflictError("active rental exists") from error
        raise ConflictError("bike already rented") from error

    return booking


async def update_booking(booking_id: int, *, expected_status: BookingStatus = None, **changes) -> Optional[Booking]:
    """
    Updates a booking, releasing its claim if it reaches a terminal status.

    :param expected_status: When given, the booking is only written if it has this
        status and has not ended.
    :return: The updated booking, or None if nothing matched.
    """
    async with in_transaction():
        query = Booking.filter(id=booking_id)
        if expected_status is not None:
            query = query.filter(status=expected_status, end_time__isnull=True)

        if not await query.update(**changes):
            return None

        if changes.get("status") in BookingStatus.terminal_states():
            await BookingClaim.filter(booking_id=booking_id).delete()

    return await get_booking_by_id(booking_id)


class BookingLedger:
    """
    The bookings, as seen by the rental manager.
    """

    async def insert(self, **fields) -> Booking:
        return await insert_booking(**fields)

    async def update_by_id(self, booking_id: int, *, expected_status: BookingStatus = None,
                           **changes) -> Optional[Booking]:
        return await update_booking(booking_id, expected_status=expected_status, **changes)

    async def find_active_by_user(self, user_id: str) -> Optional[Booking]:
        return await get_active_booking(user_id)

    async def find_by_id(self, booking_id: int) -> Booking:
        """:raises NotFoundError: If there is no such booking."""
        booking = await get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundError("booking")
        return booking
