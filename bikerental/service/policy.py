"""
Policy
------

Who may act on a booking.
"""

from bikerental.models import Booking


def can_act(actor_id: str, booking: Booking, *, is_admin: bool = False) -> bool:
    """
    An actor may act on a booking if they made it, or if they are an admin.

    :param actor_id: The identity of the caller.
    :param booking: The booking to act on.
    :param is_admin: Whether the caller has admin rights.
    """
    return is_admin or booking.user_id == actor_id
