"""
The pricing module determines what a rental costs.

A rental is billed by the hour at the bike's hourly rate. The first hour is
always charged in full, after that the elapsed time is billed fractionally.
The same policy prices a finished rental and estimates a running one.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Union

MINIMUM_BILLED_HOURS = Decimal(1)
"""The minimum charge, in hours."""

SECONDS_PER_HOUR = Decimal(3600)
CENTS = Decimal("0.01")


class Bill(NamedTuple):
    duration_hours: Decimal
    """The actual time elapsed."""

    billed_hours: Decimal
    """The time charged for, never less than the minimum."""

    total_cost: Decimal
    """The cost, rounded to 2 decimal places."""


def round2(value: Union[Decimal, float, int]) -> Decimal:
    """Rounds half up to 2 decimal places."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def elapsed_hours(start_time: datetime, end_time: datetime) -> Decimal:
    """The hours between the two times, as a real number."""
    delta = _as_aware(end_time) - _as_aware(start_time)
    return Decimal(str(delta.total_seconds())) / SECONDS_PER_HOUR


def bill(start_time: datetime, end_time: datetime, price_per_hour: Union[Decimal, float, str]) -> Bill:
    """
    Prices a rental between two times.

    :param start_time: When the rental started.
    :param end_time: When the rental ended, or now when estimating.
    :param price_per_hour: The bike's hourly rate.
    """
    duration_hours = elapsed_hours(start_time, end_time)
    billed_hours = max(duration_hours, MINIMUM_BILLED_HOURS)
    total_cost = round2(billed_hours * Decimal(str(price_per_hour)))
    return Bill(duration_hours, billed_hours, total_cost)
