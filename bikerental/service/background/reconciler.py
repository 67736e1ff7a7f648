"""
Availability Reconciler
-----------------------

Brings the ``is_available`` flag of the bikes back in line with the booking
ledger. A bike is available exactly when no active booking holds it.

When returning or cancelling a rental, the rental manager does not fail if the
bike cannot be released. It reports the failure on its hub instead, and the
reconciler fixes the flag on its next pass. Passes run once at start up and
then periodically.
"""

import asyncio
from collections import defaultdict
from typing import Dict, List, Set

from tortoise.exceptions import BaseORMException

from bikerental import logger
from bikerental.models import Bike, Booking
from bikerental.models.util import BookingStatus
from bikerental.service.errors import AvailabilityError
from bikerental.service.manager.rental_manager import RentalManager, RentalEvent
from bikerental.service.rebuildable import Rebuildable


class AvailabilityReconciler(Rebuildable):
    """
    :param rental_manager: The manager whose release failures to follow.
    :param interval: The seconds between two passes.
    """

    def __init__(self, rental_manager: RentalManager, interval: float):
        self._rental_manager = rental_manager
        self.interval = interval

        self._rental_manager.hub.subscribe(RentalEvent.availability_release_failed, self._release_failed)

        self.failures: Dict[int, int] = defaultdict(int)
        """Maps bike ids to the number of times they could not be released."""

        self._suspects: Set[int] = set()
        """Held bikes marked available on the last pass."""

    async def run(self):
        """Reconciles the fleet every interval."""
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.reconcile()
            except (BaseORMException, AvailabilityError):
                logger.exception("Availability reconciliation failed")

    async def reconcile(self) -> List[int]:
        """
        Corrects the availability of every bike in circulation.

        The bikes are read before the ledger, so a rental that starts or ends in
        between leaves a bike looking available while held, never the reverse.
        Such a bike is only corrected when two passes in a row see it.

        :return: The ids of the bikes that were corrected.
        """
        fleet = await self._fleet()
        held = await self._held()

        corrected = []
        suspects = set()

        for bike in fleet:
            should_be_available = bike.id not in held
            if bike.is_available == should_be_available:
                continue

            if bike.is_available and bike.id not in self._suspects:
                suspects.add(bike.id)
                continue

            directory = self._rental_manager.directory
            if await directory.set_availability(bike.id, should_be_available, expected=bike.is_available):
                corrected.append(bike.id)
                self.failures.pop(bike.id, None)

        self._suspects = suspects

        if corrected:
            logger.warning("Reconciled the availability of bikes %s", ", ".join(str(x) for x in corrected))
        return corrected

    async def _fleet(self) -> List[Bike]:
        return await Bike.filter(in_circulation=True).order_by("id")

    async def _held(self) -> Set[int]:
        """The ids of the bikes held by an active booking."""
        return set(await Booking.filter(
            status=BookingStatus.ACTIVE, end_time__isnull=True
        ).values_list("bike_id", flat=True))

    async def _rebuild(self):
        await self.reconcile()

    def _release_failed(self, booking, bike_id):
        self.failures[bike_id] += 1
        logger.warning("Bike %s awaits reconciliation after booking %s", bike_id, booking.id)
