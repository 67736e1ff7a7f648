"""
Services that keep their state in the database implement :class:`Rebuildable`,
and are brought up to date with it when the app starts.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from bikerental import logger


class Rebuildable(ABC):

    @abstractmethod
    async def _rebuild(self):
        """Brings the service up to date with the database."""


async def rebuild_all(services: Iterable):
    """Rebuilds each of the given services that is rebuildable, in order."""
    for service in services:
        if isinstance(service, Rebuildable):
            logger.debug("Rebuilding %s", type(service).__name__)
            await service._rebuild()
