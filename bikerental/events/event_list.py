"""
Event List
----------

An event list groups the events a service may emit. Each event is a static
method whose signature is the contract its handlers must accept.
"""
from typing import Callable, Dict


class EventListMeta(type):

    def __contains__(cls, event: Callable):
        """Checks that the event itself, not just one with the same name, is on the list."""
        return cls.events().get(getattr(event, "__name__", None)) is event

    def events(cls) -> Dict[str, Callable]:
        """The events on the list, by name."""
        return {
            name: getattr(cls, name) for name, value in vars(cls).items()
            if not name.startswith("_") and isinstance(value, staticmethod)
        }


class EventList(metaclass=EventListMeta):
    """
    Subclass to declare a set of events:

    >>> class RentalEvent(EventList):
    >>>     @staticmethod
    >>>     def rental_started(booking):
    >>>         "A new rental was started."
    """
