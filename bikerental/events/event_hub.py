"""
Event Hub
---------

Routes emitted events to their subscribers.
"""

from collections import defaultdict
from inspect import signature
from typing import Callable, Dict, List, Type

from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError


class BoundEvent:
    """
    An event accessed through a hub. Supports the natural syntax:

    >>> hub.booking_opened += handler
    >>> hub.booking_opened(12)
    """

    def __init__(self, hub: 'EventHub', event: Callable):
        self.hub = hub
        self.event = event

    def __iadd__(self, handler):
        self.hub.subscribe(self.event, handler)
        return self

    def __isub__(self, handler):
        self.hub.unsubscribe(self.event, handler)
        return self

    def __call__(self, *args, **kwargs):
        self.hub.emit(self.event, *args, **kwargs)


class EventHub:
    """Holds the subscribers for every event in the given event lists."""

    def __init__(self, *event_lists: Type[EventList]):
        self._event_lists: List[Type[EventList]] = []
        self._listeners: Dict[Callable, List[Callable]] = defaultdict(list)
        self.add_events(*event_lists)

    def add_events(self, *event_lists: Type[EventList]):
        for event_list in event_lists:
            if event_list not in self._event_lists:
                self._event_lists.append(event_list)

    def __contains__(self, item):
        if isinstance(item, type) and issubclass(item, EventList):
            return item in self._event_lists
        return any(item in event_list for event_list in self._event_lists)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        for event_list in self._event_lists:
            if name in event_list.events():
                return BoundEvent(self, event_list.events()[name])
        raise NoSuchEventError(f"No event {name} on this hub.")

    def __setattr__(self, name, value):
        # the natural syntax rebinds the attribute after += and -=
        if isinstance(value, BoundEvent) and value.hub is self:
            return
        super().__setattr__(name, value)

    def subscribe(self, event, handler: Callable):
        """
        Subscribes a handler to an event.

        :raises NoSuchEventError: If the event is not on the hub.
        :raises InvalidHandlerError: If the handler cannot accept the event's arguments.
        """
        event = self._resolve(event)
        parameters = list(signature(event).parameters)
        try:
            signature(handler).bind(*parameters)
        except TypeError as error:
            raise InvalidHandlerError(f"{handler} does not match the signature of {event.__name__}.") from error
        self._listeners[event].append(handler)

    def unsubscribe(self, event, handler: Callable):
        """
        Removes a handler from an event.

        :raises NoSuchListenerError: If the handler was never subscribed.
        """
        event = event.event if isinstance(event, BoundEvent) else event
        try:
            self._listeners[event].remove(handler)
        except ValueError:
            raise NoSuchListenerError(f"{handler} is not subscribed to {event.__name__}.")

    def emit(self, event, *args, **kwargs):
        """Calls every handler of the event with the given arguments."""
        event = self._resolve(event)
        for handler in list(self._listeners[event]):
            handler(*args, **kwargs)

    def _resolve(self, event) -> Callable:
        if isinstance(event, BoundEvent):
            event = event.event
        if event not in self:
            raise NoSuchEventError(f"{event.__name__} is not on this hub.")
        return event
