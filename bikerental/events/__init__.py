"""
.. autoclasstree:: bikerental.events

This module provides a simple event system. It is centered around the use of hubs.
A hub is created by passing a number of event lists in. These event lists provide
typed callback signatures which subscribers can use to implement their handlers.

>>> class BookingEvents(EventList):
>>>     @staticmethod
>>>     def booking_opened(booking_id: int):
>>>         "A booking was opened."
>>>
>>> def booking_handler(booking_id):
>>>     print(f"New booking: {booking_id}")
>>>
>>> hub = EventHub(BookingEvents)
>>> hub.subscribe(BookingEvents.booking_opened, booking_handler)
>>> hub.emit(BookingEvents.booking_opened, 12)
New booking: 12

Hubs can be also be globally attached to classes with a decorator.
"""

from .event_hub import EventHub
from .event_list import EventList
from .exceptions import NoSuchEventError, NoSuchListenerError, InvalidHandlerError
