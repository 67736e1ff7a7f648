"""
The models package contains all the models used on the server.

.. autoclasstree:: bikerental.models
"""

from .bike import Bike
from .booking import Booking, BookingClaim
from .user import User
