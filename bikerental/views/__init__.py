"""
.. autoclasstree:: bikerental.views

The http api for browsing the fleet, and for starting, looking up
and ending rentals. All routes live under ``/api/v1``.

- resources are nouns (``/bikes``, ``/rentals``, ``/users``), and actions
  on a rental are sub resources (``/rentals/{id}/complete``)
- bodies and query strings are JSON and snake_case
- every response except a 204 is a JSend envelope
- ``/users/me`` redirects to the user the token belongs to
"""

import aiohttp_cors
from aiohttp.abc import Application

from bikerental import logger
from .base import BaseView
from .bikes import BikeView, BikesView, BikeAvailabilityView, BikeRentalsView
from .rentals import RentalView, RentalsView, RentalCompleteView, RentalCancelView
from .users import UserView, UsersView, UserRentalsView, UserCurrentRentalView, UserStatsView, MeView

views = [
    BikeView, BikesView, BikeAvailabilityView, BikeRentalsView,
    RentalView, RentalsView, RentalCompleteView, RentalCancelView,
    MeView, UserView, UsersView, UserRentalsView, UserCurrentRentalView, UserStatsView,
]


def register_views(app: Application, base: str):
    """
    Registers the views on the app under the base url, with CORS enabled.

    :param app: The app to register the views to.
    :param base: The root url of the api.
    """
    cors = aiohttp_cors.setup(app, defaults=BaseView.cors_config)

    for view in views:
        view.register_route(app, base)
        view.enable_cors(cors)
        logger.info("Registered %s at %s", view.__name__, base + view.url)
