"""
Base
------------------------

The view every route extends. It knows how to register itself on the app,
enable CORS for itself, and who is calling it.
"""

from typing import Optional

from aiohttp.abc import Application
from aiohttp.web import View, AbstractRoute
from aiohttp_cors import CorsConfig, CorsViewMixin, ResourceOptions

from bikerental.models import User
from bikerental.service.access.users import get_user
from bikerental.service.background.reconciler import AvailabilityReconciler
from bikerental.service.manager.rental_manager import RentalManager


class ViewConfigurationError(Exception):
    """Raised when a view is missing its url, or is set up out of order."""


class BaseView(View, CorsViewMixin):
    """
    :cvar url: The path of the view, relative to the api root.
    :cvar name: The name to look the route up by, when linking to it.
    """

    url: str
    name: Optional[str] = None
    route: AbstractRoute
    rental_manager: RentalManager
    reconciler: AvailabilityReconciler

    cors_config = {
        "*": ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*",
        )
    }

    @classmethod
    def register_route(cls, app: Application, base: Optional[str] = None):
        """
        Adds the view to the router of the app, and hands it the services on the app.

        :raises ViewConfigurationError: If the view has no url.
        """
        if not hasattr(cls, "url"):
            raise ViewConfigurationError(f"{cls.__name__} has no url.")

        path = cls.url if base is None else base + cls.url
        cls.route = app.router.add_view(path, cls, **({"name": cls.name} if cls.name else {}))
        cls.rental_manager = app["rental_manager"]
        cls.reconciler = app["reconciler"]

    @classmethod
    def enable_cors(cls, cors: CorsConfig):
        """:raises ViewConfigurationError: If the view has not been registered yet."""
        if not hasattr(cls, "route"):
            raise ViewConfigurationError(f"{cls.__name__} must be registered before enabling cors.")
        cors.add(cls.route, webview=True)

    async def caller(self) -> Optional[User]:
        """The user whose token is on the request, if any."""
        token = self.request.get("token")
        return await get_user(user_id=token) if token is not None else None

    async def caller_is_admin(self) -> bool:
        caller = await self.caller()
        return caller is not None and caller.is_admin
