"""
App
-----
"""

import sentry_sdk
import uvloop
from aiohttp import web
from aiohttp_apispec import setup_aiohttp_apispec
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from bikerental import logger
from bikerental.config import api_root, server_mode, sentry_dsn, database_url, reconcile_interval
from bikerental.middleware import validate_token_middleware, rental_error_middleware
from bikerental.service.background.reconciler import AvailabilityReconciler
from bikerental.service.manager.rental_manager import RentalManager
from bikerental.service.verify_token import DummyVerifier
from bikerental.signals import register_signals
from bikerental.version import __version__, name
from bikerental.views import register_views


def build_app(db_uri=None):
    """Sets up the app and installs uvloop."""
    app = web.Application(middlewares=[validate_token_middleware, rental_error_middleware])
    uvloop.install()

    app['rental_manager'] = RentalManager()
    app['reconciler'] = AvailabilityReconciler(app['rental_manager'], reconcile_interval)
    app['database_uri'] = db_uri if db_uri is not None else database_url
    app['token_verifier'] = DummyVerifier()

    # set up the background tasks
    register_signals(app)

    # register views
    register_views(app, api_root)

    setup_aiohttp_apispec(
        app=app, title=name, version=__version__, url=f"{api_root}/docs",
        components={
            "securitySchemes": {
                "BearerToken": {
                    "type": "http",
                    "description": "The identity issued by the authentication provider",
                    "scheme": "bearer",
                }
            }
        },
    )

    # set up sentry exception tracking
    if server_mode != "development" and sentry_dsn is not None:
        logger.info("Starting Sentry Logging")
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[AioHttpIntegration()],
            environment=server_mode,
            release=f"{name}@{__version__}"
        )

    return app
