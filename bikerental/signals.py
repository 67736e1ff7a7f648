"""
Signals
-------

The hooks run when the app starts and stops. Each signal accepts the ``app``.

On start up the database is opened, the services are rebuilt from it, and the
availability reconciler is started. On clean up the same happens in reverse.
"""
import asyncio
from contextlib import suppress

from aiohttp.abc import Application
from tortoise import Tortoise

from bikerental import logger
from bikerental.service.rebuildable import rebuild_all


async def initialize_database(app: Application):
    """Opens the database, creating the tables if they don't exist."""
    await Tortoise.init(
        db_url=app['database_uri'],
        modules={'models': ['bikerental.models']},
        use_tz=True,
    )
    await Tortoise.generate_schemas(safe=True)


async def close_database_connections(app: Application):
    await Tortoise.close_connections()


async def rebuild_services(app: Application):
    """Rebuilds the services on the app, which reconciles the fleet once."""
    await rebuild_all(app.values())


async def start_reconciler(app: Application):
    logger.info("Reconciling bike availability every %s seconds", app['reconciler'].interval)
    app['reconciler_task'] = asyncio.ensure_future(app['reconciler'].run())


async def stop_reconciler(app: Application):
    """Stops the reconciler, waiting for a pass in progress to be cancelled."""
    app['reconciler_task'].cancel()
    with suppress(asyncio.CancelledError):
        await app['reconciler_task']


def register_signals(app: Application, init_database=True):
    """
    Registers the signals on the app.

    :param init_database: Whether the app opens and closes the database itself.
    """
    if init_database:
        app.on_startup.append(initialize_database)

    app.on_startup.append(rebuild_services)
    app.on_startup.append(start_reconciler)

    app.on_cleanup.append(stop_reconciler)
    if init_database:
        app.on_cleanup.append(close_database_connections)
