"""
The entry point for the CLI tool
"""
import asyncio

from aiohttp import web

from bikerental import logger
from bikerental.app import build_app
from bikerental.config import server_mode
from bikerental.version import __version__, name


def new_loop():
    """Creates the loop the server runs on, in debug mode outside production."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    loop.set_debug(server_mode == "development" or server_mode == "testing")
    return loop


def run():
    """Builds the app and runs it."""
    logger.info('Starting %s %s!', name, __version__)
    app = build_app()
    web.run_app(app, loop=new_loop())


if __name__ == '__main__':
    run()
