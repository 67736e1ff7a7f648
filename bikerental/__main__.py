"""
The primary entry point to the application, with a monitor attached to the loop.
"""
import aiomonitor
from aiohttp import web

from bikerental import logger
from bikerental.app import build_app
from bikerental.cli import new_loop
from bikerental.version import __version__, name

if __name__ == '__main__':
    logger.info('Starting %s %s!', name, __version__)
    app = build_app()

    loop = new_loop()
    aiomonitor.start_monitor(loop=loop, locals={"app": app})
    web.run_app(app, loop=loop)
