"""
HR console application factory

Builds the aiohttp application and wires the console components onto it.
"""

import asyncio
import logging
from typing import Optional

from aiohttp import web
from aiohttp_cors import setup as cors_setup, ResourceOptions

from adapters.http_client import HttpClient
from auth_service import AuthService
from config import ConsoleConfig
from managers.session_store import SessionStore
from middleware import setup_middleware
from route_guard import RouteGuard
from routes import setup_routes

logger = logging.getLogger(__name__)

SESSION_PURGE_INTERVAL = 300


async def create_app(config: ConsoleConfig, http_client: Optional[HttpClient] = None) -> web.Application:
    """Create the console application.

    Args:
        config: console configuration
        http_client: backend client to use instead of a new one, mainly for tests

    Returns:
        web.Application: configured application
    """
    logger.info("Creating HR console application")

    app = web.Application()
    app['config'] = config

    origins = [o.strip() for o in config.service.cors_origins.split(',') if o.strip()] or ['*']
    cors = cors_setup(app, defaults={
        origin: ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*"
        )
        for origin in origins
    })

    setup_middleware(app)
    setup_routes(app, cors)

    init_components(app, config, http_client)

    app.on_startup.append(startup_handler)
    app.on_cleanup.append(cleanup_handler)

    logger.info("HR console application created")
    return app


def init_components(app: web.Application, config: ConsoleConfig,
                    http_client: Optional[HttpClient] = None):
    app['http_client'] = http_client or HttpClient(config)
    app['session_store'] = SessionStore(config)
    app['auth_service'] = AuthService(config, app['http_client'], app['session_store'])
    app['route_guard'] = RouteGuard(login_path=config.session.login_path)

    logger.info("Console components initialized")


async def _purge_sessions(app: web.Application):
    store = app['session_store']
    while True:
        await asyncio.sleep(SESSION_PURGE_INTERVAL)
        store.purge_expired()


async def startup_handler(app: web.Application):
    logger.info(f"Connecting to HR backend at {app['config'].backend.api_base_url}")
    await app['http_client'].start()
    app['session_purge_task'] = asyncio.create_task(_purge_sessions(app))


async def cleanup_handler(app: web.Application):
    logger.info("Stopping HR console components")

    task = app.get('session_purge_task')
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await app['http_client'].stop()
    app['session_store'].clear()
