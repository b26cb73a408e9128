"""
Health, info and notification routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.health import HealthHandler, NotificationHandler


def setup_health_routes(app: web.Application, cors: CorsConfig = None):
    health_handler = HealthHandler()
    notification_handler = NotificationHandler()

    app['health_handler'] = health_handler

    route = app.router.add_get('/health', health_handler.health_check)
    if cors:
        cors.add(route)

    route = app.router.add_get('/api/v1/info', health_handler.api_info)
    if cors:
        cors.add(route)

    route = app.router.add_get('/api/v1/notifications', notification_handler.drain)
    if cors:
        cors.add(route)
