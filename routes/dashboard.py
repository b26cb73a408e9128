"""
Dashboard page routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.resources import ResourceHandler

AREA = '/dashboard/{area}'
COLLECTION = AREA + '/{resource}'
ENTITY = COLLECTION + '/{entity_id}'


def setup_dashboard_routes(app: web.Application, cors: CorsConfig = None):
    handler = ResourceHandler()
    app['resource_handler'] = handler

    routes = [
        app.router.add_get(AREA, handler.landing),
        app.router.add_get(COLLECTION, handler.list_view),
        app.router.add_post(COLLECTION, handler.create),
        app.router.add_get(ENTITY, handler.detail_view),
        app.router.add_put(ENTITY, handler.update),
        app.router.add_patch(ENTITY, handler.update),
        app.router.add_post(ENTITY + '/delete', handler.request_delete),
        app.router.add_post(ENTITY + '/delete/confirm', handler.confirm_delete),
        app.router.add_post(ENTITY + '/delete/cancel', handler.cancel_delete),
        app.router.add_post(ENTITY + '/actions/{action}', handler.transition),
    ]
    if cors:
        for route in routes:
            cors.add(route)
