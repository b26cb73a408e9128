"""Authentication and session routes."""

from aiohttp import web
from aiohttp_cors import CorsConfig

from handlers.auth import AuthHandler


def setup_auth_routes(app: web.Application, cors: CorsConfig = None):
    handler = AuthHandler()
    app['auth_handler'] = handler

    for path, method in (
        ('/login', handler.login),
        ('/register', handler.register),
        ('/forgot-password', handler.forgot_password),
        ('/reset-password', handler.reset_password),
        ('/logout', handler.logout),
        ('/api/v1/session/refresh', handler.refresh),
    ):
        route = app.router.add_post(path, method)
        if cors:
            cors.add(route)

    route = app.router.add_get('/api/v1/me', handler.me)
    if cors:
        cors.add(route)

    route = app.router.add_get('/login', handler.login_page)
    if cors:
        cors.add(route)
