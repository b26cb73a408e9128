"""
HR console routes
"""

from aiohttp import web
from aiohttp_cors import CorsConfig

from .health import setup_health_routes
from .auth import setup_auth_routes
from .dashboard import setup_dashboard_routes


def setup_routes(app: web.Application, cors: CorsConfig = None):
    setup_health_routes(app, cors)
    setup_auth_routes(app, cors)
    setup_dashboard_routes(app, cors)
