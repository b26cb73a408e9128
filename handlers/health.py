"""
Health, service info and notification handlers
"""

import time
from datetime import datetime

from aiohttp import web

from api_info import get_api_info
from handlers.base import BaseHandler


class HealthHandler(BaseHandler):
    """Liveness and component status"""

    def __init__(self):
        super().__init__()
        self.start_time = time.time()

    async def health_check(self, request: web.Request) -> web.Response:
        config = request.app.get('config')
        session_store = request.app.get('session_store')
        http_client = request.app.get('http_client')

        health_data = {
            'status': 'healthy',
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'uptime': time.time() - self.start_time,
            'version': get_api_info()['version'],
            'environment': config.environment if config else 'unknown',
            'components': {
                'sessions': len(session_store) if session_store is not None else 0,
                'backend': http_client.get_statistics() if http_client is not None else None,
            },
        }

        return self.success_response(health_data)

    async def api_info(self, request: web.Request) -> web.Response:
        return self.success_response(get_api_info())


class NotificationHandler(BaseHandler):
    """Explicit drain of the caller's notification queue"""

    async def drain(self, request: web.Request) -> web.Response:
        self.get_session(request)
        return self.success_response(self.drain_notifications(request))
