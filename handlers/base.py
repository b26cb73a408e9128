"""
Base handler

Shared JSON envelopes, request parsing and access to app components and
the caller's session.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from aiohttp import web

from exceptions import ConsoleException, field_errors_of, http_status_for


class BaseHandler:
    """Base class for console handlers"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def success_response(self, data: Any = None, message: str = "OK", status: int = 200,
                         notifications: Optional[list] = None) -> web.Response:
        response_data = {
            'success': True,
            'data': data,
            'message': message,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }
        if notifications is not None:
            response_data['notifications'] = notifications

        return web.json_response(response_data, status=status)

    def error_response(self, message: str, code: int = 400, error_code: str = None,
                       notifications: Optional[list] = None, **extra: Any) -> web.Response:
        response_data = {
            'success': False,
            'error': message,
            'error_code': error_code,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }
        response_data.update(extra)
        if notifications is not None:
            response_data['notifications'] = notifications

        return web.json_response(response_data, status=code)

    def exception_response(self, request: web.Request, exc: ConsoleException) -> web.Response:
        """Error body for a console exception, with the caller's notifications."""
        return self.error_response(
            exc.message,
            http_status_for(exc),
            exc.error_code,
            notifications=self.drain_notifications(request),
            field_errors=field_errors_of(exc),
        )

    async def get_request_json(self, request: web.Request) -> Any:
        """Decode a JSON body; an empty body yields ``None``.

        Raises:
            web.HTTPBadRequest: malformed JSON
        """
        if not request.can_read_body:
            return None
        try:
            text = await request.text()
        except (ConnectionError, UnicodeDecodeError) as e:
            self.logger.error(f"Error reading request data: {e}")
            raise web.HTTPBadRequest(text="Error reading request data")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            self.logger.error(f"JSON decode error: {e}")
            raise web.HTTPBadRequest(text="Invalid JSON format")

    def get_query_params(self, request: web.Request) -> Dict[str, str]:
        return dict(request.query)

    def get_app_component(self, request: web.Request, component_name: str) -> Any:
        app = request.app
        if component_name not in app:
            self.logger.error(f"Component '{component_name}' not found in app")
            raise web.HTTPInternalServerError(text=f"Component '{component_name}' not available")

        return app[component_name]

    def get_session(self, request: web.Request):
        session = request.get('session')
        if session is None:
            raise web.HTTPUnauthorized(text="Authentication required")
        return session

    def drain_notifications(self, request: web.Request) -> list:
        session = request.get('session')
        return session.notifications.drain() if session is not None else []
