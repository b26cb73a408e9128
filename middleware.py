"""
HR console middleware

Request id, request logging, security headers and error handling.
"""

import time
import uuid
import logging
import traceback
from datetime import datetime
from typing import Callable

from aiohttp import web
from aiohttp.web_middlewares import middleware

from auth_middleware import route_guard_middleware
from exceptions import ConsoleException, create_error_response, handle_exception, http_status_for

logger = logging.getLogger(__name__)


@middleware
async def request_id_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    """Tag each request with an id, reusing the caller's ``X-Request-ID``."""
    request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
    request['request_id'] = request_id

    try:
        response = await handler(request)
        response.headers['X-Request-ID'] = request_id
        return response
    except web.HTTPException as e:
        e.headers['X-Request-ID'] = request_id
        raise


@middleware
async def logging_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    start_time = time.time()
    request_id = request.get('request_id', 'unknown')

    logger.info(
        f"Request started - {request.method} {request.path} - "
        f"Remote: {request.remote} - "
        f"Request-ID: {request_id}"
    )

    try:
        response = await handler(request)
    except web.HTTPException as e:
        duration = time.time() - start_time
        logger.info(
            f"Request completed - {request.method} {request.path} - "
            f"Status: {e.status} - "
            f"Duration: {duration:.3f}s - "
            f"Request-ID: {request_id}"
        )
        e.headers['X-Response-Time'] = f"{duration:.3f}s"
        raise
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Request failed - {request.method} {request.path} - "
            f"Error: {str(e)} - "
            f"Duration: {duration:.3f}s - "
            f"Request-ID: {request_id}"
        )
        raise

    duration = time.time() - start_time
    logger.info(
        f"Request completed - {request.method} {request.path} - "
        f"Status: {response.status} - "
        f"Duration: {duration:.3f}s - "
        f"Request-ID: {request_id}"
    )
    response.headers['X-Response-Time'] = f"{duration:.3f}s"
    return response


@middleware
async def error_handling_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    """Convert uncaught exceptions to the standard ``{success: false}`` body."""
    request_id = request.get('request_id', 'unknown')

    try:
        return await handler(request)

    except web.HTTPException:
        raise

    except ConsoleException as e:
        logger.warning(
            f"{e.error_code} in {request.path} - {e.message} - Request-ID: {request_id}"
        )
        body = create_error_response(e)
        body['request_id'] = request_id
        return web.json_response(body, status=http_status_for(e))

    except Exception as e:
        wrapped = handle_exception(e, component="HRConsole", context={"path": request.path})
        logger.exception(
            f"Unhandled error in {request.path} - "
            f"Error: {wrapped.message} - "
            f"Request-ID: {request_id}"
        )

        error_response = {
            'success': False,
            'error': 'Internal server error',
            'error_type': type(e).__name__,
            'request_id': request_id,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }

        config = request.app.get('config')
        if config and config.service.debug:
            error_response['error_detail'] = wrapped.message
            error_response['traceback'] = traceback.format_exc()

        return web.json_response(error_response, status=500)


@middleware
async def security_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    response = await handler(request)

    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Cache-Control'] = 'no-store'

    return response


def setup_middleware(app: web.Application):
    """Install middleware; requests pass them top to bottom."""
    app.middlewares.append(error_handling_middleware)
    app.middlewares.append(request_id_middleware)
    app.middlewares.append(logging_middleware)
    app.middlewares.append(security_middleware)
    app.middlewares.append(route_guard_middleware)

    logger.info("Middleware setup completed")
