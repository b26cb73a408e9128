"""Route guard middleware for console pages."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from aiohttp import web
from aiohttp.web_middlewares import middleware

from models import AuthSnapshot, GuardState

logger = logging.getLogger(__name__)


def session_id_from_request(request: web.Request) -> Optional[str]:
    config = request.app.get("config")
    cookie_name = config.session.cookie_name if config else "hr_console_session"
    session_id = request.cookies.get(cookie_name)
    if session_id:
        return session_id
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


@middleware
async def route_guard_middleware(request: web.Request, handler: Callable) -> web.StreamResponse:
    if request.method.upper() == "OPTIONS":
        return await handler(request)

    auth_service = request.app.get("auth_service")
    guard = request.app.get("route_guard")
    if auth_service is None or guard is None:
        raise web.HTTPInternalServerError(text="Route guard not initialized")

    session_id = session_id_from_request(request)
    try:
        context = auth_service.resolve_session(session_id)
    except Exception as exc:
        # resolution is not retried; the caller continues as anonymous
        logger.error(f"Session resolution failed: {exc}")
        context = None

    snapshot = context.snapshot() if context is not None else AuthSnapshot()
    request["session"] = context
    request["session_id"] = context.session_id if context is not None else None
    request["auth"] = snapshot

    decision = guard.evaluate(request.path, snapshot, target=request.path_qs)
    request["guard"] = decision

    if decision.state == GuardState.CHECKING:
        return web.json_response({"success": True, "data": decision.to_dict()})

    if decision.redirect_to:
        logger.debug(f"{decision.state.value}: {request.path} -> {decision.redirect_to}")
        raise web.HTTPFound(decision.redirect_to)

    return await handler(request)
