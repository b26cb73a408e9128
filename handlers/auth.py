"""Login, registration and session handlers."""

from __future__ import annotations

from datetime import datetime
from urllib.parse import quote

from aiohttp import web

from auth_service import AuthError
from handlers.base import BaseHandler
from route_guard import landing_route


def _safe_redirect(target: str | None) -> str | None:
    # same-site paths only
    if not target or not target.startswith("/") or target.startswith(("//", "/\\")):
        return None
    return target


class AuthHandler(BaseHandler):
    """Handle /login, /register, /logout and the session endpoints."""

    def _auth_error(self, exc: AuthError) -> web.Response:
        return web.json_response(
            {
                "success": False,
                "error": exc.message,
                "error_code": exc.code,
                "timestamp": datetime.utcnow().isoformat() + "Z",
            },
            status=exc.status,
        )

    def _set_cookie(self, request: web.Request, response: web.Response, session_id: str):
        config = self.get_app_component(request, "config")
        response.set_cookie(
            config.session.cookie_name,
            session_id,
            max_age=config.session.ttl_seconds,
            httponly=True,
            samesite="Lax",
            secure=not config.service.debug,
        )

    async def login_page(self, request: web.Request) -> web.Response:
        """Tell an anonymous caller to sign in and where they will land afterwards."""
        config = self.get_app_component(request, "config")
        redirect = _safe_redirect(request.query.get("redirect"))
        login_url = config.session.login_path
        if redirect:
            login_url = f"{login_url}?redirect={quote(redirect, safe='/')}"
        return self.success_response(
            {
                "login_required": True,
                "redirect": redirect,
                "login_url": login_url,
                "register_url": "/register",
                "forgot_password_url": "/forgot-password",
            },
            "Please sign in to continue",
        )

    async def login(self, request: web.Request) -> web.Response:
        payload = await self.get_request_json(request)
        if not isinstance(payload, dict):
            return self.error_response("Request body must be a JSON object", 400)

        auth_service = self.get_app_component(request, "auth_service")
        try:
            context = await auth_service.login(
                str(payload.get("email") or "").strip(),
                str(payload.get("password") or ""),
            )
        except AuthError as exc:
            return self._auth_error(exc)

        redirect_to = _safe_redirect(request.query.get("redirect")) or landing_route(context.user.role)
        response = self.success_response(
            {
                "session_id": context.session_id,
                "user": context.user.to_dict(),
                "redirect_to": redirect_to,
            },
            "Login successful",
        )
        self._set_cookie(request, response, context.session_id)
        return response

    async def register(self, request: web.Request) -> web.Response:
        payload = await self.get_request_json(request)
        if not isinstance(payload, dict):
            return self.error_response("Request body must be a JSON object", 400)

        auth_service = self.get_app_component(request, "auth_service")
        try:
            data = await auth_service.register(payload)
        except AuthError as exc:
            return self._auth_error(exc)

        config = self.get_app_component(request, "config")
        return self.success_response(
            {"user": data, "redirect_to": config.session.login_path},
            "Registration successful",
            status=201,
        )

    async def forgot_password(self, request: web.Request) -> web.Response:
        payload = await self.get_request_json(request) or {}
        auth_service = self.get_app_component(request, "auth_service")
        try:
            message = await auth_service.request_password_reset(str(payload.get("email") or "").strip())
        except AuthError as exc:
            return self._auth_error(exc)
        return self.success_response(None, message or "Password reset email sent")

    async def reset_password(self, request: web.Request) -> web.Response:
        payload = await self.get_request_json(request) or {}
        auth_service = self.get_app_component(request, "auth_service")
        try:
            message = await auth_service.reset_password(
                str(payload.get("token") or ""),
                str(payload.get("password") or ""),
            )
        except AuthError as exc:
            return self._auth_error(exc)
        config = self.get_app_component(request, "config")
        return self.success_response({"redirect_to": config.session.login_path},
                                     message or "Password reset successful")

    async def logout(self, request: web.Request) -> web.Response:
        auth_service = self.get_app_component(request, "auth_service")
        config = self.get_app_component(request, "config")
        await auth_service.logout(request.get("session_id"))
        response = self.success_response({"redirect_to": config.session.login_path}, "Logged out")
        response.del_cookie(config.session.cookie_name)
        return response

    async def refresh(self, request: web.Request) -> web.Response:
        auth_service = self.get_app_component(request, "auth_service")
        try:
            context = await auth_service.refresh_tokens(request.get("session_id"))
        except AuthError as exc:
            return self._auth_error(exc)
        return self.success_response({"user": context.user.to_dict()}, "Session refreshed")

    async def me(self, request: web.Request) -> web.Response:
        session = self.get_session(request)
        user = session.user
        if request.query.get("refresh") in ("1", "true"):
            auth_service = self.get_app_component(request, "auth_service")
            try:
                user = await auth_service.refresh_profile(session.session_id) or user
            except AuthError as exc:
                return self._auth_error(exc)
        data = user.to_dict()
        data["landing_route"] = landing_route(user.role)
        return self.success_response(data)
