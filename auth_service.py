"""Console authentication: backend login, session lifecycle and JWT inspection."""

from __future__ import annotations

import base64
import json
import logging
import time
from typing import Any, Dict, Optional

from adapters.http_client import HttpClient
from adapters.response_unwrapper import extract_message, is_business_failure, unwrap
from config import ConsoleConfig
from exceptions import ConnectionException, HTTPStatusException, RequestTimeoutException, TransportException
from managers.session_store import SessionContext, SessionStore
from models import UserProfile

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER_SECONDS = 300


class AuthError(RuntimeError):
    def __init__(self, message: str, status: int = 401, code: str = "AUTH_ERROR"):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


def _b64url_decode(raw: str) -> bytes:
    padding = "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode((raw + padding).encode("ascii"))


def _token_payload(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def is_valid_token(token: Optional[str]) -> bool:
    """Structural JWT check: three dot-separated segments."""
    return bool(token) and len(token.split(".")) == 3


def get_token_expiry(token: Optional[str]) -> Optional[int]:
    payload = _token_payload(token)
    if not payload:
        return None
    exp = payload.get("exp")
    try:
        return int(exp) if exp else None
    except (TypeError, ValueError):
        return None


def is_token_expired(token: Optional[str], buffer_seconds: int = TOKEN_EXPIRY_BUFFER_SECONDS,
                     now: Optional[float] = None) -> bool:
    """True when the token is unreadable, has no ``exp``, or expires within the buffer."""
    exp = get_token_expiry(token)
    if exp is None:
        return True
    current = int(now if now is not None else time.time())
    return current >= exp - buffer_seconds


def _extract_tokens(raw: Any) -> Dict[str, Any]:
    data = unwrap(raw)
    if data is None and isinstance(raw, dict):
        data = raw
    if not isinstance(data, dict):
        return {}
    return {
        "token": data.get("token") or data.get("accessToken") or data.get("access_token"),
        "refresh_token": data.get("refreshToken") or data.get("refresh_token"),
        "user": data.get("user") if isinstance(data.get("user"), dict) else None,
    }


class AuthService:
    """Login/logout against the HR backend and session bookkeeping."""

    def __init__(self, config: ConsoleConfig, http: HttpClient, store: SessionStore):
        self._config = config
        self._http = http
        self._store = store
        self._buffer = int(config.session.token_expiry_buffer_seconds)

    @property
    def store(self) -> SessionStore:
        return self._store

    @staticmethod
    def _auth_error(exc: TransportException, fallback: str) -> AuthError:
        if isinstance(exc, HTTPStatusException):
            status = exc.status if exc.status in (400, 401, 403, 409, 422) else 502
            return AuthError(exc.server_message or fallback, status, "AUTH_REJECTED")
        if isinstance(exc, (ConnectionException, RequestTimeoutException)):
            return AuthError("Unable to reach the HR service", 503, "BACKEND_UNAVAILABLE")
        return AuthError(fallback, 502, "AUTH_ERROR")

    async def _fetch_profile(self, token: str) -> UserProfile:
        raw = await self._http.get("/auth/me", token=token)
        if is_business_failure(raw):
            raise AuthError(extract_message(raw, "Failed to load user profile"), 401, "PROFILE_ERROR")
        data = unwrap(raw)
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        if not isinstance(data, dict):
            raise AuthError("Failed to load user profile", 502, "PROFILE_ERROR")
        return UserProfile.from_payload(data)

    async def login(self, email: str, password: str) -> SessionContext:
        if not email or not password:
            raise AuthError("Email and password are required", 400, "INVALID_CREDENTIALS")

        try:
            raw = await self._http.post("/auth/login", {"email": email, "password": password})
        except TransportException as e:
            logger.warning(f"Login for {email} failed: {e.message}")
            raise self._auth_error(e, "Login failed") from e

        if is_business_failure(raw):
            raise AuthError(extract_message(raw, "Login failed"), 401, "AUTH_REJECTED")

        tokens = _extract_tokens(raw)
        token = tokens.get("token")
        if not is_valid_token(token):
            raise AuthError("Login response did not include a token", 502, "INVALID_TOKEN")

        try:
            user = await self._fetch_profile(token)
        except TransportException as e:
            raise self._auth_error(e, "Failed to load user profile") from e

        context = self._store.init_session(token, user, tokens.get("refresh_token"))
        logger.info(f"User {user.email} logged in as {user.role.value}")
        return context

    async def register(self, payload: Dict[str, Any]) -> Any:
        if not isinstance(payload, dict) or not payload.get("email") or not payload.get("password"):
            raise AuthError("Email and password are required", 400, "INVALID_REGISTRATION")
        try:
            raw = await self._http.post("/auth/register", payload)
        except TransportException as e:
            raise self._auth_error(e, "Registration failed") from e
        if is_business_failure(raw):
            raise AuthError(extract_message(raw, "Registration failed"), 400, "REGISTRATION_REJECTED")
        return unwrap(raw)

    async def request_password_reset(self, email: str) -> Optional[str]:
        if not email:
            raise AuthError("Email is required", 400, "INVALID_REQUEST")
        try:
            raw = await self._http.post("/auth/forgot-password", {"email": email})
        except TransportException as e:
            raise self._auth_error(e, "Failed to send reset email") from e
        if is_business_failure(raw):
            raise AuthError(extract_message(raw, "Failed to send reset email"), 400, "RESET_REJECTED")
        return extract_message(raw)

    async def reset_password(self, token: str, password: str) -> Optional[str]:
        if not token or not password:
            raise AuthError("Token and password are required", 400, "INVALID_REQUEST")
        try:
            raw = await self._http.post("/auth/reset-password", {"token": token, "password": password})
        except TransportException as e:
            raise self._auth_error(e, "Failed to reset password") from e
        if is_business_failure(raw):
            raise AuthError(extract_message(raw, "Failed to reset password"), 400, "RESET_REJECTED")
        return extract_message(raw)

    async def logout(self, session_id: Optional[str]) -> bool:
        context = self._store.get(session_id)
        if context is not None:
            try:
                await self._http.post("/auth/logout", {}, token=context.token)
            except TransportException as e:
                # local teardown still happens
                logger.warning(f"Backend logout failed for {context.user.email}: {e.message}")
        return self._store.teardown(session_id)

    def resolve_session(self, session_id: Optional[str]) -> Optional[SessionContext]:
        """Live session whose token is structurally valid and not about to expire."""
        context = self._store.get(session_id)
        if context is None:
            return None
        if not is_valid_token(context.token) or is_token_expired(context.token, self._buffer):
            logger.info(f"Token for {context.user.email} expired, closing session")
            self._store.teardown(session_id)
            return None
        return context

    async def refresh_tokens(self, session_id: Optional[str]) -> SessionContext:
        context = self.resolve_session(session_id)
        if context is None:
            raise AuthError("Session expired", 401, "SESSION_EXPIRED")
        if not context.refresh_token:
            raise AuthError("No refresh token for this session", 400, "REFRESH_UNAVAILABLE")
        try:
            raw = await self._http.post("/auth/refresh", {"refreshToken": context.refresh_token})
        except TransportException as e:
            raise self._auth_error(e, "Failed to refresh session") from e
        tokens = _extract_tokens(raw)
        if is_business_failure(raw) or not is_valid_token(tokens.get("token")):
            raise AuthError(extract_message(raw, "Failed to refresh session"), 401, "REFRESH_REJECTED")
        self._store.update_tokens(context.session_id, tokens["token"], tokens.get("refresh_token"))
        return context

    async def refresh_profile(self, session_id: Optional[str]) -> Optional[UserProfile]:
        context = self.resolve_session(session_id)
        if context is None:
            return None
        try:
            user = await self._fetch_profile(context.token)
        except TransportException as e:
            logger.warning(f"Profile refresh for {context.user.email} failed: {e.message}")
            return context.user
        self._store.update_user(context.session_id, user)
        return user
