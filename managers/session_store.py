"""
Session store

Process-wide, in-memory map of console sessions. Each session carries the
backend tokens, the user profile, its notification queue and any open
delete confirmation dialogs.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional, Any, Set, Tuple

from config import ConsoleConfig
from managers.notification_center import NotificationCenter
from models import AuthSnapshot, PendingDeletion, UserProfile


@dataclass
class SessionContext:
    session_id: str
    token: str
    user: UserProfile
    refresh_token: Optional[str] = None
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    pending_deletions: Dict[Tuple[str, str], PendingDeletion] = field(default_factory=dict)
    in_flight: Set[Tuple[str, str, str]] = field(default_factory=set)
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_seen: datetime = field(default_factory=datetime.utcnow)

    def touch(self):
        self.last_seen = datetime.utcnow()

    def snapshot(self) -> AuthSnapshot:
        return AuthSnapshot(is_loading=False, is_authenticated=True, user=self.user)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user': self.user.to_dict(),
            'created_at': self.created_at.isoformat() + 'Z',
            'last_seen': self.last_seen.isoformat() + 'Z',
            'pending_notifications': len(self.notifications),
        }


class SessionStore:
    """In-memory session registry with idle expiry"""

    def __init__(self, config: ConsoleConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._sessions: Dict[str, SessionContext] = {}
        self._ttl = timedelta(seconds=config.session.ttl_seconds)

    def init_session(self, token: str, user: UserProfile,
                     refresh_token: Optional[str] = None) -> SessionContext:
        session_id = secrets.token_urlsafe(32)
        context = SessionContext(
            session_id=session_id,
            token=token,
            user=user,
            refresh_token=refresh_token,
            notifications=NotificationCenter(self.config.session.max_notifications),
        )
        self._sessions[session_id] = context
        self.logger.info(f"Session opened for {user.email} ({user.role.value})")
        return context

    def get(self, session_id: Optional[str]) -> Optional[SessionContext]:
        """Live session for ``session_id``; expired sessions are dropped."""
        if not session_id:
            return None
        context = self._sessions.get(session_id)
        if context is None:
            return None
        if datetime.utcnow() - context.last_seen > self._ttl:
            self.logger.info(f"Session for {context.user.email} expired")
            self.teardown(session_id)
            return None
        context.touch()
        return context

    def update_user(self, session_id: str, user: UserProfile) -> Optional[SessionContext]:
        context = self._sessions.get(session_id)
        if context is not None:
            context.user = user
        return context

    def update_tokens(self, session_id: str, token: str,
                      refresh_token: Optional[str] = None) -> Optional[SessionContext]:
        context = self._sessions.get(session_id)
        if context is not None:
            context.token = token
            if refresh_token:
                context.refresh_token = refresh_token
        return context

    def teardown(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        return self._sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        now = datetime.utcnow()
        expired = [sid for sid, ctx in self._sessions.items() if now - ctx.last_seen > self._ttl]
        for sid in expired:
            self._sessions.pop(sid, None)
        if expired:
            self.logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def clear(self):
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
