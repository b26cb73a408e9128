"""
Console state managers

Session store, notification queue, entity fetching and query derivation.
"""

from .entity_fetcher import EntityFetcher
from .notification_center import NotificationCenter
from .query_engine import QueryEngine
from .session_store import SessionContext, SessionStore

__all__ = [
    'EntityFetcher',
    'NotificationCenter',
    'QueryEngine',
    'SessionContext',
    'SessionStore'
]
