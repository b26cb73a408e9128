"""
HR console request handlers
"""

from handlers.auth import AuthHandler
from handlers.health import HealthHandler, NotificationHandler
from handlers.resources import ResourceHandler

__all__ = [
    'AuthHandler',
    'HealthHandler',
    'NotificationHandler',
    'ResourceHandler'
]
