"""
Console utilities
"""

from .async_utils import (
    gather_with_concurrency,
    AsyncTimer
)

__all__ = [
    'gather_with_concurrency',
    'AsyncTimer'
]
