"""
Payload validators
"""

from .payload_validator import PayloadValidator, FieldRule

__all__ = [
    'PayloadValidator',
    'FieldRule'
]
