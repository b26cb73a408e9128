"""
Backend adapters

HTTP transport, response unwrapping and per-resource clients. Import from
the concrete modules, e.g. ``from adapters.http_client import HttpClient``.
"""

__all__: list[str] = []
