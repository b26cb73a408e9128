"""
Shared test fixtures
"""

import asyncio
import base64
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from config import ConsoleConfig
from interfaces import IResourceGateway
from managers.notification_center import NotificationCenter


def make_jwt(exp_offset: int = 3600, **claims) -> str:
    """Unsigned JWT with ``exp`` relative to now."""
    def _segment(data: Dict[str, Any]) -> str:
        raw = json.dumps(data).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    payload = {"sub": "user-1", "exp": int(time.time()) + exp_offset}
    payload.update(claims)
    return f"{_segment({'alg': 'HS256', 'typ': 'JWT'})}.{_segment(payload)}.signature"


class FakeGateway(IResourceGateway):
    """Records calls; ``responses`` maps operation name to a value, exception or callable."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = responses or {}
        self.calls = []

    async def _answer(self, operation: str, *args):
        self.calls.append((operation,) + args)
        result = self.responses.get(operation)
        if callable(result):
            result = result(*args)
        if asyncio.iscoroutine(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    async def list(self, params=None):
        return await self._answer('list', params)

    async def get(self, entity_id):
        return await self._answer('get', entity_id)

    async def create(self, payload):
        return await self._answer('create', payload)

    async def update(self, entity_id, payload):
        return await self._answer('update', entity_id, payload)

    async def delete(self, entity_id):
        return await self._answer('delete', entity_id)

    async def transition(self, entity_id, name, payload=None):
        return await self._answer('transition', entity_id, name, payload)


@pytest.fixture
def console_config(monkeypatch) -> ConsoleConfig:
    for var in ('HR_API_BASE_URL', 'HR_ITEMS_PER_PAGE', 'HR_CLEAR_ON_ERROR', 'LOG_LEVEL'):
        monkeypatch.delenv(var, raising=False)
    config = ConsoleConfig(environment="testing")
    config.backend.retry_delay = 0
    config.backend.fetch_timeout = 5.0
    config.service.debug = True
    return config


@pytest.fixture
def notifier() -> NotificationCenter:
    return NotificationCenter(max_items=20)


@pytest.fixture
def gateway_factory():
    return FakeGateway


@pytest.fixture
def jwt_factory():
    return make_jwt
