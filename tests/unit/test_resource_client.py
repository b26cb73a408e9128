import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from adapters.resource_client import RESOURCES, ResourceClient
from exceptions import UnsupportedOperationException


class RecordingHttp:
    def __init__(self):
        self.calls = []

    async def get(self, endpoint, params=None, token=None):
        self.calls.append(('GET', endpoint, params, token))
        return {"success": True, "data": []}


def test_scoped_collection_path_quotes_parent_id():
    spec = RESOURCES["documents"]
    assert spec.collection_path({"leaveRequestId": "lr 1/2"}) == "/documents/leave-request/lr%201%2F2"


def test_scoped_collection_path_requires_parent_id():
    with pytest.raises(ValueError):
        RESOURCES["documents"].collection_path({})


@pytest.mark.asyncio
async def test_scope_is_moved_from_query_into_path():
    http = RecordingHttp()
    client = ResourceClient(http, RESOURCES["documents"], token="tok")

    await client.list({"leaveRequestId": "lr-1"})

    assert http.calls == [('GET', '/documents/leave-request/lr-1', None, "tok")]


@pytest.mark.asyncio
async def test_fixed_list_params_are_merged():
    http = RecordingHttp()
    client = ResourceClient(http, RESOURCES["audit-logs"])

    await client.list()

    assert http.calls == [('GET', '/audit/security-events', {"limit": 500}, None)]


@pytest.mark.asyncio
async def test_read_only_resources_refuse_writes():
    client = ResourceClient(RecordingHttp(), RESOURCES["leave-balances"])
    with pytest.raises(UnsupportedOperationException):
        await client.create({"leaveType": "ANNUAL"})
    with pytest.raises(UnsupportedOperationException):
        await client.delete("b1")
