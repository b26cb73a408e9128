import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pytest

from exceptions import ConnectionException, HTTPStatusException
from managers.entity_fetcher import EntityFetcher
from models import ErrorKind


class RecordingLoader:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def __call__(self, **params):
        self.calls.append(params)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.mark.asyncio
async def test_fetch_unwraps_envelope(notifier):
    loader = RecordingLoader({"success": True, "data": [{"id": 1}]})
    fetcher = EntityFetcher(loader, notifier, label="departments")

    result = await fetcher.fetch()

    assert result.ok
    assert fetcher.data == [{"id": 1}]
    assert fetcher.loading is False
    assert len(notifier) == 0


@pytest.mark.asyncio
async def test_refetch_repeats_last_params_and_is_idempotent(notifier):
    loader = RecordingLoader([{"id": 1}, {"id": 2}])
    fetcher = EntityFetcher(loader, notifier, label="employees", required_params=("department_id",))

    await fetcher.fetch(department_id="d1")
    first = list(fetcher.data)
    await fetcher.refetch()
    await fetcher.refetch()

    assert fetcher.data == first
    assert loader.calls == [{"department_id": "d1"}] * 3


@pytest.mark.asyncio
async def test_missing_required_param_issues_no_request(notifier):
    loader = RecordingLoader({"id": "x"})
    fetcher = EntityFetcher(loader, notifier, label="department", required_params=("entity_id",), single=True)

    result = await fetcher.fetch(entity_id="  ")

    assert result.skipped
    assert loader.calls == []
    assert fetcher.loading is False


@pytest.mark.asyncio
async def test_transport_error_keeps_previous_collection(notifier):
    loader = RecordingLoader([{"id": 1}], ConnectionException("http://backend", "refused"))
    fetcher = EntityFetcher(loader, notifier, label="departments")

    await fetcher.fetch()
    result = await fetcher.fetch()

    assert result.error == ErrorKind.TRANSPORT
    assert fetcher.data == [{"id": 1}]
    assert notifier.peek()[-1].message == "Failed to load departments"


@pytest.mark.asyncio
async def test_clear_on_error_drops_previous_collection(notifier):
    loader = RecordingLoader([{"id": 1}], ConnectionException("http://backend", "refused"))
    fetcher = EntityFetcher(loader, notifier, label="departments", clear_on_error=True)

    await fetcher.fetch()
    await fetcher.fetch()

    assert fetcher.data == []


@pytest.mark.asyncio
async def test_unrecognised_list_shape_empties_collection(notifier):
    loader = RecordingLoader({"unexpected": True})
    fetcher = EntityFetcher(loader, notifier, label="departments")

    result = await fetcher.fetch()

    assert result.error == ErrorKind.SHAPE
    assert fetcher.data == []
    assert notifier.peek()[-1].message == "Failed to load departments"


@pytest.mark.asyncio
async def test_single_entity_null_data_is_not_found(notifier):
    loader = RecordingLoader({"success": True, "data": None})
    fetcher = EntityFetcher(loader, notifier, label="department", required_params=("entity_id",), single=True)

    result = await fetcher.fetch(entity_id="d1")

    assert result.error == ErrorKind.SHAPE
    assert fetcher.data is None
    assert notifier.peek()[-1].message == "Department not found"


@pytest.mark.asyncio
async def test_single_entity_http_404_is_not_found(notifier):
    loader = RecordingLoader(HTTPStatusException("GET", "/departments/x", 404, message="Not found"))
    fetcher = EntityFetcher(loader, notifier, label="department", single=True)

    result = await fetcher.fetch(entity_id="x")

    assert result.error == ErrorKind.SHAPE


@pytest.mark.asyncio
async def test_business_failure_surfaces_server_message(notifier):
    loader = RecordingLoader({"success": False, "message": "Access denied"})
    fetcher = EntityFetcher(loader, notifier, label="salaries")

    result = await fetcher.fetch()

    assert result.error == ErrorKind.BUSINESS
    assert result.message == "Access denied"


@pytest.mark.asyncio
async def test_older_response_is_discarded(notifier):
    gate = asyncio.Event()

    async def loader(department_id):
        if department_id == "old":
            await gate.wait()
            return [{"id": "old"}]
        return [{"id": "new"}]

    fetcher = EntityFetcher(loader, notifier, label="employees", required_params=("department_id",))
    first = asyncio.create_task(fetcher.fetch(department_id="old"))
    await asyncio.sleep(0)

    second = await fetcher.fetch(department_id="new")
    gate.set()
    first_result = await first

    assert second.ok
    assert first_result.stale
    assert fetcher.data == [{"id": "new"}]
    assert fetcher.loading is False


@pytest.mark.asyncio
async def test_completion_after_close_is_discarded(notifier):
    gate = asyncio.Event()

    async def loader():
        await gate.wait()
        return [{"id": 1}]

    fetcher = EntityFetcher(loader, notifier, label="departments")
    task = asyncio.create_task(fetcher.fetch())
    await asyncio.sleep(0)

    fetcher.close()
    gate.set()
    result = await task

    assert result.stale
    assert fetcher.data == []
    assert fetcher.loading is False


@pytest.mark.asyncio
async def test_timeout_releases_loading(notifier):
    async def loader():
        await asyncio.sleep(5)

    fetcher = EntityFetcher(loader, notifier, label="departments", fetch_timeout=0.05)

    result = await fetcher.fetch()

    assert result.error == ErrorKind.TRANSPORT
    assert fetcher.loading is False
    assert notifier.peek()[-1].message == "Failed to load departments"
